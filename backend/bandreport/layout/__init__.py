"""
排版模块 - 分页规划与单页排版

- PaginationPlanner: 行高/每页行数/总页数/脚注拆分
- LayoutCompositor: 单页带区摆放
- BandStyleResolver: 行背景色与行高公式
- ObjectContentResolver: 控件内容字符串
"""

from .compositor import LayoutCompositor
from .content import ObjectContentResolver, format_datetime
from .planner import PaginationPlanner, footer_split_y, min_top_offset
from .styles import BandStyleResolver, normalize_color

__all__ = [
    "PaginationPlanner",
    "LayoutCompositor",
    "BandStyleResolver",
    "ObjectContentResolver",
    "footer_split_y",
    "min_top_offset",
    "normalize_color",
    "format_datetime",
]
