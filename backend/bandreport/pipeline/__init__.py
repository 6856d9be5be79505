"""
流水线模块 - 分页、排版与内容生成的编排

子模块：
- executor: 报表流水线
- cache: 分页方案/行公式结果缓存
"""

from .cache import LRUCache, fingerprint
from .executor import RenderedPage, RenderResult, ReportPipeline

__all__ = [
    "ReportPipeline",
    "RenderResult",
    "RenderedPage",
    "LRUCache",
    "fingerprint",
]
