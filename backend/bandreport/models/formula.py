"""
公式上下文与格式化选项 - 每次求值临时构造，不持久化
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .schema import DEFAULT_DETAIL_KEY


class FormatType(str, Enum):
    """数值格式化类型"""
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENT = "percent"
    TEXT = "text"


class FormulaContext(BaseModel):
    """公式求值上下文"""
    data: dict[str, Any] = Field(default_factory=dict)
    current_item: dict[str, Any] | None = None
    current_page: int = 1
    total_pages: int = 1
    row_index: int = 0          # 绝对行号（0起），{rowIndex} 输出为1起
    start_index: int = 0        # 当前页起始行号
    page_size: int = 0          # 当前页行数
    detail_key: str | None = None  # 未指定时由引擎按字段清单推断
    now: datetime | None = None  # 指定时钟，保证日期输出可复现

    def clock(self) -> datetime:
        return self.now or datetime.now()

    @property
    def detail_array_key(self) -> str:
        return self.detail_key or DEFAULT_DETAIL_KEY

    def detail_items(self, prefix: str | None = None) -> list[Any]:
        """定位明细数组：点号前缀优先，其次显式声明的明细键"""
        if prefix:
            items = self.data.get(prefix)
            if isinstance(items, list):
                return items
        items = self.data.get(self.detail_array_key)
        return items if isinstance(items, list) else []

    def page_items(self, prefix: str | None = None) -> list[Any]:
        """当前页的明细切片"""
        items = self.detail_items(prefix)
        return items[self.start_index:self.start_index + self.page_size]


class FormulaOptions(BaseModel):
    """格式化选项"""
    format_type: FormatType = FormatType.TEXT
    decimal_places: int = 2
