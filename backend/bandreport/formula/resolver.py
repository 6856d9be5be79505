"""
字段解析器 - 解析 {fieldName} / {arrayKey.fieldName} 占位符

职责：
1. 按行上下文/主表数据解析字段值
2. 根据字段清单提供类型与中文标签（设计预览回退显示）
3. 按字段类型格式化显示值
4. 替换静态文本中的占位符

解析顺序：
- arrayKey.column：明细键一致时取当前行，其次取该数组第一条（设计预览）
- column：先当前行，再主表
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from ..models import DataField, FieldType, FormulaContext
from .interpreter import SYSTEM_VARIABLES, system_variable
from .values import format_number, is_number, to_text

FIELD_PATTERN = re.compile(r"\{([^{}]+)\}")


def format_grouped(value: int | float) -> str:
    """千分位分组，最多保留3位小数"""
    if isinstance(value, int):
        return f"{value:,}"
    if not value.is_integer():
        return f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"{int(value):,}"


class FieldResolver:
    """字段解析器"""

    def __init__(self, fields: list[DataField] | None = None, currency_symbol: str = "¥"):
        self.fields = list(fields or [])
        self.currency_symbol = currency_symbol
        self._by_name = {f.name: f for f in reversed(self.fields)}

    def resolve(self, path: str, context: FormulaContext) -> tuple[bool, Any]:
        """
        解析字段值

        Returns:
            (是否找到, 值)
        """
        data = context.data
        item = context.current_item

        if "." in path:
            prefix, column = path.split(".", 1)
            if item is not None and prefix == context.detail_array_key and column in item:
                return True, item[column]
            rows = data.get(prefix)
            if isinstance(rows, list):
                first = rows[0] if rows else None
                if isinstance(first, dict) and column in first:
                    return True, first[column]
            return False, None

        if item is not None and path in item:
            return True, item[path]
        if path in data:
            return True, data[path]
        return False, None

    def field_type(self, name: str) -> FieldType:
        field = self._by_name.get(name)
        return field.type if field else FieldType.STRING

    def field_label(self, name: str) -> str:
        """字段中文标签（找不到时按列名匹配，再退回字段名）"""
        field = self._by_name.get(name)
        if field:
            return field.label or field.name
        if "." in name:
            column = name.split(".", 1)[1]
            for f in self.fields:
                if f.name.endswith("." + column):
                    return f.label or f.name
        return name

    def format_value(self, value: Any, field_type: FieldType | str = FieldType.STRING) -> str:
        """按字段类型格式化"""
        if value is None:
            return ""
        kind = FieldType(field_type)
        if kind == FieldType.CURRENCY and is_number(value):
            return f"{self.currency_symbol}{format_grouped(value)}"
        if kind == FieldType.NUMBER and is_number(value):
            return format_grouped(value)
        if kind == FieldType.DATE and isinstance(value, (date, datetime)):
            return f"{value.year}/{value.month}/{value.day}"
        if is_number(value):
            return format_number(value)
        return to_text(value)

    def display(self, name: str, context: FormulaContext) -> str | None:
        """字段显示值，未找到返回 None"""
        found, value = self.resolve(name, context)
        if not found:
            return None
        return self.format_value(value, self.field_type(name))

    def substitute(self, text: str, context: FormulaContext) -> str:
        """替换静态文本中的占位符（未解析的保持原样）"""
        def replace(match: re.Match) -> str:
            name = match.group(1).strip()
            if name in SYSTEM_VARIABLES:
                return to_text(system_variable(name, context))
            shown = self.display(name, context)
            return match.group(0) if shown is None else shown

        return FIELD_PATTERN.sub(replace, text)
