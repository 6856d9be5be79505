"""
控件内容 - 按控件类型生成交给外部渲染器的内容字符串
"""

from __future__ import annotations

from datetime import datetime

from ..formula import FormulaEngine
from ..models import ControlObject, ControlType, FormatType, FormulaContext, FormulaOptions

DEFAULT_DATE_PATTERN = "yyyy-MM-dd"
FORMAT_TYPES = frozenset(f.value for f in FormatType)


def format_datetime(value: datetime, pattern: str) -> str:
    """按 yyyy/MM/dd/HH/mm/ss 模式格式化"""
    return (
        pattern.replace("yyyy", f"{value.year}")
        .replace("MM", f"{value.month:02d}")
        .replace("dd", f"{value.day:02d}")
        .replace("HH", f"{value.hour:02d}")
        .replace("mm", f"{value.minute:02d}")
        .replace("ss", f"{value.second:02d}")
    )


class ObjectContentResolver:
    """控件内容解析"""

    def __init__(self, engine: FormulaEngine):
        self.engine = engine
        self.resolver = engine.resolver

    def content(self, obj: ControlObject, context: FormulaContext) -> str:
        context = self.engine.bind_context(context)
        if obj.type in (ControlType.TEXT, ControlType.MULTILINE_TEXT):
            return self.resolver.substitute(obj.text or "", context)

        if obj.type == ControlType.FIELD:
            name = obj.field_name or ""
            shown = self.resolver.display(name, context) if name else None
            if shown is None:
                # 设计预览：显示中文标签
                return f"{{{self.resolver.field_label(name)}}}"
            return shown

        if obj.type == ControlType.CALCULATED:
            return self.engine.evaluate(obj.formula or "", context, self.options_for(obj))

        if obj.type == ControlType.PAGE_NUMBER:
            return f"第{context.current_page}页/共{context.total_pages}页"

        if obj.type == ControlType.CURRENT_DATE:
            return format_datetime(context.clock(), obj.text or DEFAULT_DATE_PATTERN)

        if obj.type == ControlType.IMAGE:
            return "[图片]"

        if obj.type in (ControlType.BARCODE, ControlType.QRCODE):
            # 优先绑定字段的值，否则静态文本
            if obj.field_name:
                shown = self.resolver.display(obj.field_name, context)
                if shown is not None:
                    return shown
            return obj.text or ""

        # 线条与图形没有文本内容
        return ""

    def options_for(self, obj: ControlObject) -> FormulaOptions:
        format_type = obj.format_type if obj.format_type in FORMAT_TYPES else FormatType.TEXT
        decimal_places = obj.decimal_places
        if decimal_places is None:
            decimal_places = self.engine.config.decimal_places
        return FormulaOptions(format_type=format_type, decimal_places=decimal_places)
