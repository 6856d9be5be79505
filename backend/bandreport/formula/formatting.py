"""
结果格式化 - 数值结果按 formatType 输出
"""

from __future__ import annotations

import math
from typing import Any

from ..models import FormatType, FormulaOptions
from .values import is_number, to_text


def format_result(value: Any, options: FormulaOptions | None = None, currency_symbol: str = "¥") -> str:
    """
    格式化计算结果

    - currency: ¥ + 千分位 + 固定小数位
    - percent: ×100 + 固定小数位 + %
    - number: 千分位 + 固定小数位
    - text: 最短数值文本
    非数值结果原样转文本。
    """
    if not is_number(value) or not math.isfinite(value):
        return to_text(value)

    options = options or FormulaOptions()
    places = max(0, options.decimal_places)

    if options.format_type == FormatType.CURRENCY:
        return f"{currency_symbol}{value:,.{places}f}"
    if options.format_type == FormatType.PERCENT:
        return f"{value * 100:.{places}f}%"
    if options.format_type == FormatType.NUMBER:
        return f"{value:,.{places}f}"
    return to_text(value)
