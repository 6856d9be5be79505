"""
公式取值语义 - 数值转换、真值判断、结果转字符串

公式沿用设计器中的表达式习惯：
- "+" 任一侧为文本时做字符串拼接，否则做数值加法
- 其余算术运算会把数字文本转为数值，无法转换时报错
- 整数值的浮点结果输出时不带 ".0"
"""

from __future__ import annotations

import math
from typing import Any

from ..interfaces import FormulaEvaluationError


def is_number(value: Any) -> bool:
    """是否为数值（bool 不算）"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str) -> int | float | None:
    """解析数字文本，失败返回 None"""
    s = text.strip().replace(",", "")
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        pass
    try:
        value = float(s)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def to_number(value: Any) -> int | float:
    """严格数值转换（用于算术运算）"""
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        if not value.strip():
            return 0
        number = parse_number(value)
        if number is not None:
            return number
    raise FormulaEvaluationError(f"无法转换为数值: {value!r}")


def to_agg_number(value: Any) -> int | float:
    """宽松数值转换（用于聚合，无法转换按0计）"""
    try:
        number = to_number(value)
    except FormulaEvaluationError:
        return 0
    if isinstance(number, float) and math.isnan(number):
        return 0
    return number


def truthy(value: Any) -> bool:
    """真值判断（0 / 空串 / None / NaN 为假）"""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def format_number(value: int | float) -> str:
    """数值转最短文本"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def to_text(value: Any) -> str:
    """任意值转文本"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, list):
        return ",".join(to_text(v) for v in value)
    return str(value)
