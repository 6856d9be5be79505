"""
内置函数 - 数学/字符串/日期/逻辑/格式化/财务

函数接收已求值的参数；标记 needs_context 的函数额外接收求值上下文作为首个参数。
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from ..models import FormulaContext
from .values import format_number, is_number, parse_number, to_number, to_text, truthy

CN_DIGITS = ("零", "壹", "贰", "叁", "肆", "伍", "陆", "柒", "捌", "玖")
CN_FRACTIONS = ("角", "分")
CN_UNITS = (("", "拾", "佰", "仟"), ("", "万", "亿", "兆"))

DATE_PATTERN = re.compile(r"(\d{4})\s*[-/.年]\s*(\d{1,2})\s*[-/.月]\s*(\d{1,2})")


def context_function(func: Callable[..., Any]) -> Callable[..., Any]:
    """标记需要求值上下文的函数"""
    func.needs_context = True  # type: ignore[attr-defined]
    return func


def _group(value: float, decimals: int) -> str:
    return f"{value:,.{decimals}f}"


# ==================== 数学函数 ====================

def fn_round(value: Any, decimals: Any = 0) -> float:
    """四舍五入（.5 向上取整）"""
    factor = 10 ** int(to_number(decimals))
    return math.floor(to_number(value) * factor + 0.5) / factor


def fn_floor(value: Any) -> int:
    return math.floor(to_number(value))


def fn_ceil(value: Any) -> int:
    return math.ceil(to_number(value))


def fn_abs(value: Any) -> int | float:
    return abs(to_number(value))


def fn_mod(a: Any, b: Any) -> int | float:
    left, right = to_number(a), to_number(b)
    if right == 0:
        raise ValueError("MOD 除数为零")
    result = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


# ==================== 字符串函数 ====================

def fn_concat(*args: Any) -> str:
    return "".join(to_text(a) for a in args)


def fn_left(text: Any, n: Any) -> str:
    return to_text(text)[:max(0, int(to_number(n)))]


def fn_right(text: Any, n: Any) -> str:
    s = to_text(text)
    count = int(to_number(n))
    return s[-count:] if count > 0 else s


def fn_len(text: Any) -> int:
    return len(to_text(text))


def fn_trim(text: Any) -> str:
    return to_text(text).strip()


def fn_upper(text: Any) -> str:
    return to_text(text).upper()


def fn_lower(text: Any) -> str:
    return to_text(text).lower()


# ==================== 日期函数 ====================

def format_locale_date(value: datetime) -> str:
    """本地日期格式（2026/1/5）"""
    return f"{value.year}/{value.month}/{value.day}"


def format_locale_time(value: datetime) -> str:
    """本地时间格式（09:05:03）"""
    return f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}"


@context_function
def fn_now(context: FormulaContext) -> str:
    now = context.clock()
    return f"{format_locale_date(now)} {format_locale_time(now)}"


@context_function
def fn_today(context: FormulaContext) -> str:
    return format_locale_date(context.clock())


def parse_date(value: Any) -> date:
    """解析日期（支持 2026-01-05 / 2026/1/5 / 2026年1月5日）"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = DATE_PATTERN.search(to_text(value))
    if not match:
        raise ValueError(f"无法识别的日期: {value!r}")
    year, month, day = (int(g) for g in match.groups())
    return date(year, month, day)


def fn_year(value: Any) -> int:
    return parse_date(value).year


def fn_month(value: Any) -> int:
    return parse_date(value).month


def fn_day(value: Any) -> int:
    return parse_date(value).day


# ==================== 逻辑函数 ====================

def fn_if(condition: Any, true_value: Any = None, false_value: Any = None) -> Any:
    return true_value if truthy(condition) else false_value


def fn_isnull(value: Any, default: Any = None) -> Any:
    if value is None or value == "":
        return default
    return value


# ==================== 格式化函数 ====================

def fn_format(value: Any, kind: Any = "") -> str:
    number = to_number(value)
    if kind == "currency":
        return f"¥{_group(number, 2)}"
    if kind == "percent":
        return f"{number * 100:.2f}%"
    return format_number(number)


def fn_fixed(value: Any, decimals: Any = 2) -> str:
    return f"{to_number(value):.{int(to_number(decimals))}f}"


def fn_padleft(text: Any, length: Any, char: Any = "0") -> str:
    fill = to_text(char)[:1] or " "
    return to_text(text).rjust(int(to_number(length)), fill)


def fn_padright(text: Any, length: Any, char: Any = " ") -> str:
    fill = to_text(char)[:1] or " "
    return to_text(text).ljust(int(to_number(length)), fill)


# ==================== 标量聚合 ====================

def _flatten(args: tuple[Any, ...]) -> list[Any]:
    values: list[Any] = []
    for arg in args:
        if isinstance(arg, list):
            values.extend(arg)
        else:
            values.append(arg)
    return values


def fn_count(*args: Any) -> int:
    return len(_flatten(args))


def fn_sum(*args: Any) -> int | float:
    return sum(to_number(v) for v in _flatten(args))


def fn_avg(*args: Any) -> int | float:
    values = _flatten(args)
    if not values:
        return 0
    return fn_sum(*values) / len(values)


def fn_max(*args: Any) -> int | float:
    values = [to_number(v) for v in _flatten(args)]
    return max(values) if values else 0


def fn_min(*args: Any) -> int | float:
    values = [to_number(v) for v in _flatten(args)]
    return min(values) if values else 0


def fn_rowid() -> str:
    return "ROWID"


# ==================== 财务函数 ====================

def fn_tochinese(value: Any) -> str:
    """金额转中文大写"""
    if is_number(value):
        num = value
    else:
        num = parse_number(to_text(value))
        if num is None:
            return ""
    if num == 0:
        return "零元整"

    head = "负" if num < 0 else ""
    int_part, dec_part = f"{abs(num):.2f}".split(".")

    s = ""
    for i, ch in enumerate(dec_part):
        n = int(ch)
        if n != 0:
            s += CN_DIGITS[n] + CN_FRACTIONS[i]
    s = s or "整"

    int_num = int(int_part)
    if int_num > 0:
        int_str = ""
        for section_unit in CN_UNITS[1]:
            if int_num <= 0:
                break
            p = ""
            for digit_unit in CN_UNITS[0]:
                if int_num <= 0:
                    break
                p = CN_DIGITS[int_num % 10] + digit_unit + p
                int_num //= 10
            p = re.sub(r"(零.)*零$", "", p, count=1)
            p = re.sub(r"^零+", "", p, count=1)
            int_str = p + section_unit + int_str
        int_str = re.sub(r"(零.)*零元", "元", int_str, count=1)
        int_str = re.sub(r"(零.)+", "零", int_str)
        s = int_str + "元" + s

    return head + s


def fn_currency(value: Any, symbol: Any = "￥", decimals: Any = 2) -> str:
    """货币格式化（千分位）"""
    number = parse_number(to_text(value)) if not is_number(value) else value
    if number is None:
        return ""
    sign = "-" if number < 0 else ""
    return f"{sign}{to_text(symbol)}{_group(abs(number), int(to_number(decimals)))}"


def fn_discount(amount: Any, rate: Any) -> float:
    return to_number(amount) * (1 - to_number(rate) / 100)


def fn_tax(amount: Any, rate: Any) -> float:
    return to_number(amount) * to_number(rate) / 100


def fn_withtax(amount: Any, rate: Any) -> float:
    return to_number(amount) * (1 + to_number(rate) / 100)


def fn_extracttax(amount_with_tax: Any, rate: Any) -> float:
    total = to_number(amount_with_tax)
    return total - total / (1 + to_number(rate) / 100)


BUILTIN_FUNCTIONS: dict[str, Callable[..., Any]] = {
    # 数学
    "ROUND": fn_round,
    "FLOOR": fn_floor,
    "CEIL": fn_ceil,
    "ABS": fn_abs,
    "MOD": fn_mod,
    # 字符串
    "CONCAT": fn_concat,
    "LEFT": fn_left,
    "RIGHT": fn_right,
    "LEN": fn_len,
    "TRIM": fn_trim,
    "UPPER": fn_upper,
    "LOWER": fn_lower,
    # 日期
    "NOW": fn_now,
    "TODAY": fn_today,
    "YEAR": fn_year,
    "MONTH": fn_month,
    "DAY": fn_day,
    # 逻辑
    "IF": fn_if,
    "IIF": fn_if,
    "ISNULL": fn_isnull,
    # 格式化
    "FORMAT": fn_format,
    "FIXED": fn_fixed,
    "PADLEFT": fn_padleft,
    "PADRIGHT": fn_padright,
    # 聚合（标量参数形式）
    "COUNT": fn_count,
    "SUM": fn_sum,
    "AVG": fn_avg,
    "MAX": fn_max,
    "MIN": fn_min,
    "ROWID": fn_rowid,
    # 财务
    "TOCHINESE": fn_tochinese,
    "CURRENCY": fn_currency,
    "DISCOUNT": fn_discount,
    "TAX": fn_tax,
    "WITHTAX": fn_withtax,
    "EXTRACTTAX": fn_extracttax,
}
