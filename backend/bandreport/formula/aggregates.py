"""
聚合函数 - 对全部明细或当前页明细做统计

支持：
- COUNT / SUM / AVG / MAX / MIN：全部明细
- PAGECOUNT / PAGESUM / PAGEAVG / PAGEMAX / PAGEMIN：当前页 [startIndex, startIndex+pageSize)

参数形式：*、ROWID()、field、{field}、arrayKey.field、{arrayKey.field}
数据源：点号前缀指向的数组，否则为上下文显式声明的明细键。
"""

from __future__ import annotations

from typing import Any

from ..models import FormulaContext
from .parser import Call, FieldRef, Name, Node, Star
from .values import to_agg_number

TOTAL_AGGREGATES = ("COUNT", "SUM", "AVG", "MAX", "MIN")
PAGE_AGGREGATES = ("PAGECOUNT", "PAGESUM", "PAGEAVG", "PAGEMAX", "PAGEMIN")
AGGREGATE_NAMES = frozenset(TOTAL_AGGREGATES + PAGE_AGGREGATES)


def is_aggregate_call(name: str, args: tuple[Node, ...]) -> bool:
    """是否为聚合调用（单个列引用 / * / ROWID() 参数）"""
    if name.upper() not in AGGREGATE_NAMES or len(args) != 1:
        return False
    arg = args[0]
    if isinstance(arg, (Star, FieldRef, Name)):
        return True
    return _is_rowid(arg)


def _is_rowid(node: Node) -> bool:
    return isinstance(node, Call) and node.callee is None and node.name.upper() == "ROWID" and not node.args


def _split_path(path: str) -> tuple[str | None, str]:
    if "." in path:
        prefix, column = path.split(".", 1)
        return prefix, column
    return None, path


def _has_value(item: Any, column: str) -> bool:
    if not isinstance(item, dict):
        return False
    value = item.get(column)
    return value is not None and value != ""


def compute_aggregate(name: str, arg: Node, context: FormulaContext) -> int | float:
    """计算聚合值"""
    func = name.upper()
    page_scoped = func.startswith("PAGE")
    base = func[4:] if page_scoped else func

    if isinstance(arg, Star) or _is_rowid(arg):
        if page_scoped:
            return context.page_size
        return len(context.detail_items())

    prefix, column = _split_path(arg.path)
    items = context.page_items(prefix) if page_scoped else context.detail_items(prefix)

    if base == "COUNT":
        return sum(1 for item in items if _has_value(item, column))

    values = [
        to_agg_number(item.get(column)) if isinstance(item, dict) else 0
        for item in items
    ]
    if base == "SUM":
        return sum(values)
    if not values:
        return 0
    if base == "AVG":
        return sum(values) / len(values)
    if base == "MAX":
        return max(values)
    return min(values)
