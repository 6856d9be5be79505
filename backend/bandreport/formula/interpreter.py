"""
公式解释执行 - 对语法树求值

- 字段引用：系统变量优先，其次由 FieldResolver 解析，未解析字段记为 "[name]"
- 函数调用：只在显式的函数注册表中查找，不接触任何宿主环境
- 聚合调用：按上下文的明细数组/当前页窗口计算
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from ..interfaces import FormulaError, FormulaEvaluationError, NotCallableError, UndefinedNameError
from ..models import FormulaContext
from .aggregates import compute_aggregate, is_aggregate_call
from .parser import Binary, Call, Conditional, FieldRef, Literal, Name, Node, Star, Unary
from .values import is_number, to_number, to_text, truthy

if TYPE_CHECKING:
    from .registry import FunctionRegistry
    from .resolver import FieldResolver

SYSTEM_VARIABLES = ("currentDate", "currentTime", "pageNumber", "totalPages", "rowIndex")


def system_variable(name: str, context: FormulaContext) -> Any:
    """系统变量取值"""
    if name == "currentDate":
        now = context.clock()
        return f"{now.year}/{now.month}/{now.day}"
    if name == "currentTime":
        now = context.clock()
        return f"{now.hour:02d}:{now.minute:02d}:{now.second:02d}"
    if name == "pageNumber":
        return context.current_page
    if name == "totalPages":
        return context.total_pages
    if name == "rowIndex":
        return context.row_index + 1
    raise UndefinedNameError(name)


class Interpreter:
    """语法树求值器（单次求值，记录未解析字段）"""

    def __init__(
        self,
        registry: FunctionRegistry,
        resolver: FieldResolver,
        context: FormulaContext,
    ):
        self.registry = registry
        self.resolver = resolver
        self.context = context
        self.unresolved: list[str] = []

    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, FieldRef):
            return self._field(node.path)
        if isinstance(node, Name):
            raise UndefinedNameError(node.path)
        if isinstance(node, Star):
            raise FormulaEvaluationError("* 只能作为聚合函数参数")
        if isinstance(node, Unary):
            return self._unary(node)
        if isinstance(node, Binary):
            return self._binary(node)
        if isinstance(node, Conditional):
            if truthy(self.evaluate(node.test)):
                return self.evaluate(node.then)
            return self.evaluate(node.otherwise)
        if isinstance(node, Call):
            return self._call(node)
        raise FormulaEvaluationError(f"未知语法节点: {node!r}")

    def _field(self, path: str) -> Any:
        if path in SYSTEM_VARIABLES:
            return system_variable(path, self.context)
        found, value = self.resolver.resolve(path, self.context)
        if not found:
            self.unresolved.append(path)
            return f"[{path}]"
        if is_number(value):
            return value
        return to_text(value)

    def _unary(self, node: Unary) -> Any:
        value = self.evaluate(node.operand)
        if node.op == "!":
            return not truthy(value)
        number = to_number(value)
        return -number if node.op == "-" else number

    def _binary(self, node: Binary) -> Any:
        op = node.op

        # 短路求值，返回操作数本身
        if op == "&&":
            left = self.evaluate(node.left)
            return self.evaluate(node.right) if truthy(left) else left
        if op == "||":
            left = self.evaluate(node.left)
            return left if truthy(left) else self.evaluate(node.right)

        # 左结合长链（a+b+c+...）沿左侧展开迭代求值
        chain = []
        head: Node = node
        while isinstance(head, Binary) and head.op not in ("&&", "||"):
            chain.append(head)
            head = head.left
        value = self.evaluate(head)
        for link in reversed(chain):
            value = _apply_binary(link.op, value, self.evaluate(link.right))
        return value

    def _call(self, node: Call) -> Any:
        if node.callee is not None:
            target = self.evaluate(node.callee)
            raise NotCallableError(to_text(target) or "表达式")

        if is_aggregate_call(node.name, node.args):
            return compute_aggregate(node.name, node.args[0], self.context)

        func = self.registry.get(node.name)
        if func is None:
            raise UndefinedNameError(node.name)
        if not callable(func):
            raise NotCallableError(node.name)

        args = [self.evaluate(arg) for arg in node.args]
        if getattr(func, "needs_context", False):
            args.insert(0, self.context)
        try:
            return func(*args)
        except FormulaError:
            raise
        except Exception as e:
            raise FormulaEvaluationError(f"{node.name} 执行失败: {e}") from e


def _apply_binary(op: str, left: Any, right: Any) -> Any:
    if op == "+":
        if isinstance(left, str) or isinstance(right, str):
            return to_text(left) + to_text(right)
        return to_number(left) + to_number(right)
    if op in ("-", "*", "/", "%"):
        return _arithmetic(op, to_number(left), to_number(right))
    if op in ("<", "<=", ">", ">="):
        return _compare(op, left, right)
    if op in ("==", "!="):
        equal = _loose_equals(left, right)
        return equal if op == "==" else not equal
    if op in ("===", "!=="):
        equal = _strict_equals(left, right)
        return equal if op == "===" else not equal
    raise FormulaEvaluationError(f"不支持的运算符: {op}")


def _arithmetic(op: str, left: int | float, right: int | float) -> int | float:
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        raise FormulaEvaluationError("除数为零")
    if op == "/":
        return left / right
    result = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


def _compare(op: str, left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = to_number(left), to_number(right)
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    return a >= b


def _loose_equals(left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if left is None or right is None:
        return left is None and right is None
    try:
        return to_number(left) == to_number(right)
    except FormulaEvaluationError:
        return False


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    return type(left) is type(right) and left == right
