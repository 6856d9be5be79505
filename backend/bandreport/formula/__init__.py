"""
公式模块 - 解析并计算模板中的表达式

- FormulaEngine: 求值入口（出错返回哨兵字符串）
- FunctionRegistry: 显式的函数注册表
- FieldResolver: 字段占位符解析与显示格式化
"""

from .builtins import BUILTIN_FUNCTIONS, context_function
from .engine import FormulaEngine
from .formatting import format_result
from .registry import FunctionRegistry
from .resolver import FieldResolver
from .validation import FormulaValidation, validate_formula

__all__ = [
    "FormulaEngine",
    "FunctionRegistry",
    "FieldResolver",
    "FormulaValidation",
    "BUILTIN_FUNCTIONS",
    "context_function",
    "format_result",
    "validate_formula",
]
