"""
公式校验 - 编辑期的静态检查与试算

职责：
1. validate_formula: 括号/花括号/引号配对与函数调用后多余内容检查（不求值）
2. describe_error: 把求值异常翻译为可读的中文提示
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from ..interfaces import FormulaError, FormulaSyntaxError, NotCallableError, UndefinedNameError
from .tokenizer import normalize_punctuation

LEADING_CALL = re.compile(r"^\s*[A-Z_][A-Z0-9_]*\s*\(", re.IGNORECASE)
OPERATOR_CONTINUATION = re.compile(r"^[\s+\-*/&|<>=]+")


class FormulaValidation(BaseModel):
    """校验结果"""
    valid: bool
    message: str
    result: str | None = None


def _check_pairs(text: str, open_ch: str, close_ch: str) -> int:
    """返回 -1 表示多余的闭合符，>0 表示缺少闭合符"""
    depth = 0
    for ch in text:
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth < 0:
                return -1
    return depth


def _trailing_after_call(text: str) -> str | None:
    """首个顶层函数调用结束后的多余内容"""
    if not LEADING_CALL.match(text):
        return None
    depth = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                remaining = text[i + 1:].strip()
                if remaining and not OPERATOR_CONTINUATION.match(remaining):
                    return remaining
                return None
    return None


def _unclosed_quote(text: str) -> bool:
    quote = ""
    for i, ch in enumerate(text):
        if not quote and ch in ("\"", "'"):
            quote = ch
        elif quote and ch == quote and text[i - 1] != "\\":
            quote = ""
    return bool(quote)


def validate_formula(formula: str) -> FormulaValidation:
    """静态校验公式"""
    if not formula or not formula.strip():
        return FormulaValidation(valid=False, message="公式不能为空")

    text = normalize_punctuation(formula)

    parens = _check_pairs(text, "(", ")")
    if parens < 0:
        return FormulaValidation(valid=False, message="括号不匹配：多余的右括号")
    if parens > 0:
        return FormulaValidation(valid=False, message="括号不匹配：缺少右括号")

    braces = _check_pairs(text, "{", "}")
    if braces < 0:
        return FormulaValidation(valid=False, message="字段引用格式错误：多余的 }")
    if braces > 0:
        return FormulaValidation(valid=False, message="字段引用格式错误：缺少 }")

    remaining = _trailing_after_call(text)
    if remaining:
        return FormulaValidation(valid=False, message=f"公式语法错误：函数调用后有多余内容 \"{remaining}\"")

    if _unclosed_quote(text):
        return FormulaValidation(valid=False, message="字符串引号不匹配")

    return FormulaValidation(valid=True, message="公式格式正确")


def describe_error(error: FormulaError) -> str:
    """求值异常 -> 中文提示"""
    if isinstance(error, UndefinedNameError):
        return f"未定义的变量或函数: \"{error.name}\"，请检查拼写或使用 {{字段名}} 格式引用数据字段"
    if isinstance(error, NotCallableError):
        return f"\"{error.name}\" 不是有效的函数，请检查函数名拼写"
    if isinstance(error, FormulaSyntaxError):
        if error.kind == FormulaSyntaxError.UNEXPECTED_END:
            return "语法错误: 公式不完整，请检查是否缺少括号或参数"
        return "语法错误: 意外的符号，请检查括号、引号、运算符是否正确"
    return f"执行错误: {error}"
