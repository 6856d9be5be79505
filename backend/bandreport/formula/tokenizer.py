"""
公式词法分析

预处理阶段把全角标点转为半角，随后切分为记号。
语法之外的任何字符都会直接报错，公式无法表达任意宿主调用。
"""

from __future__ import annotations

from typing import NamedTuple

from ..interfaces import FormulaSyntaxError

# 全角标点 → 半角
PUNCTUATION_MAP = str.maketrans({
    "，": ",",
    "（": "(",
    "）": ")",
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "；": ";",
    "：": ":",
})

NUMBER = "NUMBER"
STRING = "STRING"
FIELD = "FIELD"
IDENT = "IDENT"
OP = "OP"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
COMMA = "COMMA"
QUESTION = "QUESTION"
COLON = "COLON"
EOF = "EOF"

# 按长度降序匹配
OPERATORS = (
    "===", "!==",
    "==", "!=", "<=", ">=", "&&", "||",
    "<", ">", "+", "-", "*", "/", "%", "!",
)

SINGLE_CHARS = {
    "(": LPAREN,
    ")": RPAREN,
    ",": COMMA,
    "?": QUESTION,
    ":": COLON,
}

ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class Token(NamedTuple):
    kind: str
    value: str
    pos: int


def normalize_punctuation(formula: str) -> str:
    """中文标点转英文标点"""
    return formula.translate(PUNCTUATION_MAP)


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_ident_char(ch: str) -> bool:
    return ch == "_" or ch == "." or ch.isalnum()


def tokenize(text: str) -> list[Token]:
    """切分记号（末尾追加 EOF）"""
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch.isspace():
            i += 1
            continue

        # 字段引用 {name} / {arrayKey.name}
        if ch == "{":
            end = text.find("}", i + 1)
            if end == -1:
                raise FormulaSyntaxError("字段引用缺少 }", FormulaSyntaxError.UNEXPECTED_END, i)
            name = text[i + 1:end].strip()
            if not name or "{" in name:
                raise FormulaSyntaxError(f"字段引用格式错误: {text[i:end + 1]}", position=i)
            tokens.append(Token(FIELD, name, i))
            i = end + 1
            continue

        if ch in "\"'":
            value, i = _read_string(text, i)
            tokens.append(Token(STRING, value, i))
            continue

        if ch.isdigit() or (ch == "." and i + 1 < n and text[i + 1].isdigit()):
            start = i
            i = _read_number(text, i)
            tokens.append(Token(NUMBER, text[start:i], start))
            continue

        if _is_ident_start(ch):
            start = i
            while i < n and _is_ident_char(text[i]):
                i += 1
            tokens.append(Token(IDENT, text[start:i].rstrip("."), start))
            continue

        if ch in SINGLE_CHARS:
            tokens.append(Token(SINGLE_CHARS[ch], ch, i))
            i += 1
            continue

        for op in OPERATORS:
            if text.startswith(op, i):
                tokens.append(Token(OP, op, i))
                i += len(op)
                break
        else:
            raise FormulaSyntaxError(
                f"公式包含不允许的字符: {ch!r}", FormulaSyntaxError.ILLEGAL_CHAR, i
            )

    tokens.append(Token(EOF, "", n))
    return tokens


def _read_string(text: str, start: int) -> tuple[str, int]:
    quote = text[start]
    chars: list[str] = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            chars.append(ESCAPES.get(nxt, nxt))
            i += 2
            continue
        if ch == quote:
            return "".join(chars), i + 1
        chars.append(ch)
        i += 1
    raise FormulaSyntaxError("字符串引号不匹配", FormulaSyntaxError.UNEXPECTED_END, start)


def _read_number(text: str, start: int) -> int:
    i = start
    n = len(text)
    while i < n and text[i].isdigit():
        i += 1
    if i < n and text[i] == ".":
        i += 1
        while i < n and text[i].isdigit():
            i += 1
    if i < n and text[i] in "eE":
        j = i + 1
        if j < n and text[j] in "+-":
            j += 1
        if j < n and text[j].isdigit():
            i = j
            while i < n and text[i].isdigit():
                i += 1
    return i
