"""
公式语法分析 - 递归下降，生成语法树

文法（优先级由低到高）：
    expr        := ternary
    ternary     := or ("?" expr ":" expr)?
    or          := and ("||" and)*
    and         := equality ("&&" equality)*
    equality    := comparison (("==" | "!=" | "===" | "!==") comparison)*
    comparison  := additive (("<" | "<=" | ">" | ">=") additive)*
    additive    := term (("+" | "-") term)*
    term        := unary (("*" | "/" | "%") unary)*
    unary       := ("!" | "-" | "+") unary | postfix
    postfix     := primary ("(" args ")")*
    primary     := NUMBER | STRING | FIELD | IDENT | "(" expr ")"
    args        := (arg ("," arg)*)?
    arg         := "*" | expr
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..interfaces import FormulaSyntaxError
from .tokenizer import (
    COLON,
    COMMA,
    EOF,
    FIELD,
    IDENT,
    LPAREN,
    NUMBER,
    OP,
    QUESTION,
    RPAREN,
    STRING,
    Token,
    tokenize,
)

KEYWORDS: dict[str, Any] = {"true": True, "false": False, "null": None}


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class FieldRef:
    """{name} 字段/系统变量引用"""
    path: str


@dataclass(frozen=True)
class Name:
    """裸标识符（仅可作为聚合函数参数）"""
    path: str


@dataclass(frozen=True)
class Star:
    """COUNT(*) 中的 *"""


@dataclass(frozen=True)
class Unary:
    op: str
    operand: Node


@dataclass(frozen=True)
class Binary:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Conditional:
    test: Node
    then: Node
    otherwise: Node


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Node, ...] = field(default_factory=tuple)
    callee: Node | None = None   # 非标识符调用（如 {x}(1)），求值时报"不是函数"


Node = Union[Literal, FieldRef, Name, Star, Unary, Binary, Conditional, Call]

BINARY_LEVELS: tuple[tuple[str, ...], ...] = (
    ("||",),
    ("&&",),
    ("==", "!=", "===", "!=="),
    ("<", "<=", ">", ">="),
    ("+", "-"),
    ("*", "/", "%"),
)


class Parser:
    """递归下降解析器"""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != EOF:
            self.pos += 1
        return token

    def _error(self, token: Token) -> FormulaSyntaxError:
        if token.kind == EOF:
            return FormulaSyntaxError("公式不完整", FormulaSyntaxError.UNEXPECTED_END, token.pos)
        return FormulaSyntaxError(
            f"意外的符号 {token.value!r}", FormulaSyntaxError.UNEXPECTED_TOKEN, token.pos
        )

    def _expect(self, kind: str) -> Token:
        token = self.current
        if token.kind != kind:
            raise self._error(token)
        return self._advance()

    def _match_op(self, ops: tuple[str, ...]) -> str | None:
        token = self.current
        if token.kind == OP and token.value in ops:
            self._advance()
            return token.value
        return None

    def parse(self) -> Node:
        if self.current.kind == EOF:
            raise self._error(self.current)
        node = self.expression()
        if self.current.kind != EOF:
            raise self._error(self.current)
        return node

    def expression(self) -> Node:
        test = self.binary(0)
        if self.current.kind == QUESTION:
            self._advance()
            then = self.expression()
            self._expect(COLON)
            otherwise = self.expression()
            return Conditional(test, then, otherwise)
        return test

    def binary(self, level: int) -> Node:
        if level == len(BINARY_LEVELS):
            return self.unary()
        ops = BINARY_LEVELS[level]
        left = self.binary(level + 1)
        while True:
            op = self._match_op(ops)
            if op is None:
                return left
            right = self.binary(level + 1)
            left = Binary(op, left, right)

    def unary(self) -> Node:
        op = self._match_op(("!", "-", "+"))
        if op is not None:
            return Unary(op, self.unary())
        return self.postfix()

    def postfix(self) -> Node:
        node = self.primary()
        while self.current.kind == LPAREN:
            args = self._arguments()
            if isinstance(node, Name):
                node = Call(node.path, args)
            else:
                node = Call("", args, callee=node)
        return node

    def primary(self) -> Node:
        token = self.current

        if token.kind == NUMBER:
            self._advance()
            text = token.value
            if any(c in text for c in ".eE"):
                return Literal(float(text))
            return Literal(int(text))

        if token.kind == STRING:
            self._advance()
            return Literal(token.value)

        if token.kind == FIELD:
            self._advance()
            return FieldRef(token.value)

        if token.kind == IDENT:
            self._advance()
            if token.value in KEYWORDS:
                return Literal(KEYWORDS[token.value])
            return Name(token.value)

        if token.kind == LPAREN:
            self._advance()
            node = self.expression()
            self._expect(RPAREN)
            return node

        raise self._error(token)

    def _arguments(self) -> tuple[Node, ...]:
        self._expect(LPAREN)
        args: list[Node] = []
        if self.current.kind == RPAREN:
            self._advance()
            return tuple(args)
        while True:
            args.append(self._argument())
            if self.current.kind == COMMA:
                self._advance()
                continue
            self._expect(RPAREN)
            return tuple(args)

    def _argument(self) -> Node:
        token = self.current
        nxt = self.tokens[self.pos + 1] if token.kind != EOF else token
        if token.kind == OP and token.value == "*" and nxt.kind in (RPAREN, COMMA):
            self._advance()
            return Star()
        return self.expression()


def parse(text: str) -> Node:
    """解析公式文本（需已做标点预处理）"""
    try:
        return Parser(tokenize(text)).parse()
    except RecursionError as e:
        raise FormulaSyntaxError("公式嵌套过深") from e


def contains_call(node: Node) -> bool:
    """语法树中是否含函数调用"""
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Call):
            return True
        if isinstance(current, Unary):
            stack.append(current.operand)
        elif isinstance(current, Binary):
            stack.extend((current.left, current.right))
        elif isinstance(current, Conditional):
            stack.extend((current.test, current.then, current.otherwise))
    return False
