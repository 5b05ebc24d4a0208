"""Recursive descent parser producing a small expression tree.

Precedence, lowest first:

- ``to`` conversion (the right-hand side is a unit expression)
- ``+`` and ``-``
- ``*``, ``/``, ``×`` and ``÷``
- implicit multiplication (``2 s``, ``4 bags``)
- unary ``+`` and ``-``
- ``^`` (or ``**``), right-associative
- numbers, names and parentheses
"""

from __future__ import annotations

from dataclasses import dataclass

from quantiq._errors import ExpressionSyntaxError

from ._tokenizer import Token, TokenKind, tokenize

CONVERSION_KEYWORD = "to"

_OPERATOR_ALIASES = {"×": "*", "÷": "/", "**": "^"}


@dataclass(frozen=True, slots=True)
class Number:
    value: float


@dataclass(frozen=True, slots=True)
class Name:
    name: str


@dataclass(frozen=True, slots=True)
class UnaryOp:
    op: str
    operand: Node


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True, slots=True)
class Conversion:
    operand: Node
    target: Node


type Node = Number | Name | UnaryOp | BinaryOp | Conversion


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = tokenize(text)
        self._index = 0

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _at_operator(self, *ops: str) -> bool:
        token = self._current
        return token.kind == TokenKind.OPERATOR and _OPERATOR_ALIASES.get(token.text, token.text) in ops

    def _at_keyword(self) -> bool:
        return self._current.kind == TokenKind.NAME and self._current.text == CONVERSION_KEYWORD

    def _starts_operand(self) -> bool:
        token = self._current
        if token.kind == TokenKind.NAME:
            return token.text != CONVERSION_KEYWORD
        return token.kind in (TokenKind.NUMBER, TokenKind.LPAREN)

    def _unexpected(self) -> ExpressionSyntaxError:
        token = self._current
        if token.kind == TokenKind.END:
            return ExpressionSyntaxError("Unexpected end of expression")
        return ExpressionSyntaxError(f'Unexpected "{token.text}" at position {token.position}')

    def _expect_end(self) -> None:
        if self._current.kind != TokenKind.END:
            raise self._unexpected()

    def parse_expression(self) -> Node:
        node = self._conversion()
        self._expect_end()
        return node

    def parse_unit(self) -> Node:
        node = self._multiplicative()
        self._expect_end()
        return node

    def _conversion(self) -> Node:
        node = self._additive()
        while self._at_keyword():
            self._advance()
            node = Conversion(node, self._multiplicative())
        return node

    def _additive(self) -> Node:
        node = self._multiplicative()
        while self._at_operator("+", "-"):
            op = self._advance().text
            node = BinaryOp(op, node, self._multiplicative())
        return node

    def _multiplicative(self) -> Node:
        node = self._implicit()
        while self._at_operator("*", "/"):
            token = self._advance()
            node = BinaryOp(_OPERATOR_ALIASES.get(token.text, token.text), node, self._implicit())
        return node

    def _implicit(self) -> Node:
        node = self._unary()
        while self._starts_operand():
            node = BinaryOp("*", node, self._power())
        return node

    def _unary(self) -> Node:
        if self._at_operator("+", "-"):
            op = self._advance().text
            operand = self._unary()
            return operand if op == "+" else UnaryOp(op, operand)
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._at_operator("^"):
            self._advance()
            return BinaryOp("^", base, self._unary())
        return base

    def _primary(self) -> Node:
        token = self._current
        if token.kind == TokenKind.NUMBER:
            self._advance()
            return Number(float(token.text))
        if token.kind == TokenKind.NAME and token.text != CONVERSION_KEYWORD:
            self._advance()
            return Name(token.text)
        if token.kind == TokenKind.LPAREN:
            self._advance()
            node = self._conversion()
            if self._current.kind != TokenKind.RPAREN:
                raise self._unexpected()
            self._advance()
            return node
        raise self._unexpected()


def parse_expression(text: str) -> Node:
    """Parse an algebraic expression such as ``"(a * b) to mm^2"``.

    Raises:
        ExpressionSyntaxError: If the text is not a complete expression.

    """
    return _Parser(text).parse_expression()


def parse_unit_expression(text: str) -> Node:
    """Parse a unit string such as ``"kg*m/s^2"`` or ``"cm / things"``.

    Raises:
        ExpressionSyntaxError: If the text is not a complete unit expression.

    """
    return _Parser(text).parse_unit()
