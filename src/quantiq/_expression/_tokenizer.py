"""Tokenizer for algebraic expressions and unit strings."""

import re
from dataclasses import dataclass
from enum import StrEnum

from quantiq._errors import ExpressionSyntaxError


class TokenKind(StrEnum):
    NUMBER = "number"
    NAME = "name"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    END = "end"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    position: int


# Names may start with any letter, "_" or "$" so that expressions can use
# unicode variable names; the unit grammar is stricter and checked later.
_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>(?:[^\W\d]|\$)[\w$]*)
    | (?P<operator>\*\*|[-+*/^×÷])
    | (?P<lparen>\()
    | (?P<rparen>\))
    """,
    re.VERBOSE,
)

_KINDS = {
    "number": TokenKind.NUMBER,
    "name": TokenKind.NAME,
    "operator": TokenKind.OPERATOR,
    "lparen": TokenKind.LPAREN,
    "rparen": TokenKind.RPAREN,
}


def tokenize(text: str) -> list[Token]:
    """Split text into tokens, ending with a single END token.

    Raises:
        ExpressionSyntaxError: On a character that cannot start any token, or a number such as ``1.5.3``.

    """
    tokens: list[Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_PATTERN.match(text, position)
        if match is None:
            msg = f'Unexpected character "{text[position]}" at position {position}'
            raise ExpressionSyntaxError(msg)
        group = match.lastgroup
        end = match.end()
        if group == "number" and end < len(text) and (text[end] == "." or text[end].isdigit()):
            msg = f'Malformed number "{text[position : end + 1]}" at position {position}'
            raise ExpressionSyntaxError(msg)
        if group is not None and group != "space":
            tokens.append(Token(_KINDS[group], match.group(), position))
        position = end
    tokens.append(Token(TokenKind.END, "", position))
    return tokens
