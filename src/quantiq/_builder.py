"""Derivation of the effective expression of a variable."""

import re
from collections.abc import Sequence

from ._operation import Operation

INPUT_TOKEN_PREFIX = "input_"

_IDENTIFIER_PATTERN = re.compile(r"(?<![\w$])(?:[^\W\d]|\$)[\w$]*")
INPUT_TOKEN_PATTERN = re.compile(rf"(?<![\w$]){INPUT_TOKEN_PREFIX}(\d+)(?![\w$])")


def input_token(index: int) -> str:
    """Return the positional token of the input at ``index``, e.g. ``"input_0"``."""
    return f"{INPUT_TOKEN_PREFIX}{index}"


def replace_input_names(expression: str, input_names: Sequence[str | None]) -> str:
    """Replace each standalone input name in an expression with its positional token.

    Names are matched as whole identifiers, so ``a`` in ``ab`` is left alone.
    When two inputs share a name the first one wins.
    """
    tokens: dict[str, str] = {}
    for index, name in enumerate(input_names):
        if name and name not in tokens:
            tokens[name] = input_token(index)
    if not tokens:
        return expression
    return _IDENTIFIER_PATTERN.sub(lambda match: tokens.get(match.group(), match.group()), expression)


def build_expression(
    expression: str | None,
    operation: Operation | None,
    input_names: Sequence[str | None],
    unit: str | None = None,
) -> str | None:
    """Return the expression a variable evaluates, or None if it has none.

    Args:
        expression: The user expression, written with input names.
        operation: The binary shorthand used when there is no expression.
        input_names: Names of the connected inputs, in order.
        unit: The variable's own unit; when set the result is converted to it.

    Example:
        >>> build_expression(None, Operation.MULTIPLY, ["a", "b"], "mm^2")
        '(input_0 × input_1) to mm^2'

    """
    if expression:
        base = replace_input_names(expression, input_names)
    elif len(input_names) == 2 and operation is not None:  # noqa: PLR2004
        base = f"{input_token(0)} {operation.value} {input_token(1)}"
    elif len(input_names) == 1:
        base = input_token(0)
    else:
        return None

    if unit:
        return f"({base}) to {unit}"
    return base


def referenced_inputs(expression: str | None) -> list[int]:
    """Return the sorted positions of the input tokens an expression uses."""
    if not expression:
        return []
    return sorted({int(match.group(1)) for match in INPUT_TOKEN_PATTERN.finditer(expression)})
