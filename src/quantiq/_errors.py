"""Exceptions raised while parsing and evaluating expressions.

The resolvers catch these and turn them into error or message strings, so
none of them crosses the public read interface of a variable.
"""


class ExpressionError(Exception):
    """Base class for failures while parsing or evaluating an expression."""


class ExpressionSyntaxError(ExpressionError):
    """The expression or unit string could not be parsed."""


class UndefinedSymbolError(ExpressionError):
    """A name is neither in the scope nor a known unit."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Undefined symbol {name}")


class InvalidUnitError(ExpressionError):
    """A unit symbol does not follow the unit grammar."""


class UnitMismatchError(ExpressionError):
    """Two quantities of different dimensionality were added, subtracted or converted."""


class ArgumentTypeError(ExpressionError):
    """A plain number was combined with a unit-bearing value where that is not allowed."""
