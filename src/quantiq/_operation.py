"""Binary operation shorthand for two-input variables."""

from enum import StrEnum
from typing import Self

_ASCII_SYMBOLS = {"*": "×", "/": "÷"}


class Operation(StrEnum):
    """Operation applied to the two inputs of a variable that has no expression.

    Members serialize as their symbol. The ASCII symbols ``*`` and ``/`` and
    the member names (``"multiply"``) are accepted when reading.
    """

    def __new__(cls, value: str, doc: str = "") -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.__doc__ = doc
        return obj

    ADD = "+", "Sum of the two inputs."
    SUBTRACT = "-", "First input minus the second."
    MULTIPLY = "×", "Product of the two inputs."
    DIVIDE = "÷", "First input divided by the second."

    @classmethod
    def _missing_(cls, value: object) -> Self | None:
        if not isinstance(value, str):
            return None
        if value in _ASCII_SYMBOLS:
            return cls(_ASCII_SYMBOLS[value])
        return cls.__members__.get(value.upper())
