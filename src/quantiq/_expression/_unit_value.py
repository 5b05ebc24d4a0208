"""Magnitudes tagged with a unit, and the arithmetic between them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pint

from quantiq._errors import ArgumentTypeError, ExpressionError, ExpressionSyntaxError, UnitMismatchError
from quantiq._format import format_magnitude

from ._parser import BinaryOp, Name, Node, Number, UnaryOp, parse_unit_expression

if TYPE_CHECKING:
    from quantiq._units import UnitRegistry, UnitTerms

_POWER_TOLERANCE = 1e-12
_SIGNIFICANT_DIGITS = 15


def round_significant(value: float) -> float:
    """Round to 15 significant digits, hiding the noise of binary conversion factors."""
    if value == 0 or not math.isfinite(value):
        return value
    return float(f"{value:.{_SIGNIFICANT_DIGITS}g}")


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def divide(left: float, right: float) -> float:
    """Divide with IEEE semantics: ``1 / 0`` is infinity, ``0 / 0`` is NaN."""
    try:
        return left / right
    except ZeroDivisionError:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)


def power(base: float, exponent: float) -> float | complex:
    """Raise to a power; a negative base with a fractional exponent gives a complex result."""
    try:
        return base**exponent
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        return math.inf


def _multiply(left: float | None, right: float | None) -> float | None:
    if left is None or right is None:
        return None
    return left * right


def _combine(left: UnitTerms, right: UnitTerms, sign: float) -> UnitTerms:
    powers = dict(left)
    for symbol, exponent in right:
        powers[symbol] = powers.get(symbol, 0.0) + sign * exponent
    return tuple((symbol, exponent) for symbol, exponent in powers.items() if abs(exponent) > _POWER_TOLERANCE)


def _scale(terms: UnitTerms, factor: float) -> UnitTerms:
    return tuple((symbol, exponent * factor) for symbol, exponent in terms if abs(exponent * factor) > _POWER_TOLERANCE)


def _format_term(symbol: str, exponent: float) -> str:
    return symbol if exponent == 1 else f"{symbol}^{format_magnitude(exponent)}"


def _unexpected_type(function: str, expected: str, actual: str) -> str:
    return f"Unexpected type of argument in function {function} (expected: {expected}, actual: {actual})"


def _kind(value: object) -> str:
    if isinstance(value, UnitValue):
        return "Unit"
    if is_number(value):
        return "number"
    return type(value).__name__


def _exponent(node: Node) -> float:
    match node:
        case Number(value):
            return value
        case UnaryOp("-", Number(value)):
            return -value
        case _:
            msg = "Unit exponents must be numbers"
            raise ExpressionSyntaxError(msg)


def unit_terms(node: Node, registry: UnitRegistry) -> UnitTerms:
    """Turn a parsed unit expression into ``(symbol, power)`` terms.

    Unknown but well-formed symbols are registered as custom units on the way.
    """
    match node:
        case Name(symbol):
            registry.resolve(symbol, create=True)
            return ((symbol, 1.0),)
        case Number(1.0):
            return ()
        case BinaryOp("*", left, right):
            return _combine(unit_terms(left, registry), unit_terms(right, registry), 1.0)
        case BinaryOp("/", left, right):
            return _combine(unit_terms(left, registry), unit_terms(right, registry), -1.0)
        case BinaryOp("^", base, exponent):
            return _scale(unit_terms(base, registry), _exponent(exponent))
        case _:
            msg = "Invalid unit expression"
            raise ExpressionSyntaxError(msg)


def parse_unit(text: str, registry: UnitRegistry) -> UnitTerms:
    """Parse a unit string into terms.

    Raises:
        ExpressionSyntaxError: If the string is malformed, e.g. ``"m/"``.
        InvalidUnitError: If a symbol breaks the unit grammar, e.g. ``"Ā"``.

    """
    return unit_terms(parse_unit_expression(text), registry)


@dataclass(frozen=True, slots=True)
class UnitValue:
    """A magnitude with a unit, or a unit alone when ``value`` is None.

    ``history`` lists the unit symbols that entered the computation producing
    this value, oldest first. :meth:`simplify` uses it to pick, for each
    dimension, the unit that was seen last.
    """

    value: float | None
    units: UnitTerms
    registry: UnitRegistry = field(compare=False, repr=False)
    history: tuple[str, ...] = field(default=(), compare=False, repr=False)

    @classmethod
    def parse(cls, value: float | None, unit: str, registry: UnitRegistry) -> UnitValue:
        terms = parse_unit(unit, registry)
        return cls(
            value=None if value is None else float(value),
            units=terms,
            registry=registry,
            history=tuple(symbol for symbol, _ in terms),
        )

    @property
    def has_units(self) -> bool:
        return bool(self.units)

    def to_number(self) -> float | None:
        return self.value

    def format_units(self) -> str:
        """Format the unit: ``m^2``, ``m / s``, ``(m s) / s``, ``s^-1``, or ``""`` when unitless."""
        numerator = [(symbol, exponent) for symbol, exponent in self.units if exponent > 0]
        denominator = [(symbol, -exponent) for symbol, exponent in self.units if exponent < 0]
        if not denominator:
            return " ".join(_format_term(symbol, exponent) for symbol, exponent in numerator)
        if not numerator:
            return " ".join(_format_term(symbol, -exponent) for symbol, exponent in denominator)
        top = " ".join(_format_term(symbol, exponent) for symbol, exponent in numerator)
        bottom = " ".join(_format_term(symbol, exponent) for symbol, exponent in denominator)
        if len(numerator) > 1:
            top = f"({top})"
        if len(denominator) > 1:
            bottom = f"({bottom})"
        return f"{top} / {bottom}"

    def __str__(self) -> str:
        units = self.format_units()
        if self.value is None:
            return units
        return f"{format_magnitude(self.value)} {units}".rstrip()

    def to(self, target: str | UnitTerms) -> UnitValue:
        """Convert to another unit of the same dimensionality.

        Raises:
            UnitMismatchError: If the dimensionality differs.

        """
        terms = parse_unit(target, self.registry) if isinstance(target, str) else target
        if not self.registry.same_dimensionality(self.units, terms):
            msg = f"Units do not match ({self.format_units() or 'unitless'} cannot be converted to {_format_terms(terms, self.registry)})"
            raise UnitMismatchError(msg)
        value = None if self.value is None else self._convert(self.value, self.units, terms)
        return UnitValue(value, terms, self.registry, self.history + tuple(symbol for symbol, _ in terms))

    def simplify(self) -> UnitValue:
        """Reduce the unit to one symbol per dimension, rescaling the magnitude.

        ``m s / s`` becomes ``m`` and ``m / cm`` becomes unitless. When several
        units of one dimension took part in the computation, the one seen last
        wins, so ``(1 m + 100 cm).simplify()`` is ``200 cm``.
        """
        groups: dict[object, list[tuple[str, float]]] = {}
        for symbol, exponent in self.units:
            groups.setdefault(self.registry.dimensionality(symbol), []).append((symbol, exponent))

        value = self.value
        terms: list[tuple[str, float]] = []
        for dimensionality, members in groups.items():
            chosen = self._latest_symbol(dimensionality) or members[0][0]
            total = 0.0
            for symbol, exponent in members:
                total += exponent
                if symbol != chosen and value is not None:
                    value *= self.registry.convert(1.0, ((symbol, 1.0),), ((chosen, 1.0),)) ** exponent
            if abs(total) > _POWER_TOLERANCE:
                terms.append((chosen, total))

        if value is not None:
            value = round_significant(value)
        return UnitValue(value, tuple(terms), self.registry, self.history)

    def _latest_symbol(self, dimensionality: object) -> str | None:
        for symbol in reversed(self.history):
            if self.registry.lookup(symbol) is not None and self.registry.dimensionality(symbol) == dimensionality:
                return symbol
        return None

    def _convert(self, value: float, source: UnitTerms, target: UnitTerms) -> float:
        try:
            return round_significant(self.registry.convert(value, source, target))
        except pint.DimensionalityError as e:
            msg = f"Units do not match ({e})"
            raise UnitMismatchError(msg) from e

    def _result(self, value: float | None, units: UnitTerms, history: tuple[str, ...]) -> UnitValue | float:
        # Units that cancel completely leave a plain number
        if not units and value is not None:
            return value
        return UnitValue(value, units, self.registry, history)

    def _add(self, other: object, sign: float, function: str) -> UnitValue:
        if not isinstance(other, UnitValue):
            raise ArgumentTypeError(_unexpected_type(function, "Unit", _kind(other)))
        if not self.registry.same_dimensionality(self.units, other.units):
            msg = f"Units do not match ({self.format_units() or 'unitless'} and {other.format_units() or 'unitless'})"
            raise UnitMismatchError(msg)
        if self.value is None or other.value is None:
            msg = f"Cannot {function} units without a value"
            raise ExpressionError(msg)
        converted = self._convert(other.value, other.units, self.units)
        return UnitValue(self.value + sign * converted, self.units, self.registry, self.history + other.history)

    def __add__(self, other: object) -> UnitValue:
        return self._add(other, 1.0, "add")

    def __sub__(self, other: object) -> UnitValue:
        return self._add(other, -1.0, "subtract")

    def __radd__(self, other: object) -> UnitValue:
        raise ArgumentTypeError(_unexpected_type("add", _kind(other), "Unit"))

    def __rsub__(self, other: object) -> UnitValue:
        raise ArgumentTypeError(_unexpected_type("subtract", _kind(other), "Unit"))

    def __mul__(self, other: object) -> UnitValue | float:
        if isinstance(other, UnitValue):
            return self._result(
                _multiply(self.value, other.value),
                _combine(self.units, other.units, 1.0),
                self.history + other.history,
            )
        if is_number(other):
            return self._result(_multiply(self.value, float(other)), self.units, self.history)  # type: ignore[arg-type]
        raise ArgumentTypeError(_unexpected_type("multiply", "number | Unit", _kind(other)))

    def __rmul__(self, other: object) -> UnitValue | float:
        return self.__mul__(other)

    def __truediv__(self, other: object) -> UnitValue | float:
        if isinstance(other, UnitValue):
            value = None if self.value is None or other.value is None else divide(self.value, other.value)
            return self._result(value, _combine(self.units, other.units, -1.0), self.history + other.history)
        if is_number(other):
            value = None if self.value is None else divide(self.value, float(other))  # type: ignore[arg-type]
            return self._result(value, self.units, self.history)
        raise ArgumentTypeError(_unexpected_type("divide", "number | Unit", _kind(other)))

    def __rtruediv__(self, other: object) -> UnitValue | float:
        if not is_number(other):
            raise ArgumentTypeError(_unexpected_type("divide", "number | Unit", _kind(other)))
        value = None if self.value is None else divide(float(other), self.value)  # type: ignore[arg-type]
        return self._result(value, _scale(self.units, -1.0), self.history)

    def __pow__(self, exponent: object) -> UnitValue | float:
        if not is_number(exponent):
            raise ArgumentTypeError(_unexpected_type("pow", "number", _kind(exponent)))
        exponent = float(exponent)  # type: ignore[arg-type]
        value = None if self.value is None else power(self.value, exponent)
        if isinstance(value, complex):
            msg = "Cannot raise a unit value to a fractional power with a negative magnitude"
            raise ExpressionError(msg)
        return self._result(value, _scale(self.units, exponent), self.history)

    def __rpow__(self, base: object) -> UnitValue:
        raise ArgumentTypeError(_unexpected_type("pow", "number", "Unit"))

    def __neg__(self) -> UnitValue:
        return UnitValue(None if self.value is None else -self.value, self.units, self.registry, self.history)

    def __pos__(self) -> UnitValue:
        return self


def _format_terms(terms: UnitTerms, registry: UnitRegistry) -> str:
    return UnitValue(None, terms, registry).format_units() or "unitless"
