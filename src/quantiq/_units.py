"""Unit vocabulary shared by every expression evaluator.

Built-in units come from a :class:`pint.UnitRegistry`. Custom units (``$``,
``cats``, ``widgets``...) are registered at runtime, each one as a new pint base
dimension, so a custom unit only ever converts into itself and its aliases.

The vocabulary only grows: there is no way to remove a unit once registered.
"""

import logging
import re
from collections.abc import Iterable

import pint
from pint.util import UnitsContainer

from ._errors import InvalidUnitError

logger = logging.getLogger(__name__)

type UnitTerms = tuple[tuple[str, float], ...]
"""A unit as ordered ``(symbol, power)`` pairs, e.g. ``(("m", 1.0), ("s", -2.0))``."""

UNIT_SYMBOL_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")

# pint reads these as annum, barn, speed of light, elementary charge, tonne...
# They are far more likely to be variable names in an expression.
SHADOWED_BUILTIN_SYMBOLS = frozenset("abcdefijknopqrtuvwxyz")

# Built-in units that accept an SI prefix (km, mg, kPa, ms...). pint would
# also split words such as "cats" into centi + technical atmosphere + plural.
PREFIXABLE_UNITS = frozenset(
    {
        "ampere",
        "bar",
        "bit",
        "byte",
        "candela",
        "coulomb",
        "electron_volt",
        "farad",
        "gram",
        "henry",
        "hertz",
        "joule",
        "kelvin",
        "liter",
        "meter",
        "mole",
        "newton",
        "ohm",
        "pascal",
        "second",
        "siemens",
        "tesla",
        "volt",
        "watt",
        "weber",
    },
)

# Built-in units whose spelled-out name takes a plural "s" (meters, hours...)
PLURAL_UNITS = PREFIXABLE_UNITS | {"day", "foot", "hour", "inch", "mile", "minute", "week", "yard", "year"}

_CUSTOM_UNIT_PREFIX = "quantiq_custom_"


class UnitRegistry:
    """Table of unit symbols, custom and built-in.

    Every :class:`~quantiq.ExpressionEvaluator` constructed with the same
    registry sees the same custom units, including units registered after the
    evaluator was created.

    Example:
        >>> registry = UnitRegistry()
        >>> registry.register_unit("cat", aliases=["cats"])
        >>> registry.lookup("cats") == registry.lookup("cat")
        True

    """

    def __init__(self) -> None:
        self._ureg = pint.UnitRegistry()
        # symbol or alias -> pint name
        self._custom: dict[str, str] = {}
        # pint name -> symbols in registration order, primary symbol first
        self._symbols: dict[str, list[str]] = {}
        self._dimensionality: dict[str, UnitsContainer] = {}

    @staticmethod
    def is_valid_symbol(symbol: str) -> bool:
        """Check a symbol against the unit grammar: letters, ``$``, ``_`` and non-leading digits."""
        return UNIT_SYMBOL_PATTERN.fullmatch(symbol) is not None

    def register_unit(self, symbol: str, aliases: Iterable[str] | None = None) -> None:
        """Register a custom unit, or add aliases to one that already exists.

        Args:
            symbol: The unit symbol, e.g. ``"cat"``.
            aliases: Other symbols for the same unit, e.g. ``["cats"]``.

        Raises:
            InvalidUnitError: If a symbol does not follow the unit grammar.
            ValueError: If an alias already names a different custom unit.

        """
        aliases = list(aliases or ())
        for candidate in (symbol, *aliases):
            if not self.is_valid_symbol(candidate):
                msg = f'Invalid unit "{candidate}"'
                raise InvalidUnitError(msg)

        pint_name = self._custom.get(symbol)
        if pint_name is None:
            pint_name = f"{_CUSTOM_UNIT_PREFIX}{len(self._symbols)}"
            self._ureg.define(f"{pint_name} = [{pint_name}]")
            self._custom[symbol] = pint_name
            self._symbols[pint_name] = [symbol]
            logger.debug("Registered custom unit %r", symbol)

        for alias in aliases:
            existing = self._custom.get(alias)
            if existing == pint_name:
                continue
            if existing is not None:
                msg = f'Alias "{alias}" already names the custom unit "{self._symbols[existing][0]}"'
                raise ValueError(msg)
            self._custom[alias] = pint_name
            self._symbols[pint_name].append(alias)
            logger.debug("Registered alias %r for custom unit %r", alias, symbol)

    def is_custom(self, symbol: str) -> bool:
        return symbol in self._custom

    def custom_units(self) -> dict[str, list[str]]:
        """Return every custom unit as ``{symbol: [aliases...]}`` in registration order."""
        return {symbols[0]: symbols[1:] for symbols in self._symbols.values()}

    def lookup(self, symbol: str) -> str | None:
        """Return the pint name of a symbol, or None if it is not a known unit.

        Custom units take precedence over pint's built-in units.
        """
        if symbol in self._custom:
            return self._custom[symbol]
        if not self.is_valid_symbol(symbol) or symbol in SHADOWED_BUILTIN_SYMBOLS:
            return None
        return self._builtin_name(symbol)

    def resolve(self, symbol: str, *, create: bool = False) -> str | None:
        """Like :meth:`lookup`, but with ``create=True`` an unknown symbol is registered as a custom unit.

        Raises:
            InvalidUnitError: If ``create`` is set and the symbol does not follow the unit grammar.

        """
        name = self.lookup(symbol)
        if name is not None or not create:
            return name
        self.register_unit(symbol)
        return self._custom[symbol]

    def aliases(self, symbol: str) -> list[str]:
        """Return every other symbol of the custom unit named by ``symbol``."""
        pint_name = self._custom.get(symbol)
        if pint_name is None:
            return []
        return [other for other in self._symbols[pint_name] if other != symbol]

    def dimensionality(self, symbol: str) -> UnitsContainer:
        """Return the pint dimensionality of a known unit symbol."""
        name = self._require(symbol)
        if name not in self._dimensionality:
            self._dimensionality[name] = self._ureg.get_dimensionality(name)
        return self._dimensionality[name]

    def same_dimensionality(self, left: UnitTerms, right: UnitTerms) -> bool:
        return self._ureg.get_dimensionality(self._container(left)) == self._ureg.get_dimensionality(
            self._container(right),
        )

    def convert(self, value: float, source: UnitTerms, target: UnitTerms) -> float:
        """Convert a magnitude between two units.

        Raises:
            pint.DimensionalityError: If the units have different dimensionality.

        """
        quantity = self._ureg.Quantity(value, self._ureg.Unit(self._container(source)))
        return float(quantity.to(self._ureg.Unit(self._container(target))).magnitude)

    def _builtin_name(self, symbol: str) -> str | None:
        """Return the pint name of a built-in unit, without pint's free prefix and plural splitting.

        A prefix is only accepted on :data:`PREFIXABLE_UNITS` and a plural only
        on the spelled-out name of :data:`PLURAL_UNITS`, so ``cm`` and
        ``kilometers`` are built-in while ``cats`` and ``bags`` are not.
        """
        candidates = sorted(self._ureg.parse_unit_name(symbol), key=lambda c: (bool(c[2]), bool(c[0])))
        for prefix, unit_name, suffix in candidates:
            if prefix and unit_name not in PREFIXABLE_UNITS:
                continue
            if suffix and (unit_name not in PLURAL_UNITS or symbol != f"{prefix}{unit_name}{suffix}"):
                continue
            return f"{prefix}{unit_name}"
        return None

    def _require(self, symbol: str) -> str:
        name = self.lookup(symbol)
        if name is None:
            msg = f'Unknown unit "{symbol}"'
            raise InvalidUnitError(msg)
        return name

    def _container(self, terms: UnitTerms) -> UnitsContainer:
        powers: dict[str, float] = {}
        for symbol, power in terms:
            name = self._require(symbol)
            powers[name] = powers.get(name, 0.0) + power
        return UnitsContainer({name: power for name, power in powers.items() if power != 0})


_default_registry: UnitRegistry | None = None


def get_default_registry() -> UnitRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry  # noqa: PLW0603
    if _default_registry is None:
        _default_registry = UnitRegistry()
    return _default_registry
