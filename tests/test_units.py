"""Tests for the unit registry."""

import pint
import pytest

from quantiq import InvalidUnitError, UnitRegistry, get_default_registry


class TestLookup:
    """Tests for resolving unit symbols."""

    def test_builtin_unit(self, registry: UnitRegistry) -> None:
        assert registry.lookup("m") == "meter"
        assert registry.lookup("cm") == "centimeter"

    def test_unknown_symbol(self, registry: UnitRegistry) -> None:
        assert registry.lookup("things") is None

    @pytest.mark.parametrize(
        ("symbol", "expected"),
        [
            ("km", "kilometer"),
            ("ms", "millisecond"),
            ("kPa", "kilopascal"),
            ("min", "minute"),
            ("meters", "meter"),
            ("kilometers", "kilometer"),
            ("hours", "hour"),
        ],
    )
    def test_prefixed_and_plural_builtin_units(self, registry: UnitRegistry, symbol: str, expected: str) -> None:
        assert registry.lookup(symbol) == expected

    @pytest.mark.parametrize("symbol", ["cat", "cats", "hats", "bags"])
    def test_words_pint_would_split_are_not_builtin(self, registry: UnitRegistry, symbol: str) -> None:
        """Words like "cats" are not read as centi + technical atmosphere + plural."""
        assert registry.lookup(symbol) is None

        registry.resolve(symbol, create=True)

        assert registry.is_custom(symbol)

    @pytest.mark.parametrize("symbol", ["a", "b", "x", "y"])
    def test_single_letters_are_not_units(self, registry: UnitRegistry, symbol: str) -> None:
        """Single letters pint would read as units are left for variable names."""
        assert registry.lookup(symbol) is None

    @pytest.mark.parametrize("symbol", ["Ā", "✔", "1m", ""])
    def test_invalid_symbol(self, registry: UnitRegistry, symbol: str) -> None:
        assert not UnitRegistry.is_valid_symbol(symbol)
        assert registry.lookup(symbol) is None

    def test_resolve_without_create(self, registry: UnitRegistry) -> None:
        assert registry.resolve("things") is None
        assert not registry.is_custom("things")

    def test_resolve_with_create_registers(self, registry: UnitRegistry) -> None:
        name = registry.resolve("things", create=True)

        assert name is not None
        assert registry.is_custom("things")
        assert registry.lookup("things") == name

    def test_resolve_with_create_rejects_invalid_symbol(self, registry: UnitRegistry) -> None:
        with pytest.raises(InvalidUnitError):
            registry.resolve("Ā", create=True)


class TestRegisterUnit:
    """Tests for custom unit registration."""

    def test_register_with_aliases(self, registry: UnitRegistry) -> None:
        registry.register_unit("cat", aliases=["cats"])

        assert registry.lookup("cats") == registry.lookup("cat")
        assert registry.aliases("cat") == ["cats"]
        assert registry.aliases("cats") == ["cat"]
        assert registry.custom_units() == {"cat": ["cats"]}

    def test_register_is_idempotent(self, registry: UnitRegistry) -> None:
        registry.register_unit("cat")
        name = registry.lookup("cat")
        registry.register_unit("cat")

        assert registry.lookup("cat") == name
        assert registry.custom_units() == {"cat": []}

    def test_repeated_registration_adds_aliases(self, registry: UnitRegistry) -> None:
        registry.register_unit("cat")
        registry.register_unit("cat", aliases=["cats", "kitty"])

        assert registry.custom_units() == {"cat": ["cats", "kitty"]}

    def test_alias_of_another_unit_is_rejected(self, registry: UnitRegistry) -> None:
        registry.register_unit("dog")

        with pytest.raises(ValueError, match="dog"):
            registry.register_unit("cat", aliases=["dog"])

    def test_invalid_symbol_is_rejected(self, registry: UnitRegistry) -> None:
        with pytest.raises(InvalidUnitError):
            registry.register_unit("✔")

    def test_custom_units_override_builtin(self, registry: UnitRegistry) -> None:
        assert registry.same_dimensionality((("cup", 1.0),), (("ml", 1.0),))

        registry.register_unit("cup")

        assert registry.is_custom("cup")
        assert not registry.same_dimensionality((("cup", 1.0),), (("ml", 1.0),))

    def test_unknown_unit_is_not_a_dimension(self, registry: UnitRegistry) -> None:
        with pytest.raises(InvalidUnitError, match="Unknown unit"):
            registry.dimensionality("things")


class TestConvert:
    """Tests for conversion between units."""

    def test_builtin_conversion(self, registry: UnitRegistry) -> None:
        assert registry.convert(1.0, (("m", 1.0),), (("cm", 1.0),)) == pytest.approx(100.0)

    def test_compound_conversion(self, registry: UnitRegistry) -> None:
        result = registry.convert(1.0, (("km", 1.0), ("h", -1.0)), (("m", 1.0), ("s", -1.0)))
        assert result == pytest.approx(1000 / 3600)

    def test_incompatible_dimensions(self, registry: UnitRegistry) -> None:
        with pytest.raises(pint.DimensionalityError):
            registry.convert(1.0, (("m", 1.0),), (("s", 1.0),))

    def test_alias_converts_with_factor_one(self, registry: UnitRegistry) -> None:
        registry.register_unit("cat", aliases=["cats"])

        assert registry.convert(3.0, (("cats", 1.0),), (("cat", 1.0),)) == pytest.approx(3.0)

    def test_custom_units_do_not_convert_into_each_other(self, registry: UnitRegistry) -> None:
        registry.register_unit("cat")
        registry.register_unit("dog")

        assert not registry.same_dimensionality((("cat", 1.0),), (("dog", 1.0),))
        with pytest.raises(pint.DimensionalityError):
            registry.convert(1.0, (("cat", 1.0),), (("dog", 1.0),))

    def test_same_dimensionality(self, registry: UnitRegistry) -> None:
        assert registry.same_dimensionality((("m", 1.0), ("s", -1.0)), (("km", 1.0), ("h", -1.0)))
        assert registry.same_dimensionality((), ())
        assert not registry.same_dimensionality((("m", 1.0),), ())


class TestDefaultRegistry:
    """Tests for the process-wide registry."""

    def test_returns_same_instance(self) -> None:
        assert get_default_registry() is get_default_registry()
