"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from quantiq._units import UnitRegistry


class ConfigError(Exception):
    """Error in quantiq configuration."""


@dataclass(slots=True, frozen=True)
class CustomUnit:
    """Custom unit declared in the configuration, with optional aliases."""

    symbol: str
    aliases: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class QuantiqConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    input: Path | None = None
    output: Path | None = None
    units: tuple[CustomUnit, ...] = ()
    project_root: Path | None = None

    def register_units(self, registry: UnitRegistry) -> None:
        """Register the configured custom units.

        Raises:
            ConfigError: If a unit cannot be registered.

        """
        for unit in self.units:
            try:
                registry.register_unit(unit.symbol, aliases=unit.aliases)
            except ValueError as e:
                msg = f"Invalid [tool.quantiq].units entry {unit.symbol!r}: {e}"
                raise ConfigError(msg) from e


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.quantiq].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def _parse_unit(value: object) -> CustomUnit:
    """Parse one entry of the units array.

    Args:
        value: The raw value from TOML, ``"cat"`` or ``{ symbol = "cat", aliases = ["cats"] }``

    Raises:
        ConfigError: If the entry format is invalid

    """
    if isinstance(value, str):
        symbol: object = value
        aliases: object = []
    elif isinstance(value, dict):
        value_dict = cast("dict[str, object]", value)
        if "symbol" not in value_dict:
            msg = "Invalid [tool.quantiq].units entry. Expected string or table with 'symbol' key."
            raise ConfigError(msg)
        symbol = value_dict["symbol"]
        aliases = value_dict.get("aliases", [])
    else:
        msg = "Invalid [tool.quantiq].units entry. Expected string or table with 'symbol' key."
        raise ConfigError(msg)

    if not isinstance(symbol, str) or not UnitRegistry.is_valid_symbol(symbol):
        msg = f"Invalid [tool.quantiq].units symbol: {symbol!r}"
        raise ConfigError(msg)
    if not isinstance(aliases, list) or not all(
        isinstance(alias, str) and UnitRegistry.is_valid_symbol(alias) for alias in aliases
    ):
        msg = f"Invalid [tool.quantiq].units aliases for {symbol!r}: expected list of unit symbols"
        raise ConfigError(msg)
    return CustomUnit(symbol=symbol, aliases=tuple(cast("list[str]", aliases)))


def load_config(pyproject_path: Path) -> QuantiqConfig:
    """Load and validate [tool.quantiq] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed QuantiqConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    quantiq_section = data.get("tool", {}).get("quantiq", {})
    if not quantiq_section:
        return QuantiqConfig(project_root=project_root)

    units_value = quantiq_section.get("units", [])
    if not isinstance(units_value, list):
        msg = "Invalid [tool.quantiq].units: expected array"
        raise ConfigError(msg)

    return QuantiqConfig(
        input=_parse_path(quantiq_section, "input", project_root),
        output=_parse_path(quantiq_section, "output", project_root),
        units=tuple(_parse_unit(value) for value in units_value),
        project_root=project_root,
    )


def get_config() -> QuantiqConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        QuantiqConfig (may be empty if no pyproject.toml or no [tool.quantiq] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return QuantiqConfig()
    return load_config(pyproject_path)
