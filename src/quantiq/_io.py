from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w

from ._models import VariableGraph

if TYPE_CHECKING:
    from ._eval_engine import EvaluationResult
    from ._units import UnitRegistry

logger = logging.getLogger(__name__)

TOML_SUFFIX = ".toml"
JSON_SUFFIX = ".json"


def _check_suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in (TOML_SUFFIX, JSON_SUFFIX):
        msg = f"Unsupported graph file format: {path} (expected {TOML_SUFFIX} or {JSON_SUFFIX})"
        raise ValueError(msg)
    return suffix


def load_state(path: Path | str) -> dict[str, Any]:
    """Read a graph snapshot from a TOML or JSON file.

    Raises:
        ValueError: If the file extension is not supported.

    """
    path = Path(path)
    suffix = _check_suffix(path)
    with path.open("rb") as f:
        state = tomllib.load(f) if suffix == TOML_SUFFIX else json.load(f)
    logger.debug(f"Loaded graph snapshot from {path}")
    return state


def load_graph(path: Path | str, *, registry: UnitRegistry | None = None) -> VariableGraph:
    """Load a graph from a snapshot file.

    The file holds ``items``, an array of variables with camelCase keys, as
    produced by :func:`save_graph`.

    Raises:
        ValueError: If the file extension is not supported.
        pydantic.ValidationError: If the snapshot is malformed.

    """
    return VariableGraph.from_state(load_state(path), registry=registry)


def save_graph(graph: VariableGraph, path: Path | str) -> None:
    """Write a graph snapshot to a TOML or JSON file, chosen by extension.

    Raises:
        ValueError: If the file extension is not supported.

    """
    path = Path(path)
    suffix = _check_suffix(path)
    state = graph.get_state()
    if suffix == TOML_SUFFIX:
        with path.open("wb") as f:
            tomli_w.dump(state, f)
    else:
        path.write_text(json.dumps(state, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug(f"Saved graph snapshot to {path}")


def results_to_dict(graph: VariableGraph, result: EvaluationResult) -> dict[str, Any]:
    """Convert evaluation results to a dictionary keyed by variable id.

    Returns:
        A dictionary with one table per variable, absent fields omitted:
        {
            "<id>": {
                "name": "speed",
                "value": 2.0,
                "unit": "m / s",
                "value_error": "...",
                "value_message": "...",
                "unit_error": "...",
                "unit_message": "...",
            }
        }

    """
    data: dict[str, Any] = {}
    for variable_id in result.order:
        variable = graph.get(variable_id)
        entry: dict[str, Any] = {}
        if variable is not None and variable.name is not None:
            entry["name"] = variable.name
        value = result.values[variable_id]
        unit = result.units[variable_id]
        for key, item in (
            ("value", value.value),
            ("unit", unit.unit),
            ("value_error", value.error),
            ("value_message", value.message),
            ("unit_error", unit.error),
            ("unit_message", unit.message),
        ):
            if item is not None:
                entry[key] = item
        data[variable_id] = entry
    return data


def export_results_to_toml(graph: VariableGraph, result: EvaluationResult, output_path: Path | str) -> None:
    """Export evaluation results to a TOML file.

    Args:
        graph: The evaluated graph.
        result: The evaluation results from :func:`~quantiq.evaluate_graph`.
        output_path: Path to the output TOML file.

    """
    toml_data = results_to_dict(graph, result)

    output_path = Path(output_path)
    with output_path.open("wb") as f:
        tomli_w.dump(toml_data, f)

    logger.debug(f"Exported results to {output_path}")
