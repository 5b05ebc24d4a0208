"""Evaluation of every variable in a graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from quantiq._resolution import UnitResult, ValueResult

if TYPE_CHECKING:
    from quantiq._models import VariableGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Computed value and unit of every variable in a graph.

    Attributes:
        values: Mapping from variable id to its value result.
        units: Mapping from variable id to its unit result.
        order: Variable ids in evaluation order, inputs first. Variables on a
            cycle come last.

    """

    values: dict[str, ValueResult] = field(default_factory=dict)
    units: dict[str, UnitResult] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[tuple[str, str]]:
        """``(variable id, error)`` pairs, value errors before unit errors."""
        errors: list[tuple[str, str]] = []
        for variable_id in self.order:
            for result in (self.values[variable_id], self.units[variable_id]):
                if result.error is not None and (variable_id, result.error) not in errors:
                    errors.append((variable_id, result.error))
        return errors

    @property
    def messages(self) -> list[tuple[str, str]]:
        """``(variable id, message)`` pairs, value messages before unit messages."""
        return [
            (variable_id, result.message)
            for variable_id in self.order
            for result in (self.values[variable_id], self.units[variable_id])
            if result.message is not None
        ]

    @property
    def success(self) -> bool:
        """Check if no variable reported an error."""
        return len(self.errors) == 0

    def get_value(self, variable_id: str) -> float | None:
        """Get the computed value of a variable.

        Raises:
            KeyError: If the variable was not evaluated.

        """
        return self.values[variable_id].value

    def get_unit(self, variable_id: str) -> str | None:
        """Get the computed unit of a variable.

        Raises:
            KeyError: If the variable was not evaluated.

        """
        return self.units[variable_id].unit


def evaluate_graph(graph: VariableGraph) -> EvaluationResult:
    """Read the computed value and unit of every variable, inputs first.

    Each read is an independent top-level resolution, so a variable on a
    cycle logs its warning once per read.
    """
    order = graph.input_graph().evaluation_order(strict=False)
    logger.debug("Evaluation order: %s", order)

    values: dict[str, ValueResult] = {}
    units: dict[str, UnitResult] = {}
    for variable_id in order:
        variable = graph[variable_id]
        values[variable_id] = variable.computed_value_result
        units[variable_id] = variable.computed_unit_result
        logger.debug("Evaluated %s: %s %s", variable_id, values[variable_id], units[variable_id])

    return EvaluationResult(values=values, units=units, order=order)
