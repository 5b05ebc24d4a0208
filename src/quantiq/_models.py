"""Variables and the graph that owns them."""

from __future__ import annotations

import logging
import math
import re
import secrets
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

from ._builder import INPUT_TOKEN_PATTERN, build_expression
from ._cycle import CycleGuard
from ._expression import ExpressionEvaluator, Quantity
from ._format import format_display_value, format_magnitude
from ._operation import Operation
from ._resolution import (
    UnitResult,
    ValueResult,
    computed_unit_result,
    computed_value_result,
)
from ._resolution import math_value as _math_value
from ._resolution import math_value_or_1 as _math_value_or_1
from ._units import UnitRegistry, get_default_registry

if TYPE_CHECKING:
    from ._graph import InputGraph

logger = logging.getLogger(__name__)

ID_LENGTH = 16
DEFAULT_COLOR = "light-gray"
LABEL_SEPARATOR = ":"


def generate_id() -> str:
    """Return a random URL-safe id of 16 characters."""
    return secrets.token_urlsafe(ID_LENGTH)[:ID_LENGTH]


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


class Variable(BaseModel):
    """A quantity in the graph.

    A variable without connected inputs shows its own value and unit. With
    inputs it combines their computed values through its expression, or
    through ``operation`` when it has exactly two inputs and no expression.

    Computed values and units are derived on every read and never stored.

    Example:
        >>> graph = VariableGraph()
        >>> a = graph.add(Variable(name="a", value=20, unit="m"))
        >>> b = graph.add(Variable(name="b", value=10, unit="s"))
        >>> speed = graph.add(Variable(input_ids=[a.id, b.id], operation=Operation.DIVIDE))
        >>> speed.computed_value, speed.computed_unit
        (2.0, 'm / s')

    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_id, frozen=True)
    name: str | None = None
    display_name: str | None = None
    value: float | None = None
    unit: str | None = None
    expression: str | None = None
    operation: Operation | None = None
    input_ids: list[str] = Field(default_factory=list, alias="inputs")
    description: str | None = None
    icon: str | None = None
    color: str = DEFAULT_COLOR
    labels: list[str] = Field(default_factory=list)

    _graph: VariableGraph | None = PrivateAttr(default=None)
    _temporary_value: float | None = PrivateAttr(default=None)

    @field_validator("value")
    @classmethod
    def _normalize_value(cls, value: float | None) -> float | None:
        return _finite_or_none(value)

    @field_validator("unit", "expression")
    @classmethod
    def _normalize_blank(cls, text: str | None) -> str | None:
        if text is None or not text.strip():
            return None
        return text

    # Setters

    def set_value(self, value: float | None) -> None:
        self.value = value

    def set_temporary_value(self, value: float | None) -> None:
        """Set a value that overrides ``value`` until it is committed or cleared."""
        self._temporary_value = _finite_or_none(value)

    def commit_temporary_value(self) -> None:
        """Move the temporary value into ``value`` and clear it."""
        if self._temporary_value is None:
            return
        self.value = self._temporary_value
        self._temporary_value = None

    def set_unit(self, unit: str | None) -> None:
        self.unit = unit

    def set_name(self, name: str | None) -> None:
        self.name = name

    def set_display_name(self, display_name: str | None) -> None:
        self.display_name = display_name

    def set_description(self, description: str | None) -> None:
        self.description = description

    def set_operation(self, operation: Operation | None) -> None:
        self.operation = operation

    def set_expression(self, expression: str | None) -> None:
        self.expression = expression

    def set_icon(self, icon: str | None) -> None:
        self.icon = icon

    def set_color(self, color: str) -> None:
        self.color = color

    def add_input(self, source: Variable | str) -> None:
        """Append an input, given as a variable or its id."""
        source_id = source if isinstance(source, str) else source.id
        self.input_ids = [*self.input_ids, source_id]

    def remove_input(self, source: Variable | str) -> None:
        """Remove every reference to an input, given as a variable or its id."""
        source_id = source if isinstance(source, str) else source.id
        self.input_ids = [input_id for input_id in self.input_ids if input_id != source_id]

    # Labels

    def add_label(self, label: str) -> None:
        if label not in self.labels:
            self.labels = [*self.labels, label]

    def remove_label(self, label: str) -> None:
        self.labels = [existing for existing in self.labels if existing != label]

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def has_label_type(self, label_type: str) -> bool:
        return any(True for _ in self._label_values(label_type))

    def get_type(self, label_type: str) -> str | None:
        """Return the first value of a ``type:value`` label, e.g. ``get_type("shape")``."""
        return next(self._label_values(label_type), None)

    def get_all_of_type(self, label_type: str) -> list[str]:
        return list(self._label_values(label_type))

    def _label_values(self, label_type: str) -> Iterator[str]:
        prefix = f"{label_type}{LABEL_SEPARATOR}"
        return (label.removeprefix(prefix) for label in self.labels if label.startswith(prefix))

    # Graph access

    @property
    def graph(self) -> VariableGraph | None:
        return self._graph

    @property
    def evaluator(self) -> ExpressionEvaluator:
        if self._graph is not None:
            return self._graph.evaluator
        return ExpressionEvaluator(get_default_registry())

    @property
    def inputs(self) -> list[Variable | None]:
        """Inputs in order; an id that names no variable in the graph gives None."""
        if self._graph is None:
            return [None] * len(self.input_ids)
        return [self._graph.get(input_id) for input_id in self.input_ids]

    @property
    def connected_inputs(self) -> list[Variable]:
        return [source for source in self.inputs if source is not None]

    @property
    def number_of_inputs(self) -> int:
        return len(self.connected_inputs)

    @property
    def input_names(self) -> list[str | None]:
        return [source.name for source in self.connected_inputs]

    @property
    def current_value(self) -> float | None:
        """The own value, or the temporary value while one is set."""
        if self._temporary_value is not None:
            return self._temporary_value
        return self.value

    @property
    def processed_expression(self) -> str | None:
        """The expression evaluated for this variable, written with ``input_N`` tokens."""
        return build_expression(self.expression, self.operation, self.input_names, self.unit)

    @property
    def calculation_string(self) -> str | None:
        """The processed expression with each input token replaced by the input's value and unit."""
        expression = self.processed_expression
        if expression is None:
            return None
        inputs = self.connected_inputs

        def replace(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index >= len(inputs):
                return match.group()
            source = inputs[index]
            value = source.computed_value
            text = "NaN" if value is None else format_magnitude(value)
            unit = source.computed_unit
            return f"{text} {unit}" if unit else text

        return INPUT_TOKEN_PATTERN.sub(replace, expression)

    # Computed reads

    @property
    def computed_value_result(self) -> ValueResult:
        return computed_value_result(self)

    @property
    def computed_unit_result(self) -> UnitResult:
        return computed_unit_result(self)

    @property
    def computed_value(self) -> float | None:
        return self.computed_value_result.value

    @property
    def computed_value_with_significant_digits(self) -> str:
        return format_display_value(self.computed_value)

    @property
    def computed_value_error(self) -> str | None:
        return self.computed_value_result.error

    @property
    def computed_value_message(self) -> str | None:
        return self.computed_value_result.message

    @property
    def computed_unit(self) -> str | None:
        return self.computed_unit_result.unit

    @property
    def computed_unit_error(self) -> str | None:
        return self.computed_unit_result.error

    @property
    def computed_unit_message(self) -> str | None:
        return self.computed_unit_result.message

    @property
    def math_value(self) -> Quantity | None:
        return _math_value(self)

    @property
    def math_value_or_1(self) -> Quantity | None:
        return _math_value_or_1(self)


class GraphSnapshot(BaseModel):
    """Serialized form of a graph: ``{"items": [...]}``."""

    items: list[Variable] = Field(default_factory=list)


class VariableGraph:
    """Id-keyed collection owning a set of variables.

    Inputs reference other variables by id. All variables of a graph share
    one evaluator and one cycle guard.
    """

    def __init__(self, variables: Iterable[Variable] = (), *, registry: UnitRegistry | None = None) -> None:
        self.registry = registry if registry is not None else get_default_registry()
        self.evaluator = ExpressionEvaluator(self.registry)
        self.cycle_guard = CycleGuard()
        self._variables: dict[str, Variable] = {}
        for variable in variables:
            self.add(variable)

    def add(self, variable: Variable) -> Variable:
        """Add a variable and return it.

        Raises:
            ValueError: If a variable with the same id already exists, or the
                variable belongs to another graph.

        """
        if variable._graph is not None and variable._graph is not self:  # noqa: SLF001
            msg = f"Variable {variable.id!r} already belongs to another graph"
            raise ValueError(msg)
        if variable.id in self._variables:
            msg = f"Variable with id {variable.id!r} already exists"
            raise ValueError(msg)
        variable._graph = self  # noqa: SLF001
        self._variables[variable.id] = variable
        logger.debug("Added variable %s", variable.id)
        return variable

    def remove(self, variable: Variable | str) -> None:
        """Remove a variable and drop every reference to it from other inputs.

        Raises:
            KeyError: If the variable is not in the graph.

        """
        variable_id = variable if isinstance(variable, str) else variable.id
        removed = self._variables.pop(variable_id)
        removed._graph = None  # noqa: SLF001
        for other in self._variables.values():
            if variable_id in other.input_ids:
                other.remove_input(variable_id)
        logger.debug("Removed variable %s", variable_id)

    def get(self, variable_id: str) -> Variable | None:
        return self._variables.get(variable_id)

    def find_by_name(self, name: str) -> Variable | None:
        """Return the first variable with the given name."""
        return next((variable for variable in self._variables.values() if variable.name == name), None)

    def __getitem__(self, variable_id: str) -> Variable:
        return self._variables[variable_id]

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._variables.values())

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Variable):
            return self._variables.get(item.id) is item
        return item in self._variables

    def get_state(self) -> dict[str, Any]:
        """Return a JSON-compatible snapshot with camelCase keys and absent fields omitted."""
        return GraphSnapshot(items=list(self)).model_dump(by_alias=True, exclude_none=True, mode="json")

    def apply_state(self, state: Mapping[str, Any]) -> None:
        """Replace every variable with the ones in a snapshot.

        The graph is left unchanged when the snapshot is rejected.

        Raises:
            pydantic.ValidationError: If the snapshot is malformed.
            ValueError: If two variables in the snapshot share an id.

        """
        snapshot = GraphSnapshot.model_validate(state)
        ids = [variable.id for variable in snapshot.items]
        duplicates = sorted({variable_id for variable_id in ids if ids.count(variable_id) > 1})
        if duplicates:
            msg = f"Duplicate variable ids in snapshot: {', '.join(duplicates)}"
            raise ValueError(msg)

        for variable in self._variables.values():
            variable._graph = None  # noqa: SLF001
        self._variables = {}
        for variable in snapshot.items:
            self.add(variable)

    @classmethod
    def from_state(cls, state: Mapping[str, Any], *, registry: UnitRegistry | None = None) -> VariableGraph:
        graph = cls(registry=registry)
        graph.apply_state(state)
        return graph

    def input_graph(self) -> InputGraph[str]:
        """Return the dependency view of this graph, keyed by variable id."""
        from ._graph import InputGraph  # noqa: PLC0415

        return InputGraph.from_variables(self)
