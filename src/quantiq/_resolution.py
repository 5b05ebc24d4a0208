"""Value and unit resolution of a single variable.

Both resolvers read the *computed* value and unit of each input, so a read
recurses through the whole upstream graph. Problems are returned as data:
``error`` for results that block the variable and ``message`` for
informational notes. An empty result means "nothing to show".
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

import pint

from ._builder import input_token, referenced_inputs
from ._errors import ArgumentTypeError, ExpressionError, UndefinedSymbolError, UnitMismatchError
from ._expression import Quantity, UnitValue

if TYPE_CHECKING:
    from ._models import Variable

logger = logging.getLogger(__name__)

NO_OPERATION_ERROR = "no operation"
NO_EXPRESSION_ERROR = "no expression"
INCOMPATIBLE_UNITS_ERROR = "incompatible units"
INVALID_INPUT_UNITS_ERROR = "invalid input units"
CYCLE_ERROR = "cycles or loops between cards is not supported"
UNITS_CANCEL_MESSAGE = "units cancel"
CANNOT_COMPUTE_MESSAGE = "cannot compute value from inputs"


@dataclass(frozen=True, slots=True)
class ValueResult:
    value: float | None = None
    error: str | None = None
    message: str | None = None

    def as_dict(self) -> dict[str, float | str]:
        """Return the result without its absent fields, e.g. ``{"value": 2.0}``."""
        return {key: item for key, item in asdict(self).items() if item is not None}


@dataclass(frozen=True, slots=True)
class UnitResult:
    unit: str | None = None
    error: str | None = None
    message: str | None = None

    def as_dict(self) -> dict[str, str]:
        """Return the result without its absent fields, e.g. ``{"unit": "m / s"}``."""
        return {key: item for key, item in asdict(self).items() if item is not None}


def unknown_result_type_error(result: object) -> str:
    return f"unknown result type: {type(result).__name__}"


def unknown_symbol_error(name: str) -> str:
    return f"unknown symbol: {name}"


def unknown_error(error: Exception) -> str:
    return f"unknown error: {error}"


def math_value(variable: Variable) -> Quantity | None:
    """Return the computed value of a variable as an evaluator operand.

    None when the value is absent or the computed unit cannot be parsed.
    """
    unit = variable.computed_unit
    value = variable.computed_value
    if value is None:
        return None
    return _tagged(variable, value, unit)


def math_value_or_1(variable: Variable) -> Quantity | None:
    """Like :func:`math_value`, with ``1`` standing in for an absent value.

    Lets unit algebra proceed when magnitudes are unknown. None only when the
    computed unit cannot be parsed.
    """
    unit = variable.computed_unit
    value = variable.computed_value
    return _tagged(variable, 1.0 if value is None else value, unit)


def _tagged(variable: Variable, value: float, unit: str | None) -> Quantity | None:
    if not unit:
        return value
    try:
        return variable.evaluator.unit(value, unit)
    except (ExpressionError, pint.PintError) as e:
        logger.debug("Cannot read unit %r of variable %s: %s", unit, variable.id, e)
        return None


def resolve_value(variable: Variable) -> ValueResult:
    """Compute the value of a variable from its own value or from its inputs."""
    inputs = variable.connected_inputs
    if not inputs:
        return ValueResult(value=variable.current_value)

    # Inputs the expression does not use still take part in cycle detection
    for source in inputs:
        computed_value_result(source)

    expression = variable.processed_expression
    if expression is None:
        return ValueResult(error=NO_OPERATION_ERROR if len(inputs) == 2 else NO_EXPRESSION_ERROR)  # noqa: PLR2004

    scope: dict[str, Quantity] = {}
    for index in referenced_inputs(expression):
        if index >= len(inputs):
            continue
        source = inputs[index]
        operand = math_value(source)
        if operand is None:
            # The input's own unit problem is reported by the unit side
            if source.computed_value is not None:
                return ValueResult(message=CANNOT_COMPUTE_MESSAGE)
            return ValueResult()
        scope[input_token(index)] = operand

    try:
        result = variable.evaluator.evaluate(expression, scope)
    except (UnitMismatchError, ArgumentTypeError):
        return ValueResult(error=INCOMPATIBLE_UNITS_ERROR)
    except UndefinedSymbolError as e:
        return ValueResult(error=unknown_symbol_error(e.name))
    except (ExpressionError, pint.PintError) as e:
        return ValueResult(error=unknown_error(e))

    if isinstance(result, UnitValue):
        return ValueResult(value=result.simplify().value)
    if isinstance(result, int | float) and not isinstance(result, bool):
        return ValueResult(value=float(result))
    return ValueResult(error=unknown_result_type_error(result))


def resolve_unit(variable: Variable) -> UnitResult:
    """Compute the unit of a variable from its own unit or from its inputs."""
    inputs = variable.connected_inputs
    if not inputs:
        return UnitResult(unit=variable.unit)

    for source in inputs:
        computed_unit_result(source)

    expression = variable.processed_expression
    if expression is None:
        return UnitResult()

    scope: dict[str, Quantity] = {}
    has_input_unit = False
    for index in referenced_inputs(expression):
        if index >= len(inputs):
            continue
        source = inputs[index]
        operand = math_value_or_1(source)
        if operand is None:
            return UnitResult(error=INVALID_INPUT_UNITS_ERROR)
        has_input_unit = has_input_unit or bool(source.computed_unit)
        scope[input_token(index)] = operand

    try:
        result = variable.evaluator.evaluate(expression, scope)
    except (UnitMismatchError, ArgumentTypeError):
        return UnitResult(unit=variable.unit, error=INCOMPATIBLE_UNITS_ERROR)
    except UndefinedSymbolError as e:
        return UnitResult(error=unknown_symbol_error(e.name))
    except (ExpressionError, pint.PintError) as e:
        return UnitResult(error=unknown_error(e))

    if isinstance(result, UnitValue):
        unit = result.simplify().format_units()
        return UnitResult(unit=unit) if unit else UnitResult(message=UNITS_CANCEL_MESSAGE)
    if isinstance(result, int | float) and not isinstance(result, bool):
        return UnitResult(message=UNITS_CANCEL_MESSAGE) if has_input_unit else UnitResult()
    return UnitResult(error=unknown_result_type_error(result))


def computed_value_result(variable: Variable) -> ValueResult:
    """Resolve the value of a variable under its graph's cycle guard."""
    graph = variable.graph
    if graph is None:
        return resolve_value(variable)
    return graph.cycle_guard.run(
        variable.id,
        "value",
        lambda: resolve_value(variable),
        lambda: ValueResult(error=CYCLE_ERROR),
    )


def computed_unit_result(variable: Variable) -> UnitResult:
    """Resolve the unit of a variable under its graph's cycle guard."""
    graph = variable.graph
    if graph is None:
        return resolve_unit(variable)
    return graph.cycle_guard.run(
        variable.id,
        "unit",
        lambda: resolve_unit(variable),
        lambda: UnitResult(error=CYCLE_ERROR),
    )
