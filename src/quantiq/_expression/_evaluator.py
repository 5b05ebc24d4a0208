"""Evaluation of parsed expressions against a scope of named values."""

import logging
from collections.abc import Mapping

from quantiq._errors import ArgumentTypeError, ExpressionSyntaxError, UndefinedSymbolError
from quantiq._units import UnitRegistry, UnitTerms, get_default_registry

from ._parser import BinaryOp, Conversion, Name, Node, Number, UnaryOp, parse_expression
from ._unit_value import UnitValue, divide, parse_unit, power, unit_terms

logger = logging.getLogger(__name__)

type Scalar = float | complex
type Quantity = UnitValue | Scalar


class ExpressionEvaluator:
    """Evaluate algebraic expressions with units.

    An evaluator reads its unit vocabulary from a :class:`UnitRegistry`. Units
    registered on the registry later are visible to the evaluator right away.

    Example:
        >>> evaluator = ExpressionEvaluator()
        >>> str(evaluator.evaluate("a * 2", {"a": evaluator.unit(3, "m")}))
        '6 m'

    """

    def __init__(self, registry: UnitRegistry | None = None) -> None:
        self.registry = registry if registry is not None else get_default_registry()

    def unit(self, value: float | str | None, unit: str | None = None) -> UnitValue:
        """Build a unit value, e.g. ``unit(3, "m")``, or a bare unit with ``unit("m")``."""
        if isinstance(value, str):
            return UnitValue.parse(None, value, self.registry)
        if unit is None:
            msg = "A unit is required"
            raise ExpressionSyntaxError(msg)
        return UnitValue.parse(value, unit, self.registry)

    def parse_unit(self, text: str) -> UnitTerms:
        return parse_unit(text, self.registry)

    def evaluate(self, expression: str, scope: Mapping[str, Quantity] | None = None) -> Quantity:
        """Evaluate an expression.

        Names are looked up in ``scope`` first, then as units, so ``3 m``
        evaluates to three meters unless ``m`` is in the scope.

        Raises:
            ExpressionSyntaxError: If the expression cannot be parsed.
            UndefinedSymbolError: If a name is neither in scope nor a unit.
            UnitMismatchError: If incompatible units are added or converted.
            ArgumentTypeError: If a plain number and a unit value are added.

        """
        tree = parse_expression(expression)
        logger.debug("Evaluating %r with scope %s", expression, sorted(scope or {}))
        return self._evaluate(tree, scope or {})

    def _evaluate(self, node: Node, scope: Mapping[str, Quantity]) -> Quantity:
        match node:
            case Number(value):
                return value
            case Name(name):
                return self._resolve_name(name, scope)
            case UnaryOp(_, operand):
                return -self._evaluate(operand, scope)
            case BinaryOp(op, left, right):
                return _apply(op, self._evaluate(left, scope), self._evaluate(right, scope))
            case Conversion(operand, target):
                value = self._evaluate(operand, scope)
                if not isinstance(value, UnitValue):
                    msg = f"Unexpected type of argument in function to (expected: Unit, actual: {type(value).__name__})"
                    raise ArgumentTypeError(msg)
                return value.to(unit_terms(target, self.registry))
        msg = f"Unsupported expression node {node!r}"
        raise ExpressionSyntaxError(msg)

    def _resolve_name(self, name: str, scope: Mapping[str, Quantity]) -> Quantity:
        if name in scope:
            return scope[name]
        if self.registry.lookup(name) is not None:
            return UnitValue(1.0, ((name, 1.0),), self.registry, (name,))
        raise UndefinedSymbolError(name)


def _apply(op: str, left: Quantity, right: Quantity) -> Quantity:
    match op:
        case "+":
            return left + right
        case "-":
            return left - right
        case "*":
            return left * right
        case "/":
            if isinstance(left, UnitValue) or isinstance(right, UnitValue):
                return left / right
            return divide(left, right)  # type: ignore[arg-type]
        case "^":
            if isinstance(left, UnitValue) or isinstance(right, UnitValue):
                return left**right
            return power(left, right)  # type: ignore[arg-type]
    msg = f'Unknown operator "{op}"'
    raise ExpressionSyntaxError(msg)
