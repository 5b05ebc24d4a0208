from ._evaluator import ExpressionEvaluator, Quantity
from ._parser import parse_expression, parse_unit_expression
from ._tokenizer import tokenize
from ._unit_value import UnitValue, parse_unit

__all__ = [
    "ExpressionEvaluator",
    "Quantity",
    "UnitValue",
    "parse_expression",
    "parse_unit",
    "parse_unit_expression",
    "tokenize",
]
