"""Unit-aware incremental computation graph."""

__all__ = [
    "ArgumentTypeError",
    "CycleGuard",
    "EvaluationResult",
    "ExpressionError",
    "ExpressionEvaluator",
    "ExpressionSyntaxError",
    "InputGraph",
    "InvalidUnitError",
    "Operation",
    "UndefinedSymbolError",
    "UnitMismatchError",
    "UnitRegistry",
    "UnitResult",
    "UnitValue",
    "ValueResult",
    "Variable",
    "VariableGraph",
    "build_expression",
    "evaluate_graph",
    "export_results_to_toml",
    "get_default_registry",
    "load_graph",
    "results_to_dict",
    "save_graph",
]

from ._builder import build_expression
from ._cycle import CycleGuard
from ._errors import (
    ArgumentTypeError,
    ExpressionError,
    ExpressionSyntaxError,
    InvalidUnitError,
    UndefinedSymbolError,
    UnitMismatchError,
)
from ._eval_engine import EvaluationResult, evaluate_graph
from ._expression import ExpressionEvaluator, UnitValue
from ._graph import InputGraph
from ._io import export_results_to_toml, load_graph, results_to_dict, save_graph
from ._models import Variable, VariableGraph
from ._operation import Operation
from ._resolution import UnitResult, ValueResult
from ._units import UnitRegistry, get_default_registry
