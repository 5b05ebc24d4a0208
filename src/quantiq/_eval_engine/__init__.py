"""Evaluation engine module for quantiq.

Reads every variable of a graph in dependency order and collects the results.

Key types:
- EvaluationResult: computed value and unit results of each variable
- evaluate_graph: evaluate a VariableGraph
"""

from ._engine import EvaluationResult, evaluate_graph

__all__ = ["EvaluationResult", "evaluate_graph"]
