"""Dependency view over the input references of a variable graph.

This module contains:
- InputGraph[T]: an immutable graph of "is an input of" edges, cycles allowed
- topological_sort: ordering of nodes after their inputs
"""

from ._algorithms import topological_sort
from ._input_graph import InputGraph

__all__ = ["InputGraph", "topological_sort"]
