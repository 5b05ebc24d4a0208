"""Immutable view of the input references between variables."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._algorithms import topological_sort

if TYPE_CHECKING:
    from quantiq._models import VariableGraph


@dataclass(frozen=True, slots=True)
class InputGraph[T: Hashable]:
    """Directed graph of "is an input of" relationships.

    - ``inputs_of(b) == (a,)`` means ``a`` is an input of ``b``
    - ``dependents_of(a) == (b,)`` means ``b`` reads ``a``

    Unlike the variables themselves, this view may contain cycles and answers
    questions about them. Node order follows insertion order.
    """

    _inputs: dict[T, tuple[T, ...]] = field(default_factory=dict)
    _dependents: dict[T, tuple[T, ...]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[T, T]], nodes: Iterable[T] = ()) -> InputGraph[T]:
        """Build a graph from ``(source, target)`` edges, where ``source`` is an input of ``target``.

        Args:
            edges: The edges. Duplicates are ignored.
            nodes: Extra nodes, e.g. variables without any input or dependent.

        Example:
            >>> graph = InputGraph.from_edges([("a", "b"), ("b", "c")])
            >>> graph.inputs_of("b")
            ('a',)

        """
        inputs: dict[T, list[T]] = {node: [] for node in nodes}
        dependents: dict[T, list[T]] = {node: [] for node in nodes}
        for source, target in edges:
            for node in (source, target):
                inputs.setdefault(node, [])
                dependents.setdefault(node, [])
            if source not in inputs[target]:
                inputs[target].append(source)
                dependents[source].append(target)
        return cls(
            _inputs={node: tuple(sources) for node, sources in inputs.items()},
            _dependents={node: tuple(targets) for node, targets in dependents.items()},
        )

    @classmethod
    def from_variables(cls, graph: VariableGraph) -> InputGraph[str]:
        """Build the view of a variable graph. Stale input ids are left out."""
        edges = [
            (input_id, variable.id) for variable in graph for input_id in variable.input_ids if input_id in graph
        ]
        return InputGraph.from_edges(edges, nodes=[variable.id for variable in graph])

    @property
    def nodes(self) -> tuple[T, ...]:
        return tuple(self._inputs)

    def inputs_of(self, node: T) -> tuple[T, ...]:
        return self._inputs.get(node, ())

    def dependents_of(self, node: T) -> tuple[T, ...]:
        return self._dependents.get(node, ())

    def sources(self) -> tuple[T, ...]:
        """Nodes without inputs, which show their own value."""
        return tuple(node for node in self._inputs if not self._inputs[node])

    def sinks(self) -> tuple[T, ...]:
        """Nodes nothing reads from."""
        return tuple(node for node in self._inputs if not self._dependents[node])

    def upstream(self, node: T) -> frozenset[T]:
        """All nodes a node transitively reads from.

        A node on a cycle is part of its own upstream set.
        """
        return self._reach(node, self._inputs)

    def downstream(self, node: T) -> frozenset[T]:
        """All nodes that transitively read from a node, i.e. the ones a change may affect."""
        return self._reach(node, self._dependents)

    def evaluation_order(self, *, strict: bool = True) -> list[T]:
        """Return the nodes with every node after its inputs.

        Args:
            strict: If False, nodes that cannot be ordered because of a cycle
                are appended at the end instead of raising.

        Raises:
            ValueError: If ``strict`` and the graph has a cycle.

        """
        order, remaining = topological_sort(self._dependents)
        if remaining and strict:
            msg = f"Cycle detected between {', '.join(map(str, self.cycle_members()))}"
            raise ValueError(msg)
        return order + remaining

    def cycle_members(self) -> tuple[T, ...]:
        """Nodes that lie on at least one cycle."""
        return tuple(node for node in self._inputs if node in self.upstream(node))

    def has_cycle(self) -> bool:
        return bool(topological_sort(self._dependents)[1])

    def __len__(self) -> int:
        return len(self._inputs)

    def __contains__(self, node: object) -> bool:
        return node in self._inputs

    @staticmethod
    def _reach(node: T, edges: dict[T, tuple[T, ...]]) -> frozenset[T]:
        visited: set[T] = set()
        stack = list(edges.get(node, ()))
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(edges.get(current, ()))
        return frozenset(visited)
