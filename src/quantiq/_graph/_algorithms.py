"""Graph algorithms over input references."""

from collections import deque
from collections.abc import Hashable, Mapping, Sequence


def topological_sort[T: Hashable](dependents: Mapping[T, Sequence[T]]) -> tuple[list[T], list[T]]:
    """Order nodes so that each node comes after all of its inputs.

    Ties are broken by the iteration order of ``dependents``, so the result is
    deterministic. Nodes on a cycle, or downstream of one, cannot be ordered.

    Args:
        dependents: Mapping from node to the nodes that use it as an input.
            Every node must be a key.

    Returns:
        The ordered nodes, and the nodes left over because of cycles.

    Example:
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        (['a', 'b', 'c'], [])
        >>> topological_sort({"a": ["b"], "b": ["a"], "c": []})
        (['c'], ['a', 'b'])

    """
    indegree: dict[T, int] = dict.fromkeys(dependents, 0)
    for targets in dependents.values():
        for target in targets:
            indegree[target] = indegree.get(target, 0) + 1

    queue = deque(node for node, degree in indegree.items() if degree == 0)
    order: list[T] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for target in dependents.get(node, ()):
            indegree[target] -= 1
            if indegree[target] == 0:
                queue.append(target)

    ordered = set(order)
    remaining = [node for node in indegree if node not in ordered]
    return order, remaining
