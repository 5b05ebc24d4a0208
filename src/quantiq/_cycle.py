"""Detection of reference cycles during recursive resolution."""

import logging
from collections.abc import Callable, Hashable
from typing import Literal

logger = logging.getLogger(__name__)

type ResolutionKind = Literal["value", "unit"]
type FrameKey = tuple[Hashable, ResolutionKind]


class CycleDetectedError(Exception):
    """Raised inside a resolution when a frame that is still active is entered again."""

    def __init__(self, entry: FrameKey, participants: list[Hashable]) -> None:
        self.entry = entry
        self.participants = participants
        super().__init__(f"Cycle detected through {', '.join(map(str, participants))}")


class CycleGuard:
    """Stack of active ``(node id, kind)`` frames for the current top-level read.

    A frame entered twice raises :class:`CycleDetectedError`, which unwinds to
    the outermost frame of the re-entered key. Every node between the two
    entries is then marked cyclic until the top-level read finishes, and any
    resolution of a marked node returns the cycle result instead of computing.
    """

    def __init__(self) -> None:
        self._stack: list[FrameKey] = []
        self._cyclic: set[Hashable] = set()

    @property
    def active(self) -> bool:
        return bool(self._stack)

    def is_cyclic(self, node_id: Hashable) -> bool:
        return node_id in self._cyclic

    def run[T](
        self,
        node_id: Hashable,
        kind: ResolutionKind,
        compute: Callable[[], T],
        cycle_result: Callable[[], T],
    ) -> T:
        """Run ``compute`` in a new frame for ``(node_id, kind)``.

        Returns:
            The computed result, or ``cycle_result()`` if the node is part of a cycle.

        """
        if node_id in self._cyclic:
            return cycle_result()

        key: FrameKey = (node_id, kind)
        if key in self._stack:
            start = self._stack.index(key)
            participants = list(dict.fromkeys(frame_id for frame_id, _ in self._stack[start:]))
            raise CycleDetectedError(key, participants)

        self._stack.append(key)
        try:
            try:
                result = compute()
            except CycleDetectedError as e:
                # Only the outermost frame of the re-entered key handles the cycle
                if e.entry != key or key in self._stack[:-1]:
                    raise
                self._mark(e.participants)
                return cycle_result()
            if node_id in self._cyclic:
                return cycle_result()
            return result
        finally:
            self._stack.pop()
            if not self._stack:
                self._cyclic.clear()

    def _mark(self, participants: list[Hashable]) -> None:
        for node_id in participants:
            if node_id in self._cyclic:
                continue
            self._cyclic.add(node_id)
            logger.warning("Variable %s is part of a reference cycle", node_id)
