"""Worklist of targets not yet built, scanned for readiness."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, Optional

from minibuild.graph.target import Target
from minibuild.graph.target_graph import preorder


class Worklist:
    """Stack of pending targets.

    The head is the most recently pushed target. Seeding from a graph
    pushes the root first and its dependencies after it, so the scan for
    ready work meets the leaves before the root.
    """

    def __init__(self) -> None:
        self._items: Deque[Target] = deque()

    @classmethod
    def from_graph(cls, root: Target) -> "Worklist":
        """Seed with every target reachable from ``root`` (root included)."""
        worklist = cls()
        for target in preorder(root):
            worklist.push(target)
        return worklist

    def push(self, target: Target) -> None:
        self._items.appendleft(target)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[Target]:
        return iter(self._items)

    def pop_ready(self) -> Optional[Target]:
        """Remove and return the first target whose dependencies are built.

        The scan always starts at the head. Returns None when no pending
        target is ready yet.
        """
        for index, target in enumerate(self._items):
            if target.dependencies_built():
                del self._items[index]
                return target
        return None
