"""Fixed-capacity map from process identifier to the target it builds.

Open addressing with linear probing starting at ``pid % capacity``.
Removed slots become tombstones so that probing for other keys keeps
going past them; a lookup for a removed or unknown pid returns None.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple, Union

from minibuild.errors import ProcessTableFullError
from minibuild.graph.target import Target

logger = logging.getLogger("minibuild.scheduler.process_table")


class _Tombstone:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<tombstone>"


_TOMBSTONE = _Tombstone()

_Slot = Union[None, _Tombstone, Tuple[int, Target]]


class ProcessTable:
    """Bounded pid -> target table sized to the maximum concurrency.

    Attributes:
        capacity: Number of slots; also the maximum number of live entries.
        peak: Highest number of live entries observed.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.peak = 0
        self._slots: List[_Slot] = [None] * capacity
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def live_count(self) -> int:
        """Number of pids currently tracked; tombstones are not counted."""
        return self._size

    def __contains__(self, pid: object) -> bool:
        return isinstance(pid, int) and self._find(pid) is not None

    @property
    def is_full(self) -> bool:
        return self._size == self.capacity

    def _probe(self, pid: int) -> Iterator[int]:
        start = pid % self.capacity
        for offset in range(self.capacity):
            yield (start + offset) % self.capacity

    def _find(self, pid: int) -> Optional[int]:
        for index in self._probe(pid):
            slot = self._slots[index]
            if slot is None:
                return None
            if slot is not _TOMBSTONE and slot[0] == pid:
                return index
        return None

    def insert(self, pid: int, target: Target) -> None:
        """Associate ``pid`` with ``target``.

        Raises:
            ProcessTableFullError: If the table already holds ``capacity``
                live entries. The scheduler never admits more in-flight
                builds than that, so this signals a programming error.
            ValueError: If ``pid`` is already present.
        """
        if self.is_full:
            raise ProcessTableFullError(
                f"Process table is full ({self.capacity} entries); cannot track pid {pid}"
            )
        if self._find(pid) is not None:
            raise ValueError(f"pid {pid} is already tracked")

        for index in self._probe(pid):
            slot = self._slots[index]
            if slot is None or slot is _TOMBSTONE:
                self._slots[index] = (pid, target)
                self._size += 1
                self.peak = max(self.peak, self._size)
                return
        # Unreachable while _size < capacity.
        raise ProcessTableFullError("No free slot in process table")

    def get(self, pid: int) -> Optional[Target]:
        """Return the target built by ``pid``, or None if not tracked."""
        index = self._find(pid)
        if index is None:
            return None
        return self._slots[index][1]  # type: ignore[index]

    def remove(self, pid: int) -> Optional[Target]:
        """Forget ``pid`` and return its target (None if not tracked)."""
        index = self._find(pid)
        if index is None:
            return None
        _, target = self._slots[index]  # type: ignore[misc]
        self._slots[index] = _TOMBSTONE
        self._size -= 1
        if self._size == 0:
            # Nothing live: drop the tombstones so probes stay short.
            self._slots = [None] * self.capacity
        return target

    def pids(self) -> List[int]:
        return [slot[0] for slot in self._slots if slot is not None and slot is not _TOMBSTONE]
