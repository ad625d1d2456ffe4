"""Outcome of one build invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class BuildResult:
    """Result returned by both executors.

    Attributes:
        status: 0 on success, otherwise the exit status of the first
            failing build command (1 for failures without a status).
        rebuilt: Names of targets whose command ran successfully, in
            completion order.
        failed: Name of the first target that failed, if any.
        spawned: Number of build processes started.
        peak_concurrency: Highest number of processes in flight at once.
    """

    status: int = 0
    rebuilt: List[str] = field(default_factory=list)
    failed: Optional[str] = None
    spawned: int = 0
    peak_concurrency: int = 0

    @property
    def success(self) -> bool:
        return self.status == 0

    @property
    def up_to_date(self) -> bool:
        """True when nothing had to be rebuilt."""
        return self.success and not self.rebuilt
