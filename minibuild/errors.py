"""Exception hierarchy for minibuild.

All failures raised by the engine derive from ``MinibuildError`` so that
the CLI layer can map them onto a single error line and a nonzero exit
code.
"""

from __future__ import annotations

from typing import List, Optional


class MinibuildError(Exception):
    """Base class for all minibuild errors."""


class ConfigError(MinibuildError):
    """Invalid declarative build file or run configuration."""


class GraphError(MinibuildError):
    """Structural problem in a target graph (unknown or foreign node)."""


class GraphCycleError(GraphError):
    """A target graph reachable from a root contains a cycle.

    Attributes:
        cycle: Target names forming the cycle, in dependency order.
    """

    def __init__(self, cycle: List[str]) -> None:
        self.cycle = list(cycle)
        closed = self.cycle + self.cycle[:1]
        super().__init__("Dependency cycle detected: " + " -> ".join(closed))


class SpawnError(MinibuildError):
    """A build command could not be started."""

    def __init__(self, argv: List[str], reason: str) -> None:
        self.argv = list(argv)
        self.reason = reason
        program = argv[0] if argv else "<empty>"
        super().__init__(f"Could not start `{program}': {reason}")


class MissingSourceError(MinibuildError):
    """A file source does not exist while strict source checking is on."""

    def __init__(self, target: str, path: str) -> None:
        self.target = target
        self.path = path
        super().__init__(f"Source `{path}' of target `{target}' does not exist")


class ProcessTableFullError(MinibuildError):
    """Insertion into a process table that is already at capacity.

    This is a programming error: the parallel scheduler never admits more
    in-flight builds than the table capacity.
    """


class CleanError(MinibuildError):
    """An artifact could not be removed."""


class BootstrapError(MinibuildError):
    """The self-rebuild protocol could not restore the previous binary.

    Attributes:
        backup: Path of the backup that could not be moved back.
    """

    def __init__(self, message: str, backup: Optional[str] = None) -> None:
        self.backup = backup
        super().__init__(message)
