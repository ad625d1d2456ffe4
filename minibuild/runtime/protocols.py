"""
Protocol definitions for runtime components.

Protocols provide abstract interfaces for dependency injection, so the
executors and the bootstrap protocol can run against a fake runner in
tests instead of real child processes.
"""

from typing import List, NoReturn, Protocol, Tuple


class CommandRunner(Protocol):
    """
    Runner protocol consumed by the build executors.

    Example:
        pid = runner.run_async(["cc", "-c", "-o", "a.o", "a.c"])
        finished_pid, status = runner.wait_any()
    """

    def run_sync(self, argv: List[str]) -> int:
        """Run a command to completion and return its exit status."""
        ...

    def run_async(self, argv: List[str]) -> int:
        """Start a command and return its process identifier."""
        ...

    def wait(self, pid: int) -> int:
        """Wait for one process started by ``run_async``."""
        ...

    def wait_any(self) -> Tuple[int, int]:
        """Wait for any process started by ``run_async``."""
        ...

    def exec_replace(self, argv: List[str]) -> NoReturn:
        """Run a command and terminate with its exit status."""
        ...
