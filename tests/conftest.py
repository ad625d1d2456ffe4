"""Shared fixtures: a scripted process runner and mtime helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

import pytest

from minibuild.errors import SpawnError

SOURCE_TIME = 1_000_000_000
ARTIFACT_TIME = 3_000_000_000


def set_mtime(path, seconds: int, nanos: int = 0) -> None:
    """Create ``path`` if needed and pin its mtime."""
    path = Path(path)
    if not path.exists():
        path.write_text("", encoding="utf-8")
    stamp = seconds * 1_000_000_000 + nanos
    os.utime(path, ns=(stamp, stamp))


def output_of(argv: List[str]) -> Optional[str]:
    if "-o" in argv:
        index = argv.index("-o")
        if index + 1 < len(argv):
            return argv[index + 1]
    return None


class FakeRunner:
    """Process runner that "builds" by writing the ``-o`` artifact.

    Every produced artifact gets a strictly increasing mtime starting at
    ``clock``, so freshness decisions stay deterministic.

    Attributes:
        commands: Every argv handed to the runner, in start order.
        fail: Artifact path -> exit status for commands that must fail.
        spawn_fail: Artifact paths whose command cannot be started.
        exit_status: Status of commands without an ``-o`` artifact.
        on_run: Optional hook called with argv before a command completes.
    """

    def __init__(self, clock: int = ARTIFACT_TIME) -> None:
        self.clock = clock
        self.commands: List[List[str]] = []
        self.completed: List[List[str]] = []
        self.exec_calls: List[List[str]] = []
        self.fail: Dict[str, int] = {}
        self.spawn_fail: Set[str] = set()
        self.exit_status = 0
        self.on_run: Optional[Callable[[List[str]], None]] = None
        self.peak = 0
        self._next_pid = 1000
        self._running: Dict[int, List[str]] = {}

    @property
    def running(self) -> int:
        return len(self._running)

    def _complete(self, argv: List[str]) -> int:
        if self.on_run is not None:
            self.on_run(argv)
        self.completed.append(argv)
        artifact = output_of(argv)
        if artifact is None:
            return self.exit_status
        if artifact in self.fail:
            return self.fail[artifact]
        self.clock += 1
        set_mtime(artifact, self.clock)
        return 0

    def run_sync(self, argv: List[str]) -> int:
        self.commands.append(list(argv))
        if output_of(argv) in self.spawn_fail:
            return 127
        return self._complete(list(argv))

    def run_async(self, argv: List[str]) -> int:
        if output_of(argv) in self.spawn_fail:
            raise SpawnError(argv, "No such file or directory")
        self.commands.append(list(argv))
        pid = self._next_pid
        self._next_pid += 1
        self._running[pid] = list(argv)
        self.peak = max(self.peak, len(self._running))
        return pid

    def wait(self, pid: int) -> int:
        return self._complete(self._running.pop(pid))

    def wait_any(self) -> Tuple[int, int]:
        if not self._running:
            raise ChildProcessError("No child process to wait for")
        pid = next(iter(self._running))
        return pid, self.wait(pid)

    def exec_replace(self, argv: List[str]):
        self.exec_calls.append(list(argv))
        raise SystemExit(self.exit_status)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from inside ``tmp_path`` so relative artifacts land there."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
