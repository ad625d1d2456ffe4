"""Child process management for build commands.

Every build step is a separate OS process. The runner keeps the
``subprocess.Popen`` handle of each process it started so that it can
wait for a specific child or for whichever child exits first.

Platform notes:
- POSIX: ``wait_any`` blocks in ``os.waitid`` with ``WNOWAIT``, which only
  peeks at the exited child. Children this runner did not start are left
  for their owner to reap.
- Other platforms: ``wait_any`` polls the live handles.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import time
from typing import Dict, List, NoReturn, Optional, Tuple

from minibuild.errors import SpawnError

logger = logging.getLogger("minibuild.runtime.process")

# Exit status reported when a command cannot be started, as a shell does.
SPAWN_FAILURE_STATUS = 127

_POLL_INTERVAL = 0.05


def decode_returncode(returncode: int) -> int:
    """Map a Popen return code onto a shell-style exit status.

    A child killed by signal N has a negative return code; it is reported
    as ``128 + N`` so that every failure is a positive status.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


class ProcessRunner:
    """Spawn build commands and collect their exit statuses.

    Attributes:
        cwd: Working directory for spawned commands (None for inherited).
    """

    def __init__(self, cwd: Optional[str] = None) -> None:
        self.cwd = cwd
        self._children: Dict[int, subprocess.Popen] = {}

    def live_count(self) -> int:
        """Number of started processes not yet waited for."""
        return len(self._children)

    def run_async(self, argv: List[str]) -> int:
        """Start ``argv`` without waiting.

        Args:
            argv: Program followed by its arguments.

        Returns:
            int: Process identifier of the child.

        Raises:
            SpawnError: If the command is empty or cannot be started.
        """
        if not argv:
            raise SpawnError(argv, "empty command")

        logger.info("CMD `%s'", " ".join(argv))
        try:
            proc = subprocess.Popen(argv, cwd=self.cwd)
        except OSError as e:
            raise SpawnError(argv, e.strerror or str(e)) from e

        self._children[proc.pid] = proc
        logger.debug("Started pid %d", proc.pid)
        return proc.pid

    def wait(self, pid: int) -> int:
        """Block until the child ``pid`` exits and return its exit status.

        Raises:
            KeyError: If ``pid`` was not started by this runner or was
                already waited for.
        """
        proc = self._children.pop(pid)
        return decode_returncode(proc.wait())

    def wait_any(self) -> Tuple[int, int]:
        """Block until any child started by this runner exits.

        Returns:
            Tuple[int, int]: (pid, exit status) of the finished child.

        Raises:
            ChildProcessError: If no child is running.
        """
        if not self._children:
            raise ChildProcessError("No child process to wait for")

        if os.name == "posix" and hasattr(os, "waitid"):
            return self._wait_any_posix()
        return self._wait_any_polling()

    def _wait_any_posix(self) -> Tuple[int, int]:
        info = os.waitid(os.P_ALL, 0, os.WEXITED | os.WNOWAIT)
        proc = self._children.pop(info.si_pid, None)
        if proc is None:
            # A foreign child exited first and stays a zombie until its
            # owner reaps it, so blocking again would return it forever.
            logger.debug("Leaving exit of foreign child %d to its owner", info.si_pid)
            return self._wait_any_polling()
        return info.si_pid, decode_returncode(proc.wait())

    def _wait_any_polling(self) -> Tuple[int, int]:
        while True:
            for pid, proc in list(self._children.items()):
                returncode = proc.poll()
                if returncode is not None:
                    del self._children[pid]
                    return pid, decode_returncode(returncode)
            time.sleep(_POLL_INTERVAL)

    def run_sync(self, argv: List[str]) -> int:
        """Run ``argv`` to completion.

        Returns:
            int: Exit status of the command, ``SPAWN_FAILURE_STATUS`` when
            it could not be started.
        """
        try:
            pid = self.run_async(argv)
        except SpawnError as e:
            # Reported by the caller together with the status.
            logger.debug("%s", e)
            return SPAWN_FAILURE_STATUS
        return self.wait(pid)

    def exec_replace(self, argv: List[str]) -> NoReturn:
        """Run ``argv`` and terminate the current process with its status.

        Never returns: the caller's remaining code is abandoned.
        """
        try:
            pid = self.run_async(argv)
        except SpawnError as e:
            logger.error("%s", e)
            status = SPAWN_FAILURE_STATUS
        else:
            status = self.wait(pid)
        sys.stdout.flush()
        sys.exit(status)
