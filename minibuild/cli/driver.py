"""Driver command: keep a compiled build driver fresh, then run it."""

from __future__ import annotations

import logging
import os
import shlex

from minibuild.bootstrap.protocol import BootstrapProtocol
from minibuild.errors import BootstrapError, SpawnError
from minibuild.runtime.process import SPAWN_FAILURE_STATUS, ProcessRunner

logger = logging.getLogger("minibuild.cli.driver")


def driver_command(args) -> int:
    """Execute driver command.

    When the driver is stale it is recompiled and re-executed; that path
    terminates the process with the driver's exit status. Otherwise the
    existing driver is run and its status returned.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code.
    """
    binary = args.output or os.path.splitext(args.source)[0]
    runner = ProcessRunner()
    protocol = BootstrapProtocol(
        source=args.source,
        binary=binary,
        compiler=shlex.split(args.cc),
        flags=list(args.cflag or []),
        runner=runner,
        step=args.step,
        # A driver past step 0 was compiled by a staged rebuild.
        args_enabled=getattr(args, "args_enabled", False) or args.step >= 1,
        args_header=args.args_header,
    )
    driver_args = list(args.driver_args or [])
    if driver_args[:1] == ["--"]:
        driver_args = driver_args[1:]

    try:
        if protocol.rebuild_yourself([binary, *driver_args]) != 0:
            return 1
    except BootstrapError as e:
        logger.error("%s", e)
        return 1

    try:
        pid = runner.run_async([protocol.invocation(), *driver_args])
    except SpawnError as e:
        logger.error("%s", e)
        return SPAWN_FAILURE_STATUS
    return runner.wait(pid)
