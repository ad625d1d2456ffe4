"""Self-rebuild protocol for compiled build drivers.

A build driver is a program compiled from a source description that uses
this engine. When the description (or the engine itself) is newer than
the compiled driver, the driver is recompiled and re-executed with the
original arguments before any build logic runs.

Recompilation can be staged: the first pass compiles a minimal driver;
once the argument-parsing facility is available a second pass enables
it and bumps a step counter, so the new binary knows which capabilities
it may assume.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence, Union

from minibuild.bootstrap.arguments import DEFAULT_ARGUMENTS, ArgumentDefinition, write_argument_file
from minibuild.engine.freshness import file_exists, is_stale
from minibuild.errors import BootstrapError
from minibuild.runtime.process import ProcessRunner
from minibuild.runtime.protocols import CommandRunner

logger = logging.getLogger("minibuild.bootstrap.protocol")

DEFAULT_ARGS_FILE = "minibuild_args.def"
DEFAULT_STEP_FLAG = "-DMINIBUILD_BOOTSTRAP={step}"
DEFAULT_ARGS_ENABLE_FLAG = "-DMINIBUILD_ENABLE_ARGS"


def default_engine_sources() -> List[str]:
    """Source files of the installed engine, compared against the driver."""
    package_root = Path(__file__).resolve().parent.parent
    return sorted(str(path) for path in package_root.rglob("*.py"))


class BootstrapState(Enum):
    """Freshness of the compiled driver for this invocation."""

    FRESH = "fresh"
    STALE = "stale"


@dataclass
class BootstrapProtocol:
    """Recompile-and-re-execute guard for a compiled driver.

    Attributes:
        source: Source description of the driver.
        binary: Compiled driver, normally the running program.
        compiler: Compiler invocation prefix.
        flags: Extra compiler flags appended after the source.
        engine_sources: Engine files whose changes also trigger a rebuild.
        runner: Runner used to compile and to re-execute.
        step: Bootstrap step the running driver was compiled with.
        args_enabled: Whether the running driver has the argument facility.
        args_header: Artifact whose presence makes the argument facility
            available; None disables staging.
        args_file: Argument definitions artifact written when staging.
        arguments: Definitions written to ``args_file``.
        step_flag: Compiler flag template carrying the step counter.
        args_enable_flag: Compiler flag enabling the argument facility.
    """

    source: str
    binary: str
    compiler: Sequence[str] = ("cc",)
    flags: Sequence[str] = ()
    engine_sources: Sequence[str] = field(default_factory=default_engine_sources)
    runner: CommandRunner = field(default_factory=ProcessRunner)
    step: int = 0
    args_enabled: bool = False
    args_header: Optional[str] = None
    args_file: str = DEFAULT_ARGS_FILE
    arguments: Sequence[ArgumentDefinition] = DEFAULT_ARGUMENTS
    step_flag: str = DEFAULT_STEP_FLAG
    args_enable_flag: str = DEFAULT_ARGS_ENABLE_FLAG

    @property
    def backup_path(self) -> str:
        return self.binary + ".old"

    def _args_available(self) -> bool:
        return self.args_header is not None and file_exists(self.args_header)

    def _stages_args(self) -> bool:
        """True when this rebuild moves from step 0 to the argument stage."""
        return self.step == 0 and not self.args_enabled and self._args_available()

    def state(self) -> BootstrapState:
        """Compare the driver against its source and the engine sources."""
        if self._stages_args():
            return BootstrapState.STALE
        if is_stale(self.binary, self.source):
            return BootstrapState.STALE
        if any(is_stale(self.binary, path) for path in self.engine_sources):
            return BootstrapState.STALE
        return BootstrapState.FRESH

    def compile_command(self) -> List[str]:
        """Assemble the recompilation command with the staging flags."""
        argv = [*self.compiler, "-o", self.binary, self.source, *self.flags]
        if self._stages_args():
            argv += [self.step_flag.format(step=self.step + 1), self.args_enable_flag]
        elif self.step >= 1:
            argv.append(self.step_flag.format(step=self.step))
        if self.args_enabled and self.args_enable_flag not in argv:
            argv.append(self.args_enable_flag)
        return argv

    def invocation(self) -> str:
        if os.path.dirname(self.binary):
            return self.binary
        return os.path.join(os.curdir, self.binary)

    def rebuild_yourself(self, argv: Sequence[str]) -> int:
        """Recompile and re-execute the driver when it is stale.

        On the success path this never returns: the rebuilt driver runs
        with ``argv[1:]`` and the current process exits with its status.

        Args:
            argv: Full argument vector of the current invocation.

        Returns:
            int: 0 when the driver is fresh and the caller may proceed,
            1 when recompilation failed and the backup was restored.

        Raises:
            BootstrapError: If the backup could not be restored.
        """
        if self.state() is BootstrapState.FRESH:
            logger.debug("%s is up to date", self.binary)
            return 0

        had_backup = os.path.lexists(self.binary)
        if had_backup:
            try:
                os.replace(self.binary, self.backup_path)
            except OSError as e:
                logger.error(
                    "Could not rename %s to %s: %s", self.binary, self.backup_path, e.strerror or e
                )
                return 1

        command = self.compile_command()
        if self._stages_args():
            logger.info("Initiating bootstrapping step number %d", self.step)
            write_argument_file(self.args_file, self.arguments)

        status = self.runner.run_sync(command)
        if status != 0:
            logger.error("Could not rebuild %s (exit status %d)", self.binary, status)
            if had_backup:
                self._restore_backup()
            return 1

        self._reexec(argv)

    def _restore_backup(self) -> None:
        try:
            os.replace(self.backup_path, self.binary)
        except OSError as e:
            raise BootstrapError(
                f"Could not restore {self.binary} from {self.backup_path}: {e.strerror or e}",
                backup=self.backup_path,
            ) from e

    def _reexec(self, argv: Sequence[str]) -> NoReturn:
        logger.info("Re-executing %s", self.binary)
        self.runner.exec_replace([self.invocation(), *argv[1:]])


def rebuild_yourself(
    source: Union[str, Path], binary: Union[str, Path], argv: Sequence[str], **kwargs
) -> int:
    """Run the self-rebuild guard; see ``BootstrapProtocol.rebuild_yourself``.

    Call it first thing at program entry: on the success path control
    never comes back.
    """
    protocol = BootstrapProtocol(source=str(source), binary=str(binary), **kwargs)
    return protocol.rebuild_yourself(argv)
