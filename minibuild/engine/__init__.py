"""Freshness checks, command assembly and the sequential executor."""

from minibuild.engine.clean import clean_target
from minibuild.engine.command import assemble_command
from minibuild.engine.context import BuildContext
from minibuild.engine.freshness import file_exists, is_stale
from minibuild.engine.result import BuildResult
from minibuild.engine.sequential import SequentialExecutor

__all__ = [
    "BuildContext",
    "BuildResult",
    "SequentialExecutor",
    "assemble_command",
    "clean_target",
    "file_exists",
    "is_stale",
]
