"""Self-rebuild protocol and argument definitions for build drivers."""

from minibuild.bootstrap.arguments import (
    DEFAULT_ARGUMENTS,
    ArgumentDefinition,
    ArgumentFacility,
    read_argument_file,
    write_argument,
    write_argument_file,
)
from minibuild.bootstrap.protocol import (
    BootstrapProtocol,
    BootstrapState,
    default_engine_sources,
    rebuild_yourself,
)

__all__ = [
    "ArgumentDefinition",
    "ArgumentFacility",
    "BootstrapProtocol",
    "BootstrapState",
    "DEFAULT_ARGUMENTS",
    "default_engine_sources",
    "read_argument_file",
    "rebuild_yourself",
    "write_argument",
    "write_argument_file",
]
