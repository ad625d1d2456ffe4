"""Argument definitions and the argument-parsing facility.

Argument definitions are written to an artifact, one declaration per
line::

    ARGUMENT(nb_process, int, 1, "j", "number of process that can run simultaneously")

A rebuilt driver compiled with the argument facility enabled consumes
that file. On the Python side ``ArgumentFacility`` turns the same
definitions into an argparse parser whose populated values are then read
as plain configuration.
"""

from __future__ import annotations

import argparse
import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger("minibuild.bootstrap.arguments")

ARGUMENT_TYPES = ("bool", "int", "str", "list")

_LINE_RE = re.compile(
    r'^ARGUMENT\(\s*(?P<name>\w+)\s*,\s*(?P<type>\w+)\s*,\s*(?P<default>[^,]*?)\s*,'
    r'\s*"(?P<flags>[^"]*)"\s*,\s*"(?P<description>[^"]*)"\s*\)\s*$'
)


@dataclass(frozen=True)
class ArgumentDefinition:
    """One named configuration value populated from the command line.

    Attributes:
        name: Destination name of the value.
        type: One of ``bool``, ``int``, ``str``, ``list``.
        default: Default value in its textual form.
        flags: Option spelling without dashes; one letter gives ``-x``,
            longer names give ``--name``.
        description: Help text.
    """

    name: str
    type: str
    default: str
    flags: str
    description: str

    def __post_init__(self) -> None:
        if self.type not in ARGUMENT_TYPES:
            raise ValueError(f"Unsupported argument type `{self.type}' for `{self.name}'")

    def to_line(self) -> str:
        return (
            f'ARGUMENT({self.name}, {self.type}, {self.default}, '
            f'"{self.flags}", "{self.description}")'
        )

    @property
    def option_string(self) -> str:
        return f"-{self.flags}" if len(self.flags) == 1 else f"--{self.flags}"

    def default_value(self):
        if self.type == "bool":
            return self.default.strip().lower() in ("1", "true", "yes")
        if self.type == "int":
            return int(self.default)
        if self.type == "list":
            return [item for item in self.default.split(",") if item] if self.default else []
        return self.default.strip('"')


DEFAULT_ARGUMENTS = (
    ArgumentDefinition("clean", "bool", "false", "clean", "clean all generated files"),
    ArgumentDefinition(
        "nb_process", "int", "1", "j", "number of process that can run simultaneously"
    ),
    ArgumentDefinition("always_compile", "bool", "false", "B", "recompile every targets"),
)


def write_argument(
    path: str, name: str, type: str, default: str, flags: str, description: str
) -> ArgumentDefinition:
    """Append one definition to the argument artifact at ``path``."""
    definition = ArgumentDefinition(name, type, default, flags, description)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(definition.to_line() + "\n")
    return definition


def write_argument_file(path: str, definitions: Iterable[ArgumentDefinition]) -> None:
    """Rewrite the argument artifact with ``definitions``."""
    if os.path.exists(path):
        os.remove(path)
    for definition in definitions:
        write_argument(
            path,
            definition.name,
            definition.type,
            definition.default,
            definition.flags,
            definition.description,
        )
    logger.debug("Wrote argument definitions to %s", path)


def read_argument_file(path: str) -> List[ArgumentDefinition]:
    """Parse an argument artifact back into definitions.

    Raises:
        ValueError: On a line that is not a valid declaration.
    """
    definitions: List[ArgumentDefinition] = []
    with open(path, encoding="utf-8") as handle:
        for lineno, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            match = _LINE_RE.match(line)
            if match is None:
                raise ValueError(f"{path}:{lineno}: invalid argument declaration")
            definitions.append(ArgumentDefinition(**match.groupdict()))
    return definitions


class ArgumentFacility:
    """Register argument definitions on argparse and parse argv.

    Args:
        definitions: Values to expose; defaults to ``DEFAULT_ARGUMENTS``.
    """

    def __init__(self, definitions: Optional[Sequence[ArgumentDefinition]] = None) -> None:
        self.definitions = list(DEFAULT_ARGUMENTS if definitions is None else definitions)
        self._parser: Optional[argparse.ArgumentParser] = None

    def add_to_parser(self, parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
        for definition in self.definitions:
            kwargs = {"dest": definition.name, "help": definition.description}
            if definition.type == "bool":
                kwargs["action"] = "store_true"
                kwargs["default"] = definition.default_value()
            elif definition.type == "int":
                kwargs["type"] = int
                kwargs["default"] = definition.default_value()
            elif definition.type == "list":
                kwargs["action"] = "append"
                kwargs["default"] = definition.default_value()
            else:
                kwargs["default"] = definition.default_value()
            parser.add_argument(definition.option_string, **kwargs)
        return parser

    def setup_args(self, usage: str) -> argparse.ArgumentParser:
        """Create the parser; ``-h``/``--help`` prints the generated help."""
        self._parser = self.add_to_parser(argparse.ArgumentParser(usage=usage))
        return self._parser

    def parse_args(self, argv: Sequence[str]) -> argparse.Namespace:
        """Parse ``argv`` (program name excluded) into populated values."""
        if self._parser is None:
            self.setup_args("%(prog)s [OPTIONS...]")
        return self._parser.parse_args(list(argv))
