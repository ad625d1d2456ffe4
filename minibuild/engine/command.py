"""Build command assembly."""

from __future__ import annotations

from typing import List

from minibuild.graph.target import Target


def assemble_command(target: Target) -> List[str]:
    """Return ``prefix + ["-o", artifact] + command sources``.

    Sources flagged ``include_in_command=False`` (headers and other pure
    dependencies) are left out; the others keep their declaration order.
    """
    return [
        *target.command_prefix,
        "-o",
        target.artifact_path,
        *target.command_paths(),
    ]
