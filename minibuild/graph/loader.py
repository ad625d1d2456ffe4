"""Materialize a declarative build file into a ``TargetGraph``."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from minibuild.config.loader import ConfigSource, load_build_file
from minibuild.config.schema import BuildFileSpec
from minibuild.errors import ConfigError
from minibuild.graph.target import FileSource, Target, TargetSource
from minibuild.graph.target_graph import TargetGraph

logger = logging.getLogger("minibuild.graph.loader")


def build_graph(spec: BuildFileSpec) -> TargetGraph:
    """Create one ``Target`` per declared target and wire their sources.

    Targets are created first and sources attached afterwards, so the
    declaration order in the file does not matter. A cyclic declaration
    is materialized as is; the executors reject it before building.

    Args:
        spec: Validated build file.

    Returns:
        TargetGraph owning every declared target.
    """
    graph = TargetGraph()
    for name, target_spec in spec.targets.items():
        graph.add(
            Target(
                artifact_path=target_spec.artifact or name,
                command_prefix=list(target_spec.command),
                name=name,
            )
        )

    for name, target_spec in spec.targets.items():
        target = graph.get(name)
        for source in target_spec.sources:
            if source.target is not None:
                target.add_source(TargetSource(graph.get(source.target), source.include_in_command))
            else:
                target.add_source(FileSource(source.file, source.include_in_command))

    logger.debug("Materialized %d target(s)", len(graph))
    return graph


def load_target_graph(source: ConfigSource) -> Tuple[TargetGraph, BuildFileSpec]:
    """Load a build file and materialize its graph.

    Returns:
        Tuple[TargetGraph, BuildFileSpec]: The graph and the validated spec,
        whose ``build`` section carries run defaults.
    """
    spec = load_build_file(source)
    return build_graph(spec), spec


def resolve_root(graph: TargetGraph, spec: BuildFileSpec, name: Optional[str]) -> Target:
    """Pick the root target: the requested one, the default, or the only one.

    Raises:
        ConfigError: When no root can be determined or the name is unknown.
    """
    if name is None:
        name = spec.build.default
    if name is None:
        if len(graph) == 1:
            return next(iter(graph))
        raise ConfigError(
            "No target given and the build file declares no default target "
            f"(available: {', '.join(sorted(graph.names()))})"
        )
    if name not in graph:
        raise ConfigError(f"Unknown target `{name}'")
    return graph.get(name)
