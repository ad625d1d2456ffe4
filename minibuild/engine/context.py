"""Explicit build context shared by the executors.

The context bundles the run configuration, the target graph and the
run-scoped state (which targets were rebuilt, how many processes were
spawned). It replaces any process-wide mutable state: every entry point
receives the context it works on.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Set

from minibuild.config.options import BuildOptions
from minibuild.engine.freshness import is_stale
from minibuild.errors import MissingSourceError
from minibuild.graph.target import FileSource, Target, TargetSource
from minibuild.graph.target_graph import TargetGraph, preorder
from minibuild.runtime.process import ProcessRunner
from minibuild.runtime.protocols import CommandRunner

logger = logging.getLogger("minibuild.engine.context")


@dataclass
class BuildContext:
    """Configuration, graph and run-scoped state of a build invocation.

    Attributes:
        graph: Owner of the targets; optional for ad hoc target trees.
        options: Run options (concurrency, always-rebuild, strictness).
        runner: Process runner used to execute build commands.
        rebuilt: Names of targets rebuilt in the current run, in order.
        spawned: Processes started in the current run.
    """

    graph: Optional[TargetGraph] = None
    options: BuildOptions = field(default_factory=BuildOptions)
    runner: CommandRunner = field(default_factory=ProcessRunner)
    rebuilt: List[str] = field(default_factory=list)
    spawned: int = 0
    _rebuilt_ids: Set[int] = field(default_factory=set, repr=False)

    def begin_run(self, root: Target) -> None:
        """Reset the run-scoped state and every target reachable from root."""
        for target in preorder(root):
            target.reset()
        self.rebuilt = []
        self.spawned = 0
        self._rebuilt_ids = set()

    def was_rebuilt(self, target: Target) -> bool:
        return id(target) in self._rebuilt_ids

    def record_rebuilt(self, target: Target) -> None:
        if id(target) not in self._rebuilt_ids:
            self._rebuilt_ids.add(id(target))
            self.rebuilt.append(target.name)

    def needs_rebuild(self, target: Target) -> bool:
        """Decide whether ``target`` must be rebuilt now.

        A target is rebuilt when the always-rebuild option is set, when a
        target dependency was rebuilt in this run (cascade), or when its
        artifact is stale relative to any source.

        Raises:
            MissingSourceError: In strict mode, when a file source is missing.
        """
        if self.options.strict_sources:
            for source in target.sources:
                if isinstance(source, FileSource) and not os.path.exists(source.path):
                    raise MissingSourceError(target.name, source.path)

        needed = self.options.always_rebuild
        for source in target.sources:
            if isinstance(source, TargetSource):
                if self.was_rebuilt(source.target):
                    logger.debug("%s: dependency %s was rebuilt", target.name, source.target.name)
                    needed = True
                elif is_stale(target.artifact_path, source.target.artifact_path):
                    logger.debug("%s: older than %s", target.name, source.target.artifact_path)
                    needed = True
            elif isinstance(source, FileSource):
                if is_stale(target.artifact_path, source.path):
                    logger.debug("%s: older than %s", target.name, source.path)
                    needed = True
            else:
                raise TypeError(f"Unknown source kind: {type(source).__name__}")
        return needed
