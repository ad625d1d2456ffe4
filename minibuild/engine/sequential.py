"""Sequential, depth-first build executor.

One build command is in flight at a time. This executor defines the
reference semantics: the parallel scheduler reaches the same rebuilt /
up-to-date decisions for the same graph and filesystem state.
"""

from __future__ import annotations

import logging
from typing import Optional

from minibuild.engine.command import assemble_command
from minibuild.engine.context import BuildContext
from minibuild.engine.result import BuildResult
from minibuild.errors import MissingSourceError
from minibuild.graph.target import Target
from minibuild.graph.target_graph import check_acyclic

logger = logging.getLogger("minibuild.engine.sequential")


class SequentialExecutor:
    """Build a target and its dependencies one process at a time.

    Args:
        context: Build context providing options, runner and run state.
    """

    def __init__(self, context: BuildContext) -> None:
        self.context = context
        self._failed: Optional[str] = None

    def build(self, target: Target) -> BuildResult:
        """Build ``target`` after everything it depends on.

        Returns:
            BuildResult: status 0 when every needed command succeeded,
            otherwise the exit status of the failing command.

        Raises:
            GraphCycleError: If a cycle is reachable from ``target``.
        """
        check_acyclic(target)
        self.context.begin_run(target)
        self._failed = None

        try:
            status = self._build(target)
        except MissingSourceError as e:
            logger.error("%s", e)
            self._failed = e.target
            status = 1

        result = BuildResult(
            status=status,
            rebuilt=list(self.context.rebuilt),
            failed=self._failed,
            spawned=self.context.spawned,
            peak_concurrency=min(self.context.spawned, 1),
        )
        if result.up_to_date:
            logger.info("`%s' is up to date", target.name)
        return result

    def _build(self, target: Target) -> int:
        for dep in target.target_dependencies():
            if dep.is_built:
                continue
            status = self._build(dep)
            if status != 0:
                return status

        if not self.context.needs_rebuild(target):
            logger.debug("`%s' is fresh", target.name)
            target.mark_built()
            return 0

        status = self.context.runner.run_sync(assemble_command(target))
        self.context.spawned += 1
        target.mark_built()
        if status != 0:
            self._failed = target.name
            logger.error("Could not build target `%s' (exit status %d)", target.name, status)
            return status

        self.context.record_rebuilt(target)
        return 0
