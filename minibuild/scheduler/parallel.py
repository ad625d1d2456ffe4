"""Multiprocess build scheduler with a bounded pool of build processes.

The scheduler keeps two structures for the duration of one run:

- a ``Worklist`` of targets not yet built, seeded by a pre-order walk of
  the graph;
- a ``ProcessTable`` mapping each in-flight pid to the target it builds,
  sized to the maximum concurrency.

Scheduling loop:
1. Admit ready targets (all target dependencies built) until the pool is
   full. Fresh targets are marked built without taking a slot.
2. Block until any child exits, mark its target built, record failures.
3. After a failure no new work is admitted; children already running are
   waited for but never killed.
"""

from __future__ import annotations

import logging
from typing import Optional

from minibuild.engine.command import assemble_command
from minibuild.engine.context import BuildContext
from minibuild.engine.result import BuildResult
from minibuild.errors import GraphError, MissingSourceError, SpawnError
from minibuild.graph.target import Target
from minibuild.graph.target_graph import check_acyclic
from minibuild.runtime.process import SPAWN_FAILURE_STATUS
from minibuild.scheduler.process_table import ProcessTable
from minibuild.scheduler.worklist import Worklist

logger = logging.getLogger("minibuild.scheduler.parallel")


class ParallelScheduler:
    """Build a target graph with up to ``max_concurrency`` processes.

    Args:
        context: Build context providing options, runner and run state.
    """

    def __init__(self, context: BuildContext) -> None:
        self.context = context
        self._worklist = Worklist()
        self._table: Optional[ProcessTable] = None
        self._status = 0
        self._failed: Optional[str] = None

    def build(self, root: Target, max_concurrency: Optional[int] = None) -> BuildResult:
        """Build ``root`` and everything it depends on.

        Args:
            root: Target to build.
            max_concurrency: Maximum processes in flight; defaults to the
                context's ``options.max_concurrency``.

        Returns:
            BuildResult: status 0 when no build step failed.

        Raises:
            ValueError: If ``max_concurrency`` is lower than 1.
            GraphCycleError: If a cycle is reachable from ``root``.
        """
        if max_concurrency is None:
            max_concurrency = self.context.options.max_concurrency
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

        check_acyclic(root)
        self.context.begin_run(root)
        self._worklist = Worklist.from_graph(root)
        self._table = ProcessTable(max_concurrency)
        self._status = 0
        self._failed = None

        logger.debug(
            "Scheduling %d target(s) with up to %d process(es)",
            len(self._worklist),
            max_concurrency,
        )

        while (self._worklist or self._table.live_count()) and self._status == 0:
            self._admit(max_concurrency)
            if self._status != 0:
                break
            if self._table.live_count() == 0:
                if self._worklist:
                    pending = ", ".join(t.name for t in self._worklist)
                    raise GraphError(f"Scheduler stalled with pending targets: {pending}")
                break
            self._reap_one()

        self._drain()

        result = BuildResult(
            status=self._status,
            rebuilt=list(self.context.rebuilt),
            failed=self._failed,
            spawned=self.context.spawned,
            peak_concurrency=self._table.peak,
        )
        if result.up_to_date:
            logger.info("`%s' is up to date", root.name)
        return result

    def _admit(self, max_concurrency: int) -> None:
        while self._table.live_count() < max_concurrency:
            target = self._worklist.pop_ready()
            if target is None:
                return

            try:
                needed = self.context.needs_rebuild(target)
            except MissingSourceError as e:
                self._record_failure(target, 1, str(e))
                return

            if not needed:
                logger.debug("`%s' is fresh", target.name)
                target.mark_built()
                continue

            try:
                pid = self.context.runner.run_async(assemble_command(target))
            except SpawnError as e:
                logger.debug("%s", e)
                self._record_failure(target, SPAWN_FAILURE_STATUS)
                return

            self.context.spawned += 1
            self._table.insert(pid, target)

    def _reap_one(self) -> None:
        pid, status = self.context.runner.wait_any()
        target = self._table.remove(pid)
        if target is None:
            raise RuntimeError(f"Finished process {pid} is not tracked by the scheduler")

        target.mark_built()
        if status != 0:
            self._record_failure(target, status)
        else:
            self.context.record_rebuilt(target)

    def _drain(self) -> None:
        if self._table.live_count():
            logger.debug(
                "Waiting for %d build process(es) still running", self._table.live_count()
            )
        while self._table.live_count():
            self._reap_one()

    def _record_failure(self, target: Target, status: int, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Could not build target `{target.name}' (exit status {status})"
        if self._status != 0:
            # The first failure was already reported; this one is drained.
            logger.warning("%s", message)
            return
        logger.error("%s", message)
        self._status = status
        self._failed = target.name
