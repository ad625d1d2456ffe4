"""Public API helpers for driving builds from Python code."""

from __future__ import annotations

from typing import List, Optional

from minibuild.config.options import BuildOptions
from minibuild.engine.clean import clean_target
from minibuild.engine.context import BuildContext
from minibuild.engine.result import BuildResult
from minibuild.engine.sequential import SequentialExecutor
from minibuild.graph.target import Target
from minibuild.graph.target_graph import TargetGraph
from minibuild.runtime.process import ProcessRunner
from minibuild.runtime.protocols import CommandRunner
from minibuild.scheduler.parallel import ParallelScheduler


def create_context(
    graph: Optional[TargetGraph] = None,
    options: Optional[BuildOptions] = None,
    runner: Optional[CommandRunner] = None,
) -> BuildContext:
    """Create a build context with sensible defaults.

    Args:
        graph: Target graph owning the targets (optional).
        options: Run options; defaults to a sequential incremental build.
        runner: Process runner; defaults to a real ``ProcessRunner``.

    Returns:
        BuildContext ready for one of the executors.
    """
    return BuildContext(
        graph=graph,
        options=options or BuildOptions(),
        runner=runner or ProcessRunner(),
    )


def build(root: Target, context: Optional[BuildContext] = None) -> BuildResult:
    """Build ``root`` with the executor matching the configured concurrency.

    A maximum concurrency of 1 uses the sequential executor, anything
    higher the parallel scheduler.
    """
    context = context or create_context()
    if context.options.parallel:
        return ParallelScheduler(context).build(root, context.options.max_concurrency)
    return SequentialExecutor(context).build(root)


def clean(root: Target) -> List[str]:
    """Remove the artifacts of ``root`` and of its target dependencies."""
    return clean_target(root)
