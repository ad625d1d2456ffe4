"""Build command implementation."""

# CLI must gracefully handle expected failures to present one error line.

from __future__ import annotations

import logging
import time

from minibuild import api
from minibuild.config.options import BuildOptions
from minibuild.engine.clean import clean_target
from minibuild.errors import MinibuildError
from minibuild.graph.loader import load_target_graph, resolve_root

logger = logging.getLogger("minibuild.cli.build")

RECOVERABLE_BUILD_ERRORS = (
    MinibuildError,
    OSError,
    ValueError,
)


def build_command(args) -> int:
    """Execute build command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code.
    """
    try:
        return _build_command_impl(args)
    except RECOVERABLE_BUILD_ERRORS as e:
        logger.error("%s", e)
        return 1


def options_from_args(args, defaults) -> BuildOptions:
    """Merge build file defaults with the values given on the command line.

    Args:
        args: Parsed command-line arguments.
        defaults: ``build`` section of the build file.

    Returns:
        BuildOptions for this invocation.
    """
    base = BuildOptions(
        max_concurrency=defaults.jobs,
        always_rebuild=defaults.always_rebuild,
        strict_sources=defaults.strict_sources,
        build_file=str(args.file),
    )
    return base.merged_with(
        max_concurrency=getattr(args, "nb_process", None),
        always_rebuild=True if getattr(args, "always_compile", False) else None,
        clean=True if getattr(args, "clean", False) else None,
        strict_sources=True if getattr(args, "strict", False) else None,
        target=getattr(args, "target", None),
    )


def _build_command_impl(args) -> int:
    """Internal implementation of build command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code.
    """
    graph, spec = load_target_graph(args.file)
    options = options_from_args(args, spec.build)
    root = resolve_root(graph, spec, options.target)

    logger.debug("Build file: %s", options.build_file)
    logger.debug("Target: %s", root.name)
    logger.debug("Jobs: %d", options.max_concurrency)
    logger.debug("Always rebuild: %s", options.always_rebuild)

    if options.clean:
        removed = clean_target(root)
        logger.info("Removed %d artifact(s)", len(removed))
        return 0

    start_time = time.time()
    context = api.create_context(graph, options)
    result = api.build(root, context)

    if not result.success:
        # The executor already reported the failing target.
        return 1

    if result.rebuilt:
        logger.info(
            "Rebuilt %d target(s) in %.2fs (peak %d process(es))",
            len(result.rebuilt),
            time.time() - start_time,
            result.peak_concurrency,
        )
    return 0
