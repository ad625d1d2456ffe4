"""CLI command to inspect and validate the target graph.

This command loads the build file and reports any dependency cycles
between targets. When the graph is acyclic it prints the order in which
the sequential executor would visit the targets. When requested, it can
also fail the process so that CI pipelines can enforce acyclicity.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from minibuild.errors import MinibuildError
from minibuild.graph.loader import load_target_graph, resolve_root

logger = logging.getLogger("minibuild.cli.dag")


def dag_command(args) -> int:
    """Execute graph inspection / validation command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        limit_arg = getattr(args, "limit", None)
        fail_on_cycle = getattr(args, "fail_on_cycle", False)

        graph, spec = load_target_graph(args.file)
        logger.info("Loaded %d target(s) from %s", len(graph), args.file)

        # Interpret limit: <= 0 means "no limit".
        limit: Optional[int]
        if isinstance(limit_arg, int) and limit_arg > 0:
            limit = limit_arg
        else:
            limit = None

        cycles: List[List[str]] = graph.find_cycles(limit=limit)
        if not cycles:
            logger.info("Target graph has no dependency cycles")
            target_name = getattr(args, "target", None)
            if target_name is not None or spec.build.default is not None or len(graph) == 1:
                root = resolve_root(graph, spec, target_name)
                order = graph.topological_order(root)
                logger.info("Build order: %s", " -> ".join(t.name for t in order))
            return 0

        logger.warning("Detected %d cycle(s) in target graph", len(cycles))

        for idx, cycle in enumerate(cycles, start=1):
            # Present a closed loop for readability: A -> B -> C -> A
            pretty_cycle = cycle + [cycle[0]]
            logger.warning("Cycle %d: %s", idx, " -> ".join(pretty_cycle))

        if fail_on_cycle:
            logger.error("Target graph validation failed: dependency cycles detected")
            return 1

        return 0

    except MinibuildError as e:
        logger.error("%s", e)
        return 1
