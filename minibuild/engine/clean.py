"""Artifact removal."""

from __future__ import annotations

import logging
import os
from typing import List, Set

from minibuild.errors import CleanError
from minibuild.graph.target import Target

logger = logging.getLogger("minibuild.engine.clean")


def clean_target(target: Target) -> List[str]:
    """Remove the artifact of ``target`` and of every target it depends on.

    Freshness is not consulted. Plain file sources are never touched.

    Args:
        target: Root of the targets to clean.

    Returns:
        List[str]: Paths that were removed.

    Raises:
        CleanError: If an existing artifact cannot be removed.
    """
    removed: List[str] = []
    visited: Set[int] = set()
    _clean(target, removed, visited)
    return removed


def _clean(target: Target, removed: List[str], visited: Set[int]) -> None:
    if id(target) in visited:
        return
    visited.add(id(target))

    path = target.artifact_path
    if os.path.lexists(path):
        logger.warning("Removing `%s'", path)
        try:
            os.remove(path)
        except OSError as e:
            raise CleanError(f"Could not remove `{path}': {e.strerror or e}") from e
        removed.append(path)
    target.reset()

    for dep in target.target_dependencies():
        _clean(dep, removed, visited)
