"""Modification-time based freshness checks.

Results are never cached: every call re-reads the filesystem, so a
decision can change if files are touched while a build runs.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger("minibuild.engine.freshness")


def is_stale(target_path: str, source_path: str) -> bool:
    """Tell whether ``target_path`` is out of date relative to one input.

    Args:
        target_path: Artifact produced by a build command.
        source_path: One input of that command.

    Returns:
        bool: False when the source cannot be read (nothing to compare
        against), True when the artifact does not exist, otherwise True
        iff the source modification time is strictly newer. Seconds are
        compared first, ties are broken by the sub-second component.
    """
    try:
        source_stat = os.stat(source_path)
    except OSError as e:
        logger.debug("Source %s is unreadable (%s); treated as not stale", source_path, e)
        return False

    try:
        target_stat = os.stat(target_path)
    except OSError:
        return True

    source_sec, source_nsec = divmod(source_stat.st_mtime_ns, 1_000_000_000)
    target_sec, target_nsec = divmod(target_stat.st_mtime_ns, 1_000_000_000)
    if source_sec == target_sec:
        return source_nsec > target_nsec
    return source_sec > target_sec


def file_exists(path: str) -> bool:
    """Return True when ``path`` exists and is readable."""
    return os.access(path, os.R_OK)
