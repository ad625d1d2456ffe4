"""Run configuration for a build invocation."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

DEFAULT_BUILD_FILE = "minibuild.toml"


@dataclass(frozen=True)
class BuildOptions:
    """Options read by the executors.

    These are the values the argument layer populates before a build:
    ``-j``, ``-B``, ``--clean`` and ``--strict`` map onto them.

    Attributes:
        max_concurrency: Maximum build processes in flight. 1 selects the
            sequential executor.
        always_rebuild: Rebuild every reachable target.
        clean: Remove artifacts instead of building.
        strict_sources: Treat a missing file source as a build failure.
        target: Name of the root target; None for the build file default.
        build_file: Path of the declarative build file.
    """

    max_concurrency: int = 1
    always_rebuild: bool = False
    clean: bool = False
    strict_sources: bool = False
    target: Optional[str] = None
    build_file: str = DEFAULT_BUILD_FILE

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")

    @property
    def parallel(self) -> bool:
        return self.max_concurrency > 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildOptions":
        """Create options from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def merged_with(self, **overrides: Any) -> "BuildOptions":
        """Return a copy where every non-None override replaces a field."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
