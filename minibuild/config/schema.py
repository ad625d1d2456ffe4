"""Declarative build file schema using Pydantic for validation.

A build file describes a static target graph:

    [targets."toto.o"]
    command = ["cc", "-Wall", "-c"]
    sources = [{ file = "toto.c" }, { file = "toto.h", include_in_command = false }]

    [targets.toto]
    command = "cc -Wall"
    sources = [{ target = "toto.o" }]

    [build]
    default = "toto"
    jobs = 4

Validation happens here; turning the models into ``Target`` objects is
done by ``minibuild.graph.loader``.
"""

import shlex
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SourceSpec(BaseModel):
    """One input of a target.

    Attributes:
        file: Path of a plain file input.
        target: Name of another target whose artifact is the input.
        include_in_command: Whether the input path is passed to the command.
    """

    file: Optional[str] = None
    target: Optional[str] = None
    include_in_command: bool = True

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def exactly_one_kind(self) -> "SourceSpec":
        """Require exactly one of ``file`` / ``target``."""
        if (self.file is None) == (self.target is None):
            raise ValueError("a source needs exactly one of 'file' or 'target'")
        return self

    @property
    def kind(self) -> str:
        return "file" if self.file is not None else "target"


class TargetSpec(BaseModel):
    """A buildable artifact.

    Attributes:
        artifact: Output path; defaults to the target name.
        command: Invariant command prefix, as a token list or a shell-like
            string.
        sources: Ordered inputs.
    """

    artifact: Optional[str] = None
    command: List[str] = Field(min_length=1)
    sources: List[SourceSpec] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @field_validator("command", mode="before")
    @classmethod
    def split_command(cls, v: Any) -> Any:
        """Accept ``"cc -Wall -c"`` as well as ``["cc", "-Wall", "-c"]``."""
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("sources", mode="before")
    @classmethod
    def expand_shorthand(cls, v: Any) -> Any:
        """Plain strings in ``sources`` are file sources."""
        if isinstance(v, list):
            return [{"file": item} if isinstance(item, str) else item for item in v]
        return v


class BuildDefaults(BaseModel):
    """Run defaults stored next to the targets.

    Attributes:
        default: Target built when none is named on the command line.
        jobs: Maximum number of concurrent build processes.
        always_rebuild: Rebuild every target regardless of freshness.
        strict_sources: Fail when a file source does not exist.
    """

    default: Optional[str] = None
    jobs: int = Field(default=1, ge=1, le=1024)
    always_rebuild: bool = False
    strict_sources: bool = False

    model_config = {"extra": "forbid"}


class BuildFileSpec(BaseModel):
    """Top-level build file."""

    targets: Dict[str, TargetSpec] = Field(default_factory=dict)
    build: BuildDefaults = Field(default_factory=BuildDefaults)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def references_exist(self) -> "BuildFileSpec":
        """Every target source and the default target must be declared."""
        for name, spec in self.targets.items():
            for source in spec.sources:
                if source.target is not None and source.target not in self.targets:
                    raise ValueError(
                        f"target '{name}' depends on undeclared target '{source.target}'"
                    )
        if self.build.default is not None and self.build.default not in self.targets:
            raise ValueError(f"default target '{self.build.default}' is not declared")
        return self
