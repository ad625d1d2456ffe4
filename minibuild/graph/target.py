"""Target and source model.

A ``Target`` is one buildable artifact: the path it produces, the
invariant prefix of the command that produces it and the ordered sources
the command consumes. A source is either a plain file or a reference to
another target owned by the same ``TargetGraph``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Union


class BuildState(Enum):
    """Per-run build state stored on a target.

    In-flight builds are tracked by the parallel scheduler's process
    table, never on the node itself.
    """

    PENDING = "pending"
    BUILT = "built"


@dataclass(frozen=True)
class FileSource:
    """A plain file input.

    Attributes:
        path: Filesystem path of the input.
        include_in_command: Whether the path is appended to the build
            command. False for pure dependencies such as headers.
    """

    path: str
    include_in_command: bool = True

    @property
    def kind(self) -> str:
        return "file"


@dataclass(frozen=True, eq=False)
class TargetSource:
    """A reference to another target whose artifact is an input.

    The reference is non-owning: the ``TargetGraph`` holds every node.
    """

    target: "Target"
    include_in_command: bool = True

    @property
    def kind(self) -> str:
        return "target"

    @property
    def path(self) -> str:
        return self.target.artifact_path


Source = Union[FileSource, TargetSource]


def header(path: str) -> FileSource:
    """Build a file source that triggers rebuilds without being passed on."""
    return FileSource(path, include_in_command=False)


def source_path(source: Source) -> str:
    """Resolve the path a source contributes to staleness and commands.

    Raises:
        TypeError: If ``source`` is not a known source kind.
    """
    if isinstance(source, FileSource):
        return source.path
    if isinstance(source, TargetSource):
        return source.target.artifact_path
    raise TypeError(f"Unknown source kind: {type(source).__name__}")


@dataclass(eq=False)
class Target:
    """A buildable artifact.

    Attributes:
        artifact_path: Output file produced by the command.
        command_prefix: Invariant leading tokens of the build command.
        sources: Ordered inputs; order only matters for argument order.
        name: Identifier within a graph, defaults to the artifact path.
        state: Pending until the target is built (or found fresh) in the
            current run.
    """

    artifact_path: str
    command_prefix: List[str] = field(default_factory=list)
    sources: List[Source] = field(default_factory=list)
    name: Optional[str] = None
    state: BuildState = BuildState.PENDING

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = self.artifact_path
        self.command_prefix = list(self.command_prefix)
        self.sources = list(self.sources)

    def __repr__(self) -> str:
        return f"Target({self.name!r}, state={self.state.value})"

    @property
    def is_built(self) -> bool:
        return self.state is BuildState.BUILT

    def mark_built(self) -> None:
        """Flip the target to BUILT; calling it again has no effect."""
        self.state = BuildState.BUILT

    def reset(self) -> None:
        self.state = BuildState.PENDING

    def add_source(self, source: Source) -> "Target":
        """Append a source and return ``self`` for chaining."""
        if not isinstance(source, (FileSource, TargetSource)):
            raise TypeError(f"Unknown source kind: {type(source).__name__}")
        self.sources.append(source)
        return self

    def depends_on(self, *targets: "Target", include_in_command: bool = True) -> "Target":
        for target in targets:
            self.add_source(TargetSource(target, include_in_command))
        return self

    def target_dependencies(self) -> Iterator["Target"]:
        """Yield the targets referenced by target-type sources, in order."""
        for source in self.sources:
            if isinstance(source, TargetSource):
                yield source.target

    def dependencies_built(self) -> bool:
        return all(dep.is_built for dep in self.target_dependencies())

    def command_paths(self) -> List[str]:
        """Paths of the sources passed as positional command arguments."""
        return [source_path(s) for s in self.sources if s.include_in_command]


def make_target(
    artifact_path: str,
    command: Sequence[str],
    *sources: Source,
    name: Optional[str] = None,
) -> Target:
    """Convenience constructor mirroring the declarative layout.

    Example:
        >>> obj = make_target("toto.o", ["cc", "-c"], FileSource("toto.c"))
        >>> exe = make_target("toto", ["cc"], TargetSource(obj))
    """
    target = Target(artifact_path, list(command), name=name)
    for source in sources:
        target.add_source(source)
    return target
