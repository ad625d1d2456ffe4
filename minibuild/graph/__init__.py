"""Public graph API surface."""

from minibuild.graph.target import (
    BuildState,
    FileSource,
    Source,
    Target,
    TargetSource,
    header,
    make_target,
    source_path,
)
from minibuild.graph.target_graph import TargetGraph, check_acyclic, preorder
from minibuild.graph.loader import build_graph, load_target_graph, resolve_root

__all__ = [
    "BuildState",
    "FileSource",
    "Source",
    "Target",
    "TargetGraph",
    "TargetSource",
    "build_graph",
    "check_acyclic",
    "header",
    "load_target_graph",
    "make_target",
    "preorder",
    "resolve_root",
    "source_path",
]
