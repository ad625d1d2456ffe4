"""Target graph: the arena owning every target of a build invocation.

Edges are the ``TargetSource`` references between targets. The graph is
assumed to be static for the lifetime of a run; only the per-target
build state changes. Cycle detection and inspection go through a
NetworkX view of the graph.
"""

from __future__ import annotations

import itertools
import logging
from typing import Dict, Iterator, List, Optional, Set

import networkx as nx

from minibuild.errors import GraphCycleError, GraphError
from minibuild.graph.target import Target

logger = logging.getLogger("minibuild.graph.target_graph")


def preorder(root: Target) -> List[Target]:
    """Pre-order traversal from ``root``.

    The root comes first, then each target dependency recursively in
    source order. Every reachable node appears exactly once.
    """
    order: List[Target] = []
    seen: Set[int] = set()

    def visit(target: Target) -> None:
        if id(target) in seen:
            return
        seen.add(id(target))
        order.append(target)
        for dep in target.target_dependencies():
            visit(dep)

    visit(root)
    return order


def dependency_view(targets: List[Target]) -> nx.DiGraph:
    """Build a NetworkX view with edges dependent -> dependency."""
    graph = nx.DiGraph()
    for target in targets:
        graph.add_node(
            target.name,
            artifact=target.artifact_path,
            sources=len(target.sources),
        )
    for target in targets:
        for dep in target.target_dependencies():
            graph.add_edge(target.name, dep.name)
    return graph


def check_acyclic(root: Target) -> None:
    """Raise ``GraphCycleError`` when a cycle is reachable from ``root``."""
    graph = dependency_view(preorder(root))
    if nx.is_directed_acyclic_graph(graph):
        return
    edges = nx.find_cycle(graph, source=root.name)
    raise GraphCycleError([u for u, *_ in edges])


class TargetGraph:
    """Owner of all targets, keyed by target name.

    Targets reference each other through ``TargetSource``; the graph
    enforces that every referenced target is owned by it, so that
    traversal never escapes the arena.
    """

    def __init__(self) -> None:
        self._targets: Dict[str, Target] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    def names(self) -> List[str]:
        return list(self._targets)

    def add(self, target: Target) -> Target:
        """Register a target.

        Args:
            target: Target to own. Its target dependencies must already be
                registered.

        Returns:
            The registered target.

        Raises:
            GraphError: On a duplicate name or a dependency the graph does
                not own.
        """
        name = target.name
        if name in self._targets:
            raise GraphError(f"Duplicate target `{name}'")
        for dep in target.target_dependencies():
            if self._targets.get(dep.name) is not dep:
                raise GraphError(
                    f"Target `{name}' depends on `{dep.name}' which is not part of the graph"
                )
        self._targets[name] = target
        logger.debug("Registered target %s (%d sources)", name, len(target.sources))
        return target

    def add_all(self, *targets: Target) -> None:
        for target in targets:
            self.add(target)

    def get(self, name: str) -> Target:
        try:
            return self._targets[name]
        except KeyError:
            raise GraphError(f"Unknown target `{name}'") from None

    def reachable(self, root: Target) -> List[Target]:
        """Targets reachable from ``root``, in pre-order."""
        return preorder(root)

    def reset_state(self) -> None:
        """Put every target back to PENDING before a new run."""
        for target in self._targets.values():
            target.reset()

    def to_networkx(self, root: Optional[Target] = None) -> nx.DiGraph:
        """Build a NetworkX view with edges dependent -> dependency.

        Args:
            root: Restrict the view to targets reachable from this root.
        """
        targets = self.reachable(root) if root is not None else list(self._targets.values())
        return dependency_view(targets)

    def find_cycles(
        self, root: Optional[Target] = None, limit: Optional[int] = None
    ) -> List[List[str]]:
        """Return simple cycles as lists of target names.

        Args:
            root: Only inspect targets reachable from this root.
            limit: Maximum number of cycles to report; None for all.
        """
        graph = self.to_networkx(root)
        cycles = nx.simple_cycles(graph)
        if limit is not None:
            cycles = itertools.islice(cycles, limit)
        return [list(cycle) for cycle in cycles]

    def check_acyclic(self, root: Target) -> None:
        """Raise ``GraphCycleError`` when a cycle is reachable from root."""
        check_acyclic(root)

    def topological_order(self, root: Target) -> List[Target]:
        """Dependencies first; raises ``GraphCycleError`` on a cycle."""
        self.check_acyclic(root)
        by_name = {target.name: target for target in self.reachable(root)}
        graph = self.to_networkx(root)
        return [by_name[name] for name in reversed(list(nx.topological_sort(graph)))]
