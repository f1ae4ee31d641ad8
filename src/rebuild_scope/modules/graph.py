"""Module dependency graph and its closures.

Edges are directed: ``adjacency[A]`` contains ``B`` means module A depends
on module B. Parent/child links are kept separately in ``children``; a
change to a parent impacts its children but a child's build does not pull
in its parent.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..logging_config import get_logger
from .models import Module

logger = get_logger(__name__)


@dataclass
class DependencyGraph:
    """Adjacency-list graph keyed by module id."""

    adjacency: dict[str, list[str]] = field(default_factory=dict)
    reverse: dict[str, list[str]] = field(default_factory=dict)
    children: dict[str, list[str]] = field(default_factory=dict)
    all_nodes: set[str] = field(default_factory=set)
    edge_count: int = 0

    @classmethod
    def build(cls, modules: Iterable[Module]) -> "DependencyGraph":
        """Build the graph from declared dependencies and parent links.

        A dependency becomes an edge only when group, artifact and version
        all match a module of the build.
        """
        modules = list(modules)
        by_coordinates = {m.id: m for m in modules}

        adjacency: dict[str, list[str]] = {m.id: [] for m in modules}
        reverse: dict[str, list[str]] = defaultdict(list)
        children: dict[str, list[str]] = defaultdict(list)
        edge_count = 0

        for module in modules:
            for dependency in module.dependencies:
                target = by_coordinates.get(str(dependency))
                if target is None or target.id in adjacency[module.id]:
                    continue
                adjacency[module.id].append(target.id)
                reverse[target.id].append(module.id)
                edge_count += 1
            if module.parent is not None and module.parent in by_coordinates:
                children[module.parent].append(module.id)

        return cls(
            adjacency=adjacency,
            reverse=dict(reverse),
            children=dict(children),
            all_nodes=set(adjacency),
            edge_count=edge_count,
        )

    def dependents(self, start: Iterable[str]) -> set[str]:
        """Forward closure: ``start`` plus everything that transitively depends on it.

        Children of an impacted parent are impacted as well.
        """
        return _closure(start, lambda node: self.reverse.get(node, []) + self.children.get(node, []))

    def dependencies(self, start: Iterable[str], within: Optional[set[str]] = None) -> set[str]:
        """Backward closure: ``start`` plus everything it transitively depends on.

        If ``within`` is given, only nodes in it are followed (the start
        nodes are always included).
        """

        def successors(node: str) -> list[str]:
            targets = self.adjacency.get(node, [])
            if within is None:
                return targets
            return [t for t in targets if t in within]

        return _closure(start, successors)

    def find_cycles(self) -> list[set[str]]:
        """Dependency cycles: strongly connected components with more than one module."""
        return [c for c in strongly_connected_components(self.adjacency) if len(c) > 1]


def _closure(start: Iterable[str], successors) -> set[str]:
    # Worklist with a visited set; a node seen twice is never expanded again,
    # which also bounds the walk on cyclic input.
    visited: set[str] = set()
    stack = list(start)
    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        stack.extend(n for n in successors(node) if n not in visited)
    return visited


def strongly_connected_components(adjacency: dict[str, list[str]]) -> list[set[str]]:
    """Strongly connected components of ``adjacency``, one set per component.

    Tarjan's algorithm driven by an explicit stack of ``(node, next edge
    position)`` frames, so a long ``a -> b -> c -> ...`` module chain does
    not hit the interpreter's recursion limit. Edges to ids that are not
    keys of ``adjacency`` are ignored. Components come out in reverse
    topological order.
    """
    order: dict[str, int] = {}
    low: dict[str, int] = {}
    pending: list[str] = []
    pending_set: set[str] = set()
    components: list[set[str]] = []

    def visit(node: str) -> None:
        order[node] = low[node] = len(order)
        pending.append(node)
        pending_set.add(node)

    for start in sorted(adjacency):
        if start in order:
            continue
        visit(start)
        frames = [(start, 0)]
        while frames:
            node, position = frames.pop()
            edges = adjacency[node]
            while position < len(edges) and (
                edges[position] not in adjacency or edges[position] in order
            ):
                target = edges[position]
                if target in pending_set:
                    low[node] = min(low[node], order[target])
                position += 1

            if position < len(edges):
                # Descend; the frame resumes after this edge.
                target = edges[position]
                frames.append((node, position + 1))
                visit(target)
                frames.append((target, 0))
                continue

            if low[node] == order[node]:
                component = set()
                while True:
                    member = pending.pop()
                    pending_set.discard(member)
                    component.add(member)
                    if member == node:
                        break
                components.append(component)
            if frames:
                caller = frames[-1][0]
                low[caller] = min(low[caller], low[node])

    return components
