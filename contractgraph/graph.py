"""Directed dependency graph over discovered contract specs.

Nodes are logical spec keys (unversioned). Construction is two-pass:
every node is registered first, then reverse edges are derived, because
dependency lists arrive file by file in arbitrary order.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import DuplicateNodeError
from .extractor import SpecDescriptor
from .models import ContractNode, MissingDependency

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


class ContractGraph:
    """Mapping of spec key to :class:`ContractNode`.

    Edges may point at keys that were never registered; that is valid data
    and is what :func:`find_missing_dependencies` reports.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, ContractNode] = {}

    def add_node(self, key: str, path: str, dependencies: Sequence[str] = ()) -> ContractNode:
        if key in self._nodes:
            raise DuplicateNodeError(key)
        node = ContractNode(key=key, path=path, dependencies=list(dependencies))
        self._nodes[key] = node
        return node

    def build_reverse_edges(self) -> None:
        """Populate ``dependents`` from every node's declared dependencies.

        Dependencies on unknown keys are skipped. Safe to call repeatedly.
        """
        for node in self._nodes.values():
            node.dependents = []
        for node in self._nodes.values():
            for dep in node.dependencies:
                target = self._nodes.get(dep)
                if target is not None and node.key not in target.dependents:
                    target.dependents.append(node.key)

    def get(self, key: str) -> Optional[ContractNode]:
        return self._nodes.get(key)

    def keys(self) -> List[str]:
        return list(self._nodes.keys())

    def nodes(self) -> List[ContractNode]:
        return list(self._nodes.values())

    def edge_count(self) -> int:
        return sum(len(n.dependencies) for n in self._nodes.values())

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __getitem__(self, key: str) -> ContractNode:
        return self._nodes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)


def build_contract_graph(descriptors: Iterable[SpecDescriptor]) -> ContractGraph:
    """Build a graph from extractor output (both passes)."""
    graph = ContractGraph()
    for descriptor in descriptors:
        graph.add_node(descriptor.resolved_key, descriptor.path, descriptor.dependencies)
    graph.build_reverse_edges()
    logger.info("Built contract graph: %d nodes, %d edges", len(graph), graph.edge_count())
    return graph


def detect_cycles(graph: ContractGraph) -> List[List[str]]:
    """Return every cycle found by depth-first search over all nodes.

    Each cycle is the slice of the recursion stack from the revisited key to
    the current node, with the starting key repeated at the end
    (``[A, B, C, A]``). Children that are not in the graph are dead ends.
    """
    cycles: List[List[str]] = []
    visited = set()

    for start in graph:
        if start in visited:
            continue
        visited.add(start)
        stack = [start]
        on_stack = {start}
        children = [iter(dict.fromkeys(graph[start].dependencies))]

        while children:
            child = next(children[-1], _EXHAUSTED)
            if child is _EXHAUSTED:
                children.pop()
                on_stack.discard(stack.pop())
                continue
            if child not in graph:
                continue
            if child in on_stack:
                cycles.append(stack[stack.index(child):] + [child])
                continue
            if child in visited:
                continue
            visited.add(child)
            stack.append(child)
            on_stack.add(child)
            children.append(iter(dict.fromkeys(graph[child].dependencies)))

    if cycles:
        logger.debug("Detected %d dependency cycle(s)", len(cycles))
    return cycles


def find_missing_dependencies(graph: ContractGraph) -> List[MissingDependency]:
    """One record per node that declares at least one unknown dependency."""
    results: List[MissingDependency] = []
    for node in graph.nodes():
        missing: List[str] = []
        for dep in node.dependencies:
            if dep not in graph and dep not in missing:
                missing.append(dep)
        if missing:
            results.append(MissingDependency(contract=node.key, missing=tuple(missing)))
    return results


def impacted_by(graph: ContractGraph, key: str) -> List[str]:
    """Every spec that transitively depends on *key*, nearest first.

    Requires :meth:`ContractGraph.build_reverse_edges` to have run.
    """
    if key not in graph:
        return []
    seen = {key}
    order: List[str] = []
    queue = deque(graph[key].dependents)
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        order.append(current)
        queue.extend(graph[current].dependents)
    return order
