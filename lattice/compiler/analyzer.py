"""
Lattice Graph Analyzer

Execution order, cycles and reachability for a workflow graph.
All structures are rebuilt per call; nothing is cached between analyses.
"""

from __future__ import annotations
from typing import Dict, Iterator, List, Sequence, Set
from dataclasses import dataclass, field
from collections import deque

from ..schemas.workflow import WorkflowEdge, WorkflowNode, WorkflowNodeType


@dataclass(frozen=True)
class AnalyzedGraph:
    """Read-only view of a workflow graph."""
    nodes: List[WorkflowNode] = field(default_factory=list)
    edges: List[WorkflowEdge] = field(default_factory=list)
    execution_order: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    unreachable: List[str] = field(default_factory=list)

    @property
    def is_acyclic(self) -> bool:
        return not self.cycles


def analyze_graph(nodes: Sequence[WorkflowNode], edges: Sequence[WorkflowEdge]) -> AnalyzedGraph:
    """Analyze a node/edge list. Pure and deterministic."""
    adjacency = _build_adjacency(nodes, edges)
    return AnalyzedGraph(
        nodes=list(nodes),
        edges=list(edges),
        execution_order=_topological_sort(nodes, edges, adjacency),
        cycles=_detect_cycles(nodes, adjacency),
        unreachable=_find_unreachable(nodes, edges, adjacency),
    )


def _build_adjacency(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {node.id: [] for node in nodes}
    for edge in edges:
        if edge.source in adjacency:
            adjacency[edge.source].append(edge.target)
    return adjacency


def _topological_sort(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
    adjacency: Dict[str, List[str]],
) -> List[str]:
    """Kahn's algorithm; the frontier is FIFO in declared node order."""
    in_degree: Dict[str, int] = {node.id: 0 for node in nodes}
    for edge in edges:
        if edge.target in in_degree:
            in_degree[edge.target] += 1

    queue = deque(node.id for node in nodes if in_degree[node.id] == 0)
    result: List[str] = []

    while queue:
        current = queue.popleft()
        result.append(current)
        for neighbor in adjacency.get(current, []):
            if neighbor not in in_degree:
                continue
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    # Nodes in or downstream of a cycle never reach in-degree zero
    return result


def _detect_cycles(nodes: Sequence[WorkflowNode], adjacency: Dict[str, List[str]]) -> List[List[str]]:
    """
    DFS from every unvisited node, with an explicit stack so long chains
    do not hit the interpreter's recursion limit.

    `path` mirrors the stack, so a back edge to any node on it closes a
    cycle; overlapping cycles reached through different branches are all
    reported.
    """
    visited: Set[str] = set()
    cycles: List[List[str]] = []

    for root in nodes:
        if root.id in visited:
            continue
        visited.add(root.id)
        path: List[str] = [root.id]
        on_stack: Set[str] = {root.id}
        stack: List[Iterator[str]] = [iter(adjacency.get(root.id, []))]

        while stack:
            neighbor = next(stack[-1], None)
            if neighbor is None:
                stack.pop()
                on_stack.discard(path.pop())
                continue
            if neighbor in on_stack:
                cycles.append(path[path.index(neighbor):])
                continue
            if neighbor in visited:
                continue
            visited.add(neighbor)
            on_stack.add(neighbor)
            path.append(neighbor)
            stack.append(iter(adjacency.get(neighbor, [])))

    return cycles


def _find_unreachable(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
    adjacency: Dict[str, List[str]],
) -> List[str]:
    """BFS from the start nodes, or from every node without incoming edges."""
    if not nodes:
        return []

    roots = [node.id for node in nodes if node.type == WorkflowNodeType.START]
    if not roots:
        has_incoming = {edge.target for edge in edges}
        roots = [node.id for node in nodes if node.id not in has_incoming]
        if not roots:
            # Every node has a predecessor; no sensible root to measure from
            return []

    reachable: Set[str] = set()
    queue = deque(roots)
    while queue:
        current = queue.popleft()
        if current in reachable:
            continue
        reachable.add(current)
        for neighbor in adjacency.get(current, []):
            if neighbor not in reachable:
                queue.append(neighbor)

    return [node.id for node in nodes if node.id not in reachable]
