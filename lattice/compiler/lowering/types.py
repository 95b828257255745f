"""
Lattice Lowering Types

Fragments produced by lowerers and the read-only context they see.
"""

from __future__ import annotations
from typing import ClassVar, Dict, List, Mapping, Sequence, Set, Tuple
from dataclasses import dataclass, field
from abc import ABC, abstractmethod

from ...schemas.workflow import WorkflowDocument, WorkflowEdge, WorkflowNode, WorkflowNodeType
from ..analyzer import AnalyzedGraph
from ..ir_types import ExecEdge, ExecNode


@dataclass
class Fragment:
    """IR nodes and edges contributed by one workflow node."""
    nodes: List[ExecNode] = field(default_factory=list)
    edges: List[ExecEdge] = field(default_factory=list)
    required_templates: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class LoweringContext:
    """
    Everything a lowerer may consult about the surrounding workflow.

    Edge indexes are built once per lowering and keyed by node id; every
    node has an entry, possibly empty.
    """
    workflow: WorkflowDocument
    graph: AnalyzedGraph
    all_nodes: Mapping[str, WorkflowNode]
    incoming_edges: Mapping[str, Sequence[WorkflowEdge]]
    outgoing_edges: Mapping[str, Sequence[WorkflowEdge]]

    def incoming(self, node_id: str) -> List[WorkflowEdge]:
        return list(self.incoming_edges.get(node_id, ()))

    def outgoing(self, node_id: str) -> List[WorkflowEdge]:
        return list(self.outgoing_edges.get(node_id, ()))


class Lowerer(ABC):
    """
    Translates one workflow node type into an ExecIR fragment.

    Lowerers with `owns_edges` translate their node's outgoing edges
    themselves; for the rest the pipeline adds one `always` edge per
    outgoing workflow edge.
    """

    node_type: ClassVar[WorkflowNodeType]
    owns_edges: ClassVar[bool] = False

    @abstractmethod
    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        """Lower a single node."""


def index_edges(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
) -> Tuple[Dict[str, List[WorkflowEdge]], Dict[str, List[WorkflowEdge]]]:
    """Build (incoming, outgoing) edge maps keyed by node id, in edge order."""
    incoming: Dict[str, List[WorkflowEdge]] = {node.id: [] for node in nodes}
    outgoing: Dict[str, List[WorkflowEdge]] = {node.id: [] for node in nodes}
    for edge in edges:
        outgoing.setdefault(edge.source, []).append(edge)
        incoming.setdefault(edge.target, []).append(edge)
    return incoming, outgoing
