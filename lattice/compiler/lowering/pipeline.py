"""
Lattice Lowering Pipeline

WorkflowDocument -> ExecProgram. Validation runs before any node is
lowered, and any failure aborts the whole lowering; a partial program is
never returned.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Set
from dataclasses import dataclass, field
import logging

from ...config import get_config
from ...schemas.workflow import WorkflowDocument, WorkflowNode, WorkflowNodeType
from ..analyzer import AnalyzedGraph, analyze_graph
from ..ir_types import ExecEdge, ExecNode, ExecProgram, WhenCondition
from ..validation import (
    CyclicWorkflowError,
    DanglingEdgeError,
    InvalidStateRefError,
    StartNodeError,
    UnreachableNodesError,
    UnsupportedNodeError,
)
from .lowerers import DEFAULT_LOWERERS
from .registry import LowererRegistry
from .types import LoweringContext, index_edges

logger = logging.getLogger(__name__)


@dataclass
class LoweringResult:
    """Program plus the prompt templates its LLM steps reference."""
    program: ExecProgram
    required_templates: List[str] = field(default_factory=list)
    graph: Optional[AnalyzedGraph] = None


def create_default_lowerer_registry() -> LowererRegistry:
    registry = LowererRegistry()
    for lowerer in DEFAULT_LOWERERS:
        registry.register(lowerer)
    return registry


# =============================================================================
# Graph Checks
# =============================================================================

def check_graph(
    workflow: WorkflowDocument,
    graph: AnalyzedGraph,
    reject_cycles: bool = True,
) -> WorkflowNode:
    """
    Structural checks in fixed order. Returns the start node.

    Raises:
        DanglingEdgeError, UnreachableNodesError, CyclicWorkflowError,
        StartNodeError
    """
    node_ids = {node.id for node in workflow.nodes}
    dangling = [e for e in workflow.edges if e.source not in node_ids or e.target not in node_ids]
    if dangling:
        missing: List[str] = []
        for edge in dangling:
            for endpoint in (edge.source, edge.target):
                if endpoint not in node_ids and endpoint not in missing:
                    missing.append(endpoint)
        raise DanglingEdgeError([e.id for e in dangling], missing)

    if graph.unreachable:
        raise UnreachableNodesError(graph.unreachable)

    if graph.cycles and reject_cycles:
        raise CyclicWorkflowError(graph.cycles)

    starts = [node for node in workflow.nodes if node.type == WorkflowNodeType.START]
    if len(starts) != 1:
        raise StartNodeError([node.id for node in starts])
    return starts[0]


# =============================================================================
# Lowering
# =============================================================================

def lower_workflow(
    workflow: WorkflowDocument,
    registry: Optional[LowererRegistry] = None,
    reject_cycles: Optional[bool] = None,
) -> LoweringResult:
    """Validate and lower a workflow."""
    config = get_config().compiler
    if reject_cycles is None:
        reject_cycles = config.reject_cycles
    registry = registry or create_default_lowerer_registry()

    graph = analyze_graph(workflow.nodes, workflow.edges)
    start = check_graph(workflow, graph, reject_cycles=reject_cycles)

    incoming, outgoing = index_edges(workflow.nodes, workflow.edges)
    context = LoweringContext(
        workflow=workflow,
        graph=graph,
        all_nodes={node.id: node for node in workflow.nodes},
        incoming_edges=incoming,
        outgoing_edges=outgoing,
    )

    nodes: List[ExecNode] = []
    edges: List[ExecEdge] = []
    required: Set[str] = set()

    for node in workflow.nodes:
        lowerer = registry.get(node.type)
        if lowerer is None:
            raise UnsupportedNodeError(node.type.value, node.id)

        fragment = lowerer.lower(node, context)
        nodes.extend(fragment.nodes)
        edges.extend(fragment.edges)
        required.update(fragment.required_templates)

        if not lowerer.owns_edges:
            edges.extend(
                ExecEdge(source=edge.source, target=edge.target, when=WhenCondition.always())
                for edge in outgoing[node.id]
            )
        logger.debug(f"Lowered {node.type.value} node {node.id} -> {len(fragment.nodes)} IR node(s)")

    program = ExecProgram(
        execir_version=config.execir_version,
        entry_node=start.id,
        nodes=nodes,
        edges=edges,
    )

    invalid = program.invalid_state_refs()
    if invalid:
        raise InvalidStateRefError(invalid)

    logger.info(
        f"Lowered workflow {workflow.id}: {len(nodes)} nodes, {len(edges)} edges"
    )
    return LoweringResult(program=program, required_templates=sorted(required), graph=graph)


def lower_to_exec_ir(workflow: WorkflowDocument) -> ExecProgram:
    """Lower a workflow with the default lowerers."""
    return lower_workflow(workflow).program
