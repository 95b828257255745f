"""
Lattice Workflow Schema

Workflow documents as authored in the editor: typed nodes joined by edges.
Layout data is carried along but never read by the compiler.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from enum import Enum


WORKFLOW_SCHEMA_VERSION = "1.0.0"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Node Types
# =============================================================================

class WorkflowNodeType(str, Enum):
    """
    Closed set of node kinds understood by the editor.

    Not every kind has a lowerer; the lowering pipeline rejects the ones
    that do not.
    """
    START = "start"
    END = "end"
    PROMPT = "prompt"
    SUB_AGENT = "subAgent"
    ASK_USER_QUESTION = "askUserQuestion"
    IF_ELSE = "ifElse"
    CONDITIONAL = "conditional"
    NONDETERMINISTIC = "nondeterministic"
    RECURSION = "recursion"
    SWITCH = "switch"
    SKILL = "skill"
    MCP = "mcp"
    FLOW = "flow"
    BRANCH = "branch"
    PARALLEL = "parallel"
    HTTP_REQUEST = "httpRequest"
    DATA_TRANSFORM = "dataTransform"
    DELAY = "delay"
    WEBHOOK_TRIGGER = "webhookTrigger"
    VARIABLE_STORE = "variableStore"
    CODE_EXECUTOR = "codeExecutor"
    BATCH_ITERATOR = "batchIterator"


_NODE_TYPE_VALUES = frozenset(t.value for t in WorkflowNodeType)


def is_workflow_node_type(value: Optional[str]) -> bool:
    """Check whether a raw string names a current node type."""
    return value in _NODE_TYPE_VALUES


# =============================================================================
# Nodes and Edges
# =============================================================================

class NodePosition(BaseModel):
    """Canvas position (layout only)."""
    x: float = 0
    y: float = 0


class WorkflowNode(BaseModel):
    """A single node of a workflow graph."""
    id: str = Field(..., min_length=1)
    type: WorkflowNodeType
    label: str = ""
    position: NodePosition = Field(default_factory=NodePosition)
    config: Dict[str, Any] = Field(default_factory=dict)


class WorkflowEdge(BaseModel):
    """
    Directed connection between two nodes.

    Handles name the output/input port for nodes with several named
    ports (branch arms, question options).
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")


# =============================================================================
# Workflow Document
# =============================================================================

class WorkflowDocument(BaseModel):
    """
    Lattice workflow document.

    Edge endpoints are not checked here; dangling references are reported
    when the workflow is lowered.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    version: str = WORKFLOW_SCHEMA_VERSION
    created_at: str = Field(default_factory=_utc_now, alias="createdAt")
    updated_at: str = Field(default_factory=_utc_now, alias="updatedAt")
    nodes: List[WorkflowNode] = Field(default_factory=list, max_length=200)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("nodes")
    @classmethod
    def validate_unique_node_ids(cls, v: List[WorkflowNode]) -> List[WorkflowNode]:
        seen = set()
        for node in v:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)
        return v

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get a node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
