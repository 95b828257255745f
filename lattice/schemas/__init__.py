"""Lattice Schemas Package - Workflow, model and execution event schemas."""

from .workflow import (
    WORKFLOW_SCHEMA_VERSION,
    WorkflowDocument,
    WorkflowEdge,
    WorkflowNode,
    WorkflowNodeType,
    NodePosition,
    is_workflow_node_type,
)
from .models import ModelCapabilities, ModelDefinition, PromptFormat
from .execution import (
    EventType,
    ExecutionEvent,
    ProviderFailure,
    ProviderFailureCode,
    ProviderName,
    RedactedContent,
    RedactionLevel,
)
from .migration import migrate_legacy_workflow, normalize_node_type, LEGACY_NODE_TYPE_MAP

__all__ = [
    # Workflow
    "WORKFLOW_SCHEMA_VERSION",
    "WorkflowDocument",
    "WorkflowEdge",
    "WorkflowNode",
    "WorkflowNodeType",
    "NodePosition",
    "is_workflow_node_type",
    # Models
    "ModelCapabilities",
    "ModelDefinition",
    "PromptFormat",
    # Execution
    "EventType",
    "ExecutionEvent",
    "ProviderFailure",
    "ProviderFailureCode",
    "ProviderName",
    "RedactedContent",
    "RedactionLevel",
    # Migration
    "migrate_legacy_workflow",
    "normalize_node_type",
    "LEGACY_NODE_TYPE_MAP",
]
