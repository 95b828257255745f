"""
Lattice Legacy Migration

Converts documents saved by the previous editor format (nodes with `data`,
`connections` with from/to ports) into WorkflowDocuments.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
from datetime import datetime, timezone
import logging
import time

from .workflow import (
    WORKFLOW_SCHEMA_VERSION,
    WorkflowDocument,
    WorkflowEdge,
    WorkflowNode,
    WorkflowNodeType,
    is_workflow_node_type,
)

logger = logging.getLogger(__name__)


LEGACY_NODE_TYPE_MAP: Dict[str, WorkflowNodeType] = {
    "llmCall": WorkflowNodeType.SUB_AGENT,
    "promptTemplate": WorkflowNodeType.PROMPT,
    "systemInstruction": WorkflowNodeType.PROMPT,
    "fewShotBank": WorkflowNodeType.PROMPT,
    "conditionalBranch": WorkflowNodeType.IF_ELSE,
    "switchCase": WorkflowNodeType.SWITCH,
    "humanInTheLoopGate": WorkflowNodeType.ASK_USER_QUESTION,
    "inputForm": WorkflowNodeType.ASK_USER_QUESTION,
    "apiCall": WorkflowNodeType.HTTP_REQUEST,
    "fileReader": WorkflowNodeType.PROMPT,
    "fileWriter": WorkflowNodeType.PROMPT,
    "jsonCsvParse": WorkflowNodeType.DATA_TRANSFORM,
    "textResponse": WorkflowNodeType.PROMPT,
    "webhookPush": WorkflowNodeType.WEBHOOK_TRIGGER,
    "loop": WorkflowNodeType.BATCH_ITERATOR,
    "errorHandler": WorkflowNodeType.IF_ELSE,
    "subAgentFlow": WorkflowNodeType.FLOW,
}

DEFAULT_NODE_TYPE = WorkflowNodeType.SUB_AGENT


def normalize_node_type(node_type: Optional[str]) -> WorkflowNodeType:
    """Current types pass through; legacy names map via the table; anything else becomes subAgent."""
    if not node_type:
        return DEFAULT_NODE_TYPE
    if is_workflow_node_type(node_type):
        return WorkflowNodeType(node_type)
    mapped = LEGACY_NODE_TYPE_MAP.get(node_type)
    if mapped is None:
        logger.warning(f"Unknown legacy node type {node_type!r}, migrating as {DEFAULT_NODE_TYPE.value}")
        return DEFAULT_NODE_TYPE
    return mapped


def migrate_legacy_workflow(data: Mapping[str, Any]) -> WorkflowDocument:
    """
    Migrate a legacy workflow document.

    Raises:
        pydantic.ValidationError: If the result is not a valid WorkflowDocument
    """
    now = datetime.now(timezone.utc).isoformat()

    nodes = []
    for raw in data.get("nodes") or []:
        config = raw.get("data")
        config = dict(config) if isinstance(config, Mapping) else {}
        label = config.get("label")
        nodes.append(WorkflowNode(
            id=raw["id"],
            type=normalize_node_type(raw.get("type")),
            label=str(label) if label is not None else raw["id"],
            position=raw.get("position") or {"x": 0, "y": 0},
            config=config,
        ))

    edges = [
        WorkflowEdge(
            id=connection["id"],
            source=connection["from"],
            target=connection["to"],
            source_handle=connection.get("fromPort"),
            target_handle=connection.get("toPort"),
        )
        for connection in data.get("connections") or []
    ]

    document = WorkflowDocument(
        id=data.get("id") or f"workflow_{int(time.time() * 1000)}",
        name=data.get("name") or "Untitled Workflow",
        description=data.get("description"),
        version=WORKFLOW_SCHEMA_VERSION,
        created_at=now,
        updated_at=now,
        nodes=nodes,
        edges=edges,
    )
    logger.info(f"Migrated legacy workflow {document.id}: {len(nodes)} nodes, {len(edges)} edges")
    return document
