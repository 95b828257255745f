"""
Lattice Claude Emitter

Renders a workflow as a Claude command file (.claude/commands/<slug>.md).
"""

from __future__ import annotations
from typing import List
import logging

from ...schemas.models import PromptFormat
from ...schemas.workflow import WorkflowDocument, WorkflowNode, WorkflowNodeType
from ..analyzer import analyze_graph
from .base import CompileInput, CompileOutput, CompilerTarget, Emitter, OutputFile

logger = logging.getLogger(__name__)


def _quoted(key: str, value) -> str:
    return f'{key}="{value}"'


def describe_node(node: WorkflowNode) -> str:
    """Short per-type detail appended to a step line."""
    config = node.config
    parts: List[str] = []

    def text(key: str) -> str:
        value = config.get(key)
        return value if isinstance(value, str) else ""

    if node.type == WorkflowNodeType.PROMPT:
        if text("prompt"):
            parts.append(_quoted("prompt", text("prompt")))
    elif node.type == WorkflowNodeType.SUB_AGENT:
        if text("description"):
            parts.append(_quoted("description", text("description")))
        if text("prompt"):
            parts.append(_quoted("prompt", text("prompt")))
    elif node.type in (WorkflowNodeType.IF_ELSE, WorkflowNodeType.SWITCH):
        if text("evaluationTarget"):
            parts.append(_quoted("evaluationTarget", text("evaluationTarget")))
    elif node.type == WorkflowNodeType.ASK_USER_QUESTION:
        if text("questionText"):
            parts.append(_quoted("question", text("questionText")))
    elif node.type == WorkflowNodeType.HTTP_REQUEST:
        if text("method"):
            parts.append(f"method={text('method')}")
        if text("url"):
            parts.append(f"url={text('url')}")
    elif node.type == WorkflowNodeType.MCP:
        if text("serverId") or text("toolName"):
            parts.append(f"tool=mcp:{text('serverId')}:{text('toolName')}")
    elif node.type == WorkflowNodeType.DATA_TRANSFORM:
        if text("expression"):
            parts.append(_quoted("expression", text("expression")))

    return f" - {', '.join(parts)}" if parts else ""


def allowed_tools(workflow: WorkflowDocument) -> List[str]:
    """Tools the command needs, derived from node types in declared order."""
    tools = ["Task"]
    for node in workflow.nodes:
        if node.type == WorkflowNodeType.ASK_USER_QUESTION:
            tool = "AskUserQuestion"
        elif node.type == WorkflowNodeType.HTTP_REQUEST:
            tool = "WebFetch"
        elif node.type == WorkflowNodeType.MCP:
            server = node.config.get("serverId") or "server"
            name = node.config.get("toolName") or "tool"
            tool = f"mcp__{server}__{name}"
        else:
            continue
        if tool not in tools:
            tools.append(tool)
    return tools


def ordered_nodes(workflow: WorkflowDocument) -> List[WorkflowNode]:
    """Nodes in execution order; nodes the sort could not place follow in declared order."""
    graph = analyze_graph(workflow.nodes, workflow.edges)
    by_id = {node.id: node for node in workflow.nodes}
    ordered = [by_id[node_id] for node_id in graph.execution_order]
    placed = set(graph.execution_order)
    ordered.extend(node for node in workflow.nodes if node.id not in placed)
    return ordered


class ClaudeEmitter(Emitter):
    target = CompilerTarget.CLAUDE
    name = "Claude"
    description = "Generates .claude/commands/ Markdown files."
    expected_prompt_format = PromptFormat.XML

    def emit(self, compile_input: CompileInput) -> CompileOutput:
        workflow = compile_input.workflow
        model = compile_input.model

        lines = [
            "---",
            f"description: Execute workflow {workflow.name}",
            f"allowed-tools: {','.join(allowed_tools(workflow))}",
            "---",
            "",
            f"Model: {model.display_name}",
            "",
            "Workflow steps:",
        ]
        for index, node in enumerate(ordered_nodes(workflow), start=1):
            label = node.label or node.id
            lines.append(f"{index}. {label} ({node.type.value}){describe_node(node)}")
        lines.extend(["", "Connections:"])
        lines.extend(f"- {edge.source} -> {edge.target}" for edge in workflow.edges)

        body = "\n".join(lines)
        path = f".claude/commands/{self.file_stem(workflow)}.md"
        logger.debug(f"Emitted Claude command {path}")
        return CompileOutput(
            target=self.target,
            files=[OutputFile(path=path, content=body)],
            preview=body,
            warnings=self.capability_warnings(model),
        )
