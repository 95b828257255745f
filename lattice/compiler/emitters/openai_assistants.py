"""
Lattice OpenAI Assistants Emitter

Renders an Assistants API configuration (out/<slug>.assistant.json).
"""

from __future__ import annotations
from typing import Any, Dict, List
import json
import logging
import re

from ...schemas.models import PromptFormat
from ...schemas.workflow import WorkflowDocument, WorkflowNode, WorkflowNodeType
from .base import CompileInput, CompileOutput, CompilerTarget, Emitter, OutputFile

logger = logging.getLogger(__name__)


_FUNCTION_NAME_STRIP = re.compile(r"[^A-Za-z0-9_-]+")


def _function_name(*parts: str) -> str:
    name = _FUNCTION_NAME_STRIP.sub("_", "_".join(p for p in parts if p)).strip("_")
    return (name or "tool")[:64]


def _function_tool(node: WorkflowNode) -> Dict[str, Any]:
    if node.type == WorkflowNodeType.MCP:
        server = str(node.config.get("serverId", ""))
        tool = str(node.config.get("toolName", ""))
        return {
            "type": "function",
            "function": {
                "name": _function_name("mcp", server, tool),
                "description": f"MCP tool {tool} on server {server} ({node.label or node.id})",
                "parameters": {"type": "object", "properties": {}, "additionalProperties": True},
            },
        }
    return {
        "type": "function",
        "function": {
            "name": _function_name("http_request", node.id),
            "description": f"HTTP request for step {node.label or node.id}",
            "parameters": {
                "type": "object",
                "properties": {
                    "url": {"type": "string"},
                    "method": {"type": "string"},
                    "body": {"type": "object"},
                },
                "required": ["url"],
            },
        },
    }


def function_tools(workflow: WorkflowDocument) -> List[Dict[str, Any]]:
    """One function tool per distinct name; later nodes calling the same tool reuse it."""
    tools: List[Dict[str, Any]] = []
    seen = set()
    for node in workflow.nodes:
        if node.type not in (WorkflowNodeType.MCP, WorkflowNodeType.HTTP_REQUEST):
            continue
        tool = _function_tool(node)
        name = tool["function"]["name"]
        if name in seen:
            logger.debug(f"Node {node.id} reuses function tool {name}")
            continue
        seen.add(name)
        tools.append(tool)
    return tools


class OpenAIAssistantsEmitter(Emitter):
    target = CompilerTarget.OPENAI_ASSISTANTS
    name = "OpenAI"
    description = "Generates OpenAI Assistants API-compatible JSON configuration."
    expected_prompt_format = PromptFormat.FUNCTION_CALLING

    def emit(self, compile_input: CompileInput) -> CompileOutput:
        workflow = compile_input.workflow
        model = compile_input.model

        # Assistants metadata values must be strings
        payload = {
            "name": workflow.name,
            "description": workflow.description or "",
            "model": model.id,
            "instructions": f"Execute workflow {workflow.name} with {len(workflow.nodes)} steps.",
            "tools": function_tools(workflow),
            "metadata": {
                "workflowId": workflow.id,
                "nodeCount": str(len(workflow.nodes)),
                "edgeCount": str(len(workflow.edges)),
            },
        }
        content = json.dumps(payload, indent=2)
        path = f"out/{self.file_stem(workflow)}.assistant.json"
        logger.debug(f"Emitted assistant config {path}")
        return CompileOutput(
            target=self.target,
            files=[OutputFile(path=path, content=content)],
            preview=content,
            warnings=self.capability_warnings(model),
        )
