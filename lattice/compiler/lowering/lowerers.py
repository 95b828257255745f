"""
Lattice Node Lowerers

One lowerer per supported workflow node type. Each reads only its own
node config (plus the edge indexes, for branching nodes) and returns a
Fragment; none of them mutate the context.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
import json
import logging

from ...schemas.workflow import WorkflowEdge, WorkflowNode, WorkflowNodeType
from ..ir_types import (
    ConditionOp,
    EndNode,
    EscalationPolicy,
    ExecEdge,
    LlmWriteNode,
    ModelClass,
    RetryPolicy,
    RetryStrategy,
    StartNode,
    StateNamespace,
    SwitchNode,
    ToolCallNode,
    TransformKind,
    TransformNode,
    ValidatorDef,
    VarGetNode,
    VarSetNode,
    WhenCondition,
    state_ref,
)
from .types import Fragment, Lowerer, LoweringContext

logger = logging.getLogger(__name__)


LLM_WRITE_TEMPLATE = "llm-write-v1"
SUB_AGENT_TEMPLATE = "node-sub-agent-v1"
DEFAULT_QUESTION_TEXT = "Please choose an option"


def _config_str(node: WorkflowNode, key: str, default: str = "") -> str:
    value = node.config.get(key)
    return value if isinstance(value, str) else default


def _config_list(node: WorkflowNode, key: str) -> List[Any]:
    value = node.config.get(key)
    return value if isinstance(value, list) else []


def _result_ref(node: WorkflowNode) -> str:
    return state_ref(StateNamespace.VARS, node.id, "result")


# =============================================================================
# Control
# =============================================================================

class StartLowerer(Lowerer):
    node_type = WorkflowNodeType.START

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        return Fragment(nodes=[StartNode(id=node.id)])


class EndLowerer(Lowerer):
    node_type = WorkflowNodeType.END

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        return Fragment(nodes=[EndNode(id=node.id)])


# =============================================================================
# Model Steps
# =============================================================================

def _escalation_from_config(node: WorkflowNode) -> Optional[EscalationPolicy]:
    """
    Read `config.escalation = {on: [...], toModelClass}`.

    Anything malformed is dropped with a warning so authoring mistakes
    never block compilation.
    """
    raw = node.config.get("escalation")
    if raw is None:
        return None
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring escalation config on node {node.id}: expected an object")
        return None

    on = raw.get("on")
    target = raw.get("toModelClass", raw.get("to_model_class"))
    if not isinstance(on, list) or not on or not all(isinstance(tag, str) for tag in on):
        logger.warning(f"Ignoring escalation config on node {node.id}: 'on' must list failure categories")
        return None
    try:
        model_class = ModelClass(target)
    except ValueError:
        logger.warning(f"Ignoring escalation config on node {node.id}: unknown model class {target!r}")
        return None
    return EscalationPolicy(on=list(on), to_model_class=model_class)


def _llm_write_fragment(node: WorkflowNode, template: str, instruction: str) -> Fragment:
    exec_node = LlmWriteNode(
        id=node.id,
        model_class=ModelClass.SMALL_EXEC,
        prompt_template=template,
        inputs={"instruction": instruction},
        output_schema={"type": "object"},
        outputs={"result": _result_ref(node)},
        validators=[ValidatorDef.json_schema({"type": "object"})],
        retry_policy=RetryPolicy(strategy=RetryStrategy.PATCH_JSON_FROM_ERROR, max_attempts=3),
        escalation=_escalation_from_config(node),
    )
    return Fragment(nodes=[exec_node], required_templates={template})


class PromptLowerer(Lowerer):
    """prompt -> LLM_WRITE on the small executor class."""
    node_type = WorkflowNodeType.PROMPT

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        return _llm_write_fragment(node, LLM_WRITE_TEMPLATE, _config_str(node, "prompt"))


class SubAgentLowerer(Lowerer):
    """subAgent -> LLM_WRITE using the delegated-task template."""
    node_type = WorkflowNodeType.SUB_AGENT

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        description = _config_str(node, "description")
        prompt = _config_str(node, "prompt")
        instruction = f"{description}\n\n{prompt}" if description else prompt
        return _llm_write_fragment(node, SUB_AGENT_TEMPLATE, instruction)


# =============================================================================
# Branching
# =============================================================================

class BranchingLowerer(Lowerer):
    """
    Base for nodes that lower to a single SWITCH.

    Outgoing edges become IR edges one-for-one, in edge order. Edge i
    compares the evaluation target against the value of branch i; the
    last edge is always the unconditional fallback.
    """
    owns_edges = True
    config_key = "branches"
    value_keys: Sequence[str] = ("value", "condition", "label")

    def default_target(self, node: WorkflowNode) -> str:
        return state_ref(StateNamespace.VARS, node.id, "input")

    def evaluation_target(self, node: WorkflowNode) -> str:
        configured = _config_str(node, "evaluationTarget")
        return configured or self.default_target(node)

    def branch_value(self, branches: List[Any], index: int) -> str:
        # Precedence is historical: first present key wins, then position
        if index < len(branches) and isinstance(branches[index], dict):
            branch = branches[index]
            for key in self.value_keys:
                value = branch.get(key)
                if value is not None:
                    return str(value)
        return str(index)

    def switch_inputs(self, node: WorkflowNode, target: str) -> Dict[str, Any]:
        return {"evaluationTarget": target}

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        target = self.evaluation_target(node)
        branches = _config_list(node, self.config_key)
        outgoing = context.outgoing(node.id)
        return Fragment(
            nodes=[SwitchNode(id=node.id, inputs=self.switch_inputs(node, target))],
            edges=self._branch_edges(outgoing, branches, target),
        )

    def _branch_edges(
        self,
        outgoing: List[WorkflowEdge],
        branches: List[Any],
        target: str,
    ) -> List[ExecEdge]:
        edges: List[ExecEdge] = []
        last = len(outgoing) - 1
        for index, edge in enumerate(outgoing):
            if index == last:
                when = WhenCondition(op=ConditionOp.ALWAYS)
            else:
                when = WhenCondition.eq(target, self.branch_value(branches, index))
            edges.append(ExecEdge(source=edge.source, target=edge.target, when=when))
        return edges


class IfElseLowerer(BranchingLowerer):
    node_type = WorkflowNodeType.IF_ELSE


class SwitchLowerer(BranchingLowerer):
    node_type = WorkflowNodeType.SWITCH


class AskUserQuestionLowerer(BranchingLowerer):
    """The user's answer arrives as trigger input and selects an option."""
    node_type = WorkflowNodeType.ASK_USER_QUESTION
    config_key = "options"
    value_keys = ("value", "label")

    def default_target(self, node: WorkflowNode) -> str:
        return state_ref(StateNamespace.IN, "askUserQuestion", node.id)

    def switch_inputs(self, node: WorkflowNode, target: str) -> Dict[str, Any]:
        return {
            "evaluationTarget": target,
            "questionText": _config_str(node, "questionText", DEFAULT_QUESTION_TEXT),
            "options": _config_list(node, "options"),
        }


# =============================================================================
# Tools and State
# =============================================================================

class McpLowerer(Lowerer):
    node_type = WorkflowNodeType.MCP

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        server_id = _config_str(node, "serverId")
        tool_name = _config_str(node, "toolName")
        exec_node = ToolCallNode(
            id=node.id,
            tool=f"mcp:{server_id}:{tool_name}",
            args={"config": json.dumps(node.config, separators=(",", ":"))},
            outputs={"result": _result_ref(node)},
        )
        return Fragment(nodes=[exec_node])


class HttpRequestLowerer(Lowerer):
    node_type = WorkflowNodeType.HTTP_REQUEST

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        exec_node = ToolCallNode(
            id=node.id,
            tool="http.request",
            args={
                "method": _config_str(node, "method", "GET"),
                "url": _config_str(node, "url"),
                "responseFormat": _config_str(node, "responseFormat", "json"),
            },
            outputs={"result": _result_ref(node)},
        )
        return Fragment(nodes=[exec_node])


class VariableStoreLowerer(Lowerer):
    """variableStore -> VAR_GET for `operation: get`, VAR_SET otherwise."""
    node_type = WorkflowNodeType.VARIABLE_STORE

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        operation = _config_str(node, "operation", "set")
        key = _config_str(node, "key") or f"{node.id}.value"
        target = f"{StateNamespace.VARS.value}.{key}"
        outputs = {"result": _result_ref(node)}

        if operation == "get":
            return Fragment(nodes=[VarGetNode(id=node.id, source=target, outputs=outputs)])

        value = node.config.get("value")
        if not (isinstance(value, str) and value.startswith("$")):
            value = json.dumps(value, separators=(",", ":"))
        return Fragment(nodes=[VarSetNode(id=node.id, target=target, value=value, outputs=outputs)])


class DataTransformLowerer(Lowerer):
    node_type = WorkflowNodeType.DATA_TRANSFORM

    def lower(self, node: WorkflowNode, context: LoweringContext) -> Fragment:
        requested = node.config.get("transformationType", node.config.get("transformation"))
        try:
            kind = TransformKind(requested) if requested is not None else TransformKind.JMESPATH
        except ValueError:
            logger.warning(
                f"Node {node.id}: unknown transformation {requested!r}, falling back to jmespath"
            )
            kind = TransformKind.JMESPATH

        exec_node = TransformNode(
            id=node.id,
            transformation=kind,
            expression=_config_str(node, "expression"),
            inputs={"source": state_ref(StateNamespace.VARS, node.id, "input")},
            outputs={"result": _result_ref(node)},
        )
        return Fragment(nodes=[exec_node])


DEFAULT_LOWERERS: List[Lowerer] = [
    StartLowerer(),
    EndLowerer(),
    PromptLowerer(),
    SubAgentLowerer(),
    IfElseLowerer(),
    SwitchLowerer(),
    AskUserQuestionLowerer(),
    McpLowerer(),
    HttpRequestLowerer(),
    VariableStoreLowerer(),
    DataTransformLowerer(),
]
