"""
Lattice ExecIR Types

Platform-neutral intermediate representation produced by lowering.

An ExecProgram is the interchange format between the compiler and any
interpreter, so every type here serializes to plain JSON and reads back
to an equal value.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional, ClassVar, Tuple, Type
from dataclasses import dataclass, field
from enum import Enum
import json
import re


# =============================================================================
# Enumerations
# =============================================================================

class ExecOp(str, Enum):
    """IR node operations."""
    START = "START"
    END = "END"
    LLM_WRITE = "LLM_WRITE"
    SWITCH = "SWITCH"
    TOOL_CALL = "TOOL_CALL"
    VAR_SET = "VAR_SET"
    VAR_GET = "VAR_GET"
    TRANSFORM = "TRANSFORM"


class ModelClass(str, Enum):
    """Model capability/cost tiers, smallest first."""
    SMALL_EXEC = "SMALL_EXEC"
    MEDIUM_PLAN = "MEDIUM_PLAN"
    LARGE_JUDGE = "LARGE_JUDGE"


class RetryStrategy(str, Enum):
    PATCH_JSON_FROM_ERROR = "PATCH_JSON_FROM_ERROR"
    FULL_RETRY = "FULL_RETRY"


class ValidatorType(str, Enum):
    JSON_SCHEMA = "json_schema"
    INVARIANT = "invariant"


class TransformKind(str, Enum):
    """Expression languages a TRANSFORM node may use."""
    JMESPATH = "jmespath"
    JSONPATH = "jsonpath"
    JAVASCRIPT = "javascript"


class ConditionOp(str, Enum):
    """Edge predicates."""
    ALWAYS = "always"
    EQ = "eq"
    NEQ = "neq"
    CONTAINS = "contains"
    REGEX = "regex"


# =============================================================================
# State References
# =============================================================================

class StateNamespace(str, Enum):
    """
    Runtime state namespaces addressable from the IR.

    - VARS: durable workflow-scoped variables
    - TMP: per-step scratch
    - CTX: externally supplied execution context (read-only)
    - IN: external trigger input (read-only)
    """
    VARS = "$vars"
    TMP = "$tmp"
    CTX = "$ctx"
    IN = "$in"


STATE_REF_PATTERN = re.compile(r"^\$(vars|tmp|ctx|in)\.[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*$")


def is_state_ref(value: Any) -> bool:
    """Check whether a value is a well-formed StateRef string."""
    return isinstance(value, str) and STATE_REF_PATTERN.match(value) is not None


def parse_state_ref(ref: str) -> Tuple[StateNamespace, List[str]]:
    """
    Split a StateRef into its namespace and path segments.

    Raises:
        ValueError: If the reference is malformed or uses an unknown namespace
    """
    if not is_state_ref(ref):
        raise ValueError(f"Invalid state reference: {ref}")
    namespace, *segments = ref.split(".")
    return StateNamespace(namespace), segments


def state_ref(namespace: StateNamespace, *path: str) -> str:
    """Build a StateRef string from a namespace and path segments."""
    return ".".join([namespace.value, *path])


# =============================================================================
# Policies
# =============================================================================

@dataclass
class RetryPolicy:
    """How a failed LLM step is retried."""
    strategy: RetryStrategy = RetryStrategy.PATCH_JSON_FROM_ERROR
    max_attempts: int = 3

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("RetryPolicy.max_attempts must be a positive integer")

    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy.value, "max_attempts": self.max_attempts}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryPolicy":
        return cls(
            strategy=RetryStrategy(data["strategy"]),
            max_attempts=int(data["max_attempts"]),
        )


@dataclass
class EscalationPolicy:
    """Failure categories that move a step up to a larger model class."""
    on: List[str]
    to_model_class: ModelClass

    def to_dict(self) -> Dict[str, Any]:
        return {"on": list(self.on), "to_model_class": self.to_model_class.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EscalationPolicy":
        return cls(on=list(data["on"]), to_model_class=ModelClass(data["to_model_class"]))


@dataclass
class ValidatorDef:
    """Check run against a step's output before it is accepted."""
    type: ValidatorType
    schema: Optional[Any] = None
    expr: Optional[str] = None

    @classmethod
    def json_schema(cls, schema: Any) -> "ValidatorDef":
        return cls(type=ValidatorType.JSON_SCHEMA, schema=schema)

    @classmethod
    def invariant(cls, expr: str) -> "ValidatorDef":
        return cls(type=ValidatorType.INVARIANT, expr=expr)

    def to_dict(self) -> Dict[str, Any]:
        if self.type == ValidatorType.JSON_SCHEMA:
            return {"type": self.type.value, "schema": self.schema}
        return {"type": self.type.value, "expr": self.expr}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidatorDef":
        validator_type = ValidatorType(data["type"])
        if validator_type == ValidatorType.JSON_SCHEMA:
            return cls.json_schema(data["schema"])
        return cls.invariant(data["expr"])


# =============================================================================
# IR Nodes
# =============================================================================

@dataclass
class ExecNode:
    """
    Base IR node.

    Subclasses fix `op`; `inputs`/`outputs` map logical names to StateRefs
    (inputs may also carry literal values).
    """
    op: ClassVar[ExecOp]

    id: str
    inputs: Optional[Dict[str, Any]] = None
    outputs: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "op": self.op.value}
        if self.inputs is not None:
            data["inputs"] = dict(self.inputs)
        if self.outputs is not None:
            data["outputs"] = dict(self.outputs)
        data.update(self._op_fields())
        return data

    def _op_fields(self) -> Dict[str, Any]:
        return {}

    def state_refs(self) -> List[str]:
        """Values that must be valid StateRefs."""
        return list((self.outputs or {}).values())

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExecNode":
        """Rebuild the right node variant from its JSON form."""
        node_cls = NODE_TYPES[ExecOp(data["op"])]
        return node_cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "ExecNode":
        return cls(**cls._base_kwargs(data))

    @staticmethod
    def _base_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": data["id"],
            "inputs": data.get("inputs"),
            "outputs": data.get("outputs"),
        }


@dataclass
class StartNode(ExecNode):
    op: ClassVar[ExecOp] = ExecOp.START


@dataclass
class EndNode(ExecNode):
    op: ClassVar[ExecOp] = ExecOp.END


@dataclass
class LlmWriteNode(ExecNode):
    """Model call producing a structured output."""
    op: ClassVar[ExecOp] = ExecOp.LLM_WRITE

    model_class: ModelClass = ModelClass.SMALL_EXEC
    prompt_template: str = ""
    output_schema: Any = field(default_factory=lambda: {"type": "object"})
    validators: Optional[List[ValidatorDef]] = None
    retry_policy: Optional[RetryPolicy] = None
    escalation: Optional[EscalationPolicy] = None

    def _op_fields(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "model_class": self.model_class.value,
            "prompt_template": self.prompt_template,
            "output_schema": self.output_schema,
        }
        if self.validators is not None:
            data["validators"] = [v.to_dict() for v in self.validators]
        if self.retry_policy is not None:
            data["retry_policy"] = self.retry_policy.to_dict()
        if self.escalation is not None:
            data["escalation"] = self.escalation.to_dict()
        return data

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "LlmWriteNode":
        validators = data.get("validators")
        retry_policy = data.get("retry_policy")
        escalation = data.get("escalation")
        return cls(
            **cls._base_kwargs(data),
            model_class=ModelClass(data["model_class"]),
            prompt_template=data["prompt_template"],
            output_schema=data["output_schema"],
            validators=[ValidatorDef.from_dict(v) for v in validators] if validators is not None else None,
            retry_policy=RetryPolicy.from_dict(retry_policy) if retry_policy is not None else None,
            escalation=EscalationPolicy.from_dict(escalation) if escalation is not None else None,
        )


@dataclass
class SwitchNode(ExecNode):
    """Branch point; the choice is made by its outgoing edge conditions."""
    op: ClassVar[ExecOp] = ExecOp.SWITCH

    def state_refs(self) -> List[str]:
        refs = super().state_refs()
        target = (self.inputs or {}).get("evaluationTarget")
        if target is not None:
            refs.append(target)
        return refs


@dataclass
class ToolCallNode(ExecNode):
    op: ClassVar[ExecOp] = ExecOp.TOOL_CALL

    tool: str = ""
    args: Optional[Dict[str, Any]] = None

    def _op_fields(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tool": self.tool}
        if self.args is not None:
            data["args"] = dict(self.args)
        return data

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "ToolCallNode":
        return cls(**cls._base_kwargs(data), tool=data["tool"], args=data.get("args"))


@dataclass
class VarSetNode(ExecNode):
    op: ClassVar[ExecOp] = ExecOp.VAR_SET

    target: str = ""
    value: Any = None

    def _op_fields(self) -> Dict[str, Any]:
        return {"target": self.target, "value": self.value}

    def state_refs(self) -> List[str]:
        refs = super().state_refs() + [self.target]
        if isinstance(self.value, str) and self.value.startswith("$"):
            refs.append(self.value)
        return refs

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "VarSetNode":
        return cls(**cls._base_kwargs(data), target=data["target"], value=data.get("value"))


@dataclass
class VarGetNode(ExecNode):
    op: ClassVar[ExecOp] = ExecOp.VAR_GET

    source: str = ""

    def _op_fields(self) -> Dict[str, Any]:
        return {"source": self.source}

    def state_refs(self) -> List[str]:
        return super().state_refs() + [self.source]

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "VarGetNode":
        return cls(**cls._base_kwargs(data), source=data["source"])


@dataclass
class TransformNode(ExecNode):
    op: ClassVar[ExecOp] = ExecOp.TRANSFORM

    transformation: TransformKind = TransformKind.JMESPATH
    expression: str = ""

    def _op_fields(self) -> Dict[str, Any]:
        return {"transformation": self.transformation.value, "expression": self.expression}

    def state_refs(self) -> List[str]:
        refs = super().state_refs()
        source = (self.inputs or {}).get("source")
        if source is not None:
            refs.append(source)
        return refs

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "TransformNode":
        return cls(
            **cls._base_kwargs(data),
            transformation=TransformKind(data["transformation"]),
            expression=data["expression"],
        )


NODE_TYPES: Dict[ExecOp, Type[ExecNode]] = {
    ExecOp.START: StartNode,
    ExecOp.END: EndNode,
    ExecOp.LLM_WRITE: LlmWriteNode,
    ExecOp.SWITCH: SwitchNode,
    ExecOp.TOOL_CALL: ToolCallNode,
    ExecOp.VAR_SET: VarSetNode,
    ExecOp.VAR_GET: VarGetNode,
    ExecOp.TRANSFORM: TransformNode,
}


# =============================================================================
# IR Edges
# =============================================================================

@dataclass
class WhenCondition:
    """Predicate guarding an edge. `left` may be a StateRef or a literal."""
    op: ConditionOp = ConditionOp.ALWAYS
    left: Optional[str] = None
    right: Optional[str] = None

    @classmethod
    def always(cls) -> "WhenCondition":
        return cls(op=ConditionOp.ALWAYS)

    @classmethod
    def eq(cls, left: str, right: str) -> "WhenCondition":
        return cls(op=ConditionOp.EQ, left=left, right=right)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"op": self.op.value}
        if self.left is not None:
            data["left"] = self.left
        if self.right is not None:
            data["right"] = self.right
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WhenCondition":
        return cls(op=ConditionOp(data["op"]), left=data.get("left"), right=data.get("right"))


@dataclass
class ExecEdge:
    """IR edge. Serialized with `from`/`to` keys."""
    source: str
    target: str
    when: WhenCondition = field(default_factory=WhenCondition.always)

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "when": self.when.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecEdge":
        return cls(
            source=data["from"],
            target=data["to"],
            when=WhenCondition.from_dict(data.get("when", {"op": "always"})),
        )


# =============================================================================
# Program
# =============================================================================

@dataclass
class ExecProgram:
    """
    Compiled workflow - the artifact handed to an interpreter.

    Produced fresh for every compilation; never mutated afterwards.
    """
    execir_version: str
    entry_node: str
    nodes: List[ExecNode] = field(default_factory=list)
    edges: List[ExecEdge] = field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[ExecNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def outgoing(self, node_id: str) -> List[ExecEdge]:
        """Outgoing edges of a node, in program order."""
        return [edge for edge in self.edges if edge.source == node_id]

    def invalid_state_refs(self) -> List[str]:
        """All StateRef-position values that do not parse."""
        return [
            ref
            for node in self.nodes
            for ref in node.state_refs()
            if not is_state_ref(ref)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "execir_version": self.execir_version,
            "entry_node": self.entry_node,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecProgram":
        return cls(
            execir_version=data["execir_version"],
            entry_node=data["entry_node"],
            nodes=[ExecNode.from_dict(n) for n in data.get("nodes", [])],
            edges=[ExecEdge.from_dict(e) for e in data.get("edges", [])],
        )

    @classmethod
    def from_json(cls, payload: str) -> "ExecProgram":
        return cls.from_dict(json.loads(payload))
