"""
Lattice Edge Conditions

Evaluates IR edge predicates against runtime state and picks the edge an
interpreter should follow.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence
import json
import re

from ..compiler.ir_types import ConditionOp, ExecEdge, WhenCondition, is_state_ref
from ..state.state_store import StateStore


def _stringify(value: Any) -> str:
    """Comparison form of a value. Missing values compare as ""."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _resolve(operand: Optional[str], state: StateStore) -> str:
    if is_state_ref(operand):
        return _stringify(state.get(operand))
    return _stringify(operand)


def evaluate_when(condition: WhenCondition, state: StateStore) -> bool:
    """
    Evaluate one edge condition.

    Raises:
        ValueError: If a regex condition carries an invalid pattern
    """
    if condition.op == ConditionOp.ALWAYS:
        return True

    left = _resolve(condition.left, state)
    right = _resolve(condition.right, state)

    if condition.op == ConditionOp.EQ:
        return left == right
    if condition.op == ConditionOp.NEQ:
        return left != right
    if condition.op == ConditionOp.CONTAINS:
        return right in left
    if condition.op == ConditionOp.REGEX:
        try:
            return re.search(right, left) is not None
        except re.error as e:
            raise ValueError(f"Invalid regex in edge condition: {right!r} ({e})") from e
    return False


def select_next_edge(edges: Sequence[ExecEdge], state: StateStore) -> Optional[ExecEdge]:
    """
    First conditional edge whose predicate holds, else the first `always`
    edge, else None.
    """
    fallback: Optional[ExecEdge] = None
    for edge in edges:
        if edge.when.op == ConditionOp.ALWAYS:
            if fallback is None:
                fallback = edge
            continue
        if evaluate_when(edge.when, state):
            return edge
    return fallback
