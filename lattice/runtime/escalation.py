"""
Lattice Escalation Engine

Decides whether a failed step should be retried on a larger model class.
Stateless: the decision depends only on the node and the failure.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from dataclasses import dataclass
import logging

from ..compiler.ir_types import EscalationPolicy, ExecNode, ModelClass
from ..schemas.execution import ProviderFailure

logger = logging.getLogger(__name__)


@dataclass
class StepFailure:
    """A step failure as seen by the escalation engine."""
    category: str
    message: str = ""

    @classmethod
    def from_provider_failure(cls, failure: ProviderFailure, message: str = "") -> "StepFailure":
        return cls(category=failure.code.value, message=message)


@dataclass(frozen=True)
class EscalationDecision:
    escalate: bool
    to_model_class: Optional[ModelClass] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"escalate": self.escalate}
        if self.to_model_class is not None:
            data["toModelClass"] = self.to_model_class.value
        return data


NO_ESCALATION = EscalationDecision(escalate=False)


def should_escalate(node: ExecNode, failure: StepFailure) -> EscalationDecision:
    """Escalate iff the node has a policy listing the failure's category."""
    policy: Optional[EscalationPolicy] = getattr(node, "escalation", None)
    if policy is None:
        return NO_ESCALATION
    if failure.category not in policy.on:
        return NO_ESCALATION

    logger.info(
        f"Escalating node {node.id} to {policy.to_model_class.value} after {failure.category} failure"
    )
    return EscalationDecision(escalate=True, to_model_class=policy.to_model_class)


class EscalationEngine:
    """Object form of `should_escalate` for injection into interpreters."""

    def should_escalate(self, node: ExecNode, failure: StepFailure) -> EscalationDecision:
        return should_escalate(node, failure)
