"""
Lattice Escalation Tests
"""

import dataclasses
import pytest

from lattice.compiler.ir_types import EscalationPolicy, LlmWriteNode, ModelClass, StartNode
from lattice.runtime.escalation import (
    EscalationEngine,
    StepFailure,
    should_escalate,
)
from lattice.runtime.event_mapper import classify_provider_failure


@pytest.fixture
def escalating_node():
    return LlmWriteNode(
        id="draft",
        prompt_template="llm-write-v1",
        escalation=EscalationPolicy(on=["timeout", "malformed_output"], to_model_class=ModelClass.LARGE_JUDGE),
    )


class TestShouldEscalate:
    """Escalation decisions."""

    def test_no_policy_never_escalates(self):
        """Nodes without a policy never escalate."""
        node = LlmWriteNode(id="draft", prompt_template="llm-write-v1")

        decision = should_escalate(node, StepFailure(category="timeout"))

        assert decision.escalate is False
        assert decision.to_model_class is None
        assert decision.to_dict() == {"escalate": False}

    def test_non_llm_node_never_escalates(self):
        """Only LLM nodes can escalate."""
        decision = should_escalate(StartNode(id="start"), StepFailure(category="timeout"))
        assert not decision.escalate

    def test_listed_category_escalates(self, escalating_node):
        """A listed failure category escalates to the policy model class."""
        decision = should_escalate(escalating_node, StepFailure(category="malformed_output", message="bad json"))

        assert decision.escalate
        assert decision.to_model_class == ModelClass.LARGE_JUDGE
        assert decision.to_dict() == {"escalate": True, "toModelClass": "LARGE_JUDGE"}

    def test_unlisted_category_does_not_escalate(self, escalating_node):
        """Categories outside the policy do not escalate."""
        assert not should_escalate(escalating_node, StepFailure(category="auth")).escalate

    def test_decisions_are_immutable(self):
        """A caller cannot alter the decision later calls receive."""
        decision = should_escalate(LlmWriteNode(id="x"), StepFailure(category="timeout"))

        with pytest.raises(dataclasses.FrozenInstanceError):
            decision.escalate = True

        assert should_escalate(LlmWriteNode(id="y"), StepFailure(category="timeout")).escalate is False

    def test_decision_depends_only_on_inputs(self, escalating_node):
        """Repeated calls with the same inputs agree."""
        engine = EscalationEngine()
        failure = StepFailure(category="timeout")

        first = engine.should_escalate(escalating_node, failure)
        second = engine.should_escalate(escalating_node, failure)

        assert first == second


class TestStepFailure:
    """Failure construction."""

    def test_from_provider_failure_uses_code_as_category(self, escalating_node):
        """Provider failure codes become escalation categories."""
        failure = StepFailure.from_provider_failure(
            classify_provider_failure(status_code=504, provider="anthropic"),
            message="gateway timeout",
        )

        assert failure.category == "timeout"
        assert failure.message == "gateway timeout"
        assert should_escalate(escalating_node, failure).escalate
