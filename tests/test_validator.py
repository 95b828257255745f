"""
Lattice Output Validator Tests

JSON schema and invariant checks on step outputs.
"""

import pytest

from lattice.compiler.ir_types import LlmWriteNode, StartNode, ValidatorDef
from lattice.compiler.lowering import lower_to_exec_ir
from lattice.runtime.validator import (
    OutputErrorType,
    Validator,
    evaluate_invariant,
)


DRAFT_SCHEMA = {
    "type": "object",
    "required": ["title"],
    "properties": {
        "title": {"type": "string"},
        "count": {"type": "integer"},
    },
}


def llm_node(*validators):
    return LlmWriteNode(id="draft", prompt_template="llm-write-v1", validators=list(validators))


@pytest.fixture
def validator():
    return Validator()


class TestJsonSchema:
    """Schema validators."""

    def test_matching_output_is_valid(self, validator):
        """Output satisfying the schema passes."""
        result = validator.validate({"title": "Hi", "count": 2}, llm_node(ValidatorDef.json_schema(DRAFT_SCHEMA)))

        assert result.valid
        assert result.errors == []

    def test_type_mismatch_reports_path(self, validator):
        """A mistyped field is reported with its instance path."""
        result = validator.validate({"title": "Hi", "count": "two"}, llm_node(ValidatorDef.json_schema(DRAFT_SCHEMA)))

        assert not result.valid
        assert len(result.errors) == 1
        assert result.errors[0].type == OutputErrorType.SCHEMA
        assert result.errors[0].path == "/count"
        assert "integer" in result.errors[0].message

    def test_every_violation_is_reported(self, validator):
        """Missing and mistyped fields both show up in one result."""
        result = validator.validate({"count": "two"}, llm_node(ValidatorDef.json_schema(DRAFT_SCHEMA)))

        assert not result.valid
        assert len(result.errors) == 2
        assert {e.path for e in result.errors} == {"", "/count"}

    def test_schema_id_resolves_through_store(self):
        """String schemas are ids in the schema store."""
        validator = Validator(schemas={"draft.v1": DRAFT_SCHEMA})
        node = llm_node(ValidatorDef.json_schema("draft.v1"))

        assert validator.validate({"title": "Hi"}, node).valid
        assert not validator.validate({}, node).valid

    def test_unknown_schema_id(self, validator):
        """Unknown schema ids are reported, not raised."""
        result = validator.validate({"title": "Hi"}, llm_node(ValidatorDef.json_schema("missing.v1")))

        assert not result.valid
        assert result.errors[0].message == "Unknown schema: missing.v1"

    def test_invalid_schema_is_an_error_not_an_exception(self, validator):
        result = validator.validate({}, llm_node(ValidatorDef.json_schema({"type": "nonsense"})))

        assert not result.valid
        assert result.errors[0].message.startswith("Invalid schema:")

    def test_missing_schema(self, validator):
        """A json_schema validator without a schema rejects the output."""
        result = validator.validate({}, llm_node(ValidatorDef.json_schema(None)))

        assert not result.valid
        assert result.errors[0].type == OutputErrorType.SCHEMA

    def test_lowered_prompt_accepts_objects_only(self, validator, linear_workflow):
        """Prompt nodes lower with an object schema."""
        node = lower_to_exec_ir(linear_workflow).get_node("summarize")

        assert validator.validate({"summary": "ok"}, node).valid
        assert not validator.validate("plain text", node).valid


class TestInvariant:
    """Membership invariants."""

    def test_member_passes(self, validator):
        """An output value listed in the input passes."""
        node = llm_node(ValidatorDef.invariant("$out.choice in $in.allowed"))

        result = validator.validate({"choice": "a"}, node, {"allowed": ["a", "b"]})

        assert result.valid

    def test_non_member_fails(self, validator):
        """An output value missing from the input list fails."""
        node = llm_node(ValidatorDef.invariant("$out.choice in $in.allowed"))

        result = validator.validate({"choice": "z"}, node, {"allowed": ["a", "b"]})

        assert not result.valid
        assert result.errors[0].type == OutputErrorType.INVARIANT
        assert result.errors[0].message == "Invariant failed: $out.choice in $in.allowed"

    @pytest.mark.parametrize("output, input", [
        ({"choice": "a"}, {"allowed": "abc"}),
        ({"choice": "a"}, {}),
        ({}, {"allowed": ["a"]}),
        ("a", {"allowed": ["a"]}),
    ])
    def test_unusable_operands_fail(self, output, input):
        """Missing keys and non-list inputs fail the membership check."""
        assert evaluate_invariant("$out.choice in $in.allowed", output, input) is False

    def test_unrecognized_expression_holds(self):
        """Expressions other than membership are not enforced."""
        assert evaluate_invariant("$out.score > 3", {"score": 1}, {}) is True

    def test_schema_and_invariant_errors_combine(self, validator):
        """Errors from every validator are reported in order."""
        node = llm_node(
            ValidatorDef.json_schema(DRAFT_SCHEMA),
            ValidatorDef.invariant("$out.title in $in.titles"),
        )

        result = validator.validate({"title": 5}, node, {"titles": ["Hi"]})

        assert [e.type for e in result.errors] == [OutputErrorType.SCHEMA, OutputErrorType.INVARIANT]


class TestResult:
    """Result shape."""

    def test_node_without_validators_accepts_anything(self, validator):
        """Nodes without validators accept any output."""
        assert validator.validate(None, StartNode(id="start")).valid
        assert validator.validate(None, LlmWriteNode(id="draft")).valid

    def test_to_dict(self, validator):
        result = validator.validate({"title": "Hi", "count": "two"}, llm_node(ValidatorDef.json_schema(DRAFT_SCHEMA)))

        data = result.to_dict()

        assert data["valid"] is False
        assert data["errors"][0]["type"] == "schema"
        assert data["errors"][0]["path"] == "/count"
