"""
Lattice Legacy Migration Tests
"""

import pytest
from pydantic import ValidationError

from lattice.schemas.migration import migrate_legacy_workflow, normalize_node_type
from lattice.schemas.workflow import WorkflowNodeType


@pytest.fixture
def legacy_document():
    return {
        "id": "legacy_1",
        "name": "Support Triage",
        "nodes": [
            {"id": "start", "type": "start", "position": {"x": 10, "y": 20}},
            {"id": "classify", "type": "llmCall", "data": {"label": "Classify", "instruction": "Classify it"}},
            {"id": "route", "type": "conditionalBranch", "data": {"branches": [{"value": "bug"}]}},
            {"id": "end", "type": "end"},
        ],
        "connections": [
            {"id": "c1", "from": "start", "to": "classify"},
            {"id": "c2", "from": "classify", "to": "route", "fromPort": "out", "toPort": "in"},
            {"id": "c3", "from": "route", "to": "end"},
        ],
    }


class TestNormalizeNodeType:
    """Legacy type names."""

    @pytest.mark.parametrize("raw, expected", [
        ("prompt", WorkflowNodeType.PROMPT),
        ("httpRequest", WorkflowNodeType.HTTP_REQUEST),
        ("llmCall", WorkflowNodeType.SUB_AGENT),
        ("apiCall", WorkflowNodeType.HTTP_REQUEST),
        ("jsonCsvParse", WorkflowNodeType.DATA_TRANSFORM),
        ("loop", WorkflowNodeType.BATCH_ITERATOR),
        (None, WorkflowNodeType.SUB_AGENT),
        ("", WorkflowNodeType.SUB_AGENT),
    ])
    def test_mapping(self, raw, expected):
        """Legacy type names map to current node types."""
        assert normalize_node_type(raw) == expected

    def test_unknown_type_falls_back_with_warning(self, caplog):
        """Unknown legacy types become sub-agents with a warning."""
        assert normalize_node_type("quantumGate") == WorkflowNodeType.SUB_AGENT
        assert "quantumGate" in caplog.text


class TestMigrateLegacyWorkflow:
    """Legacy document conversion."""

    def test_nodes_are_converted(self, legacy_document):
        """Legacy node types are converted to current ones."""
        document = migrate_legacy_workflow(legacy_document)

        assert document.id == "legacy_1"
        assert document.name == "Support Triage"
        assert [n.type for n in document.nodes] == [
            WorkflowNodeType.START,
            WorkflowNodeType.SUB_AGENT,
            WorkflowNodeType.IF_ELSE,
            WorkflowNodeType.END,
        ]
        classify = document.get_node("classify")
        assert classify.label == "Classify"
        assert classify.config["instruction"] == "Classify it"
        assert document.get_node("start").label == "start"
        assert document.get_node("start").position.x == 10

    def test_connections_become_edges(self, legacy_document):
        """Connections become edges with source and target."""
        document = migrate_legacy_workflow(legacy_document)

        edge = document.edges[1]
        assert (edge.id, edge.source, edge.target) == ("c2", "classify", "route")
        assert edge.source_handle == "out"
        assert edge.target_handle == "in"
        assert document.edges[0].source_handle is None

    def test_defaults(self):
        """Missing legacy fields get defaults."""
        document = migrate_legacy_workflow({"nodes": [], "connections": []})

        assert document.id.startswith("workflow_")
        assert document.name == "Untitled Workflow"
        assert document.nodes == []
        assert document.created_at == document.updated_at

    def test_migrated_workflow_lowers(self, legacy_document):
        """A migrated workflow lowers without changes."""
        from lattice.compiler import lower_to_exec_ir

        program = lower_to_exec_ir(migrate_legacy_workflow(legacy_document))

        assert program.entry_node == "start"

    def test_duplicate_node_ids_are_rejected(self):
        """Duplicate node ids fail migration."""
        with pytest.raises(ValidationError):
            migrate_legacy_workflow({
                "name": "Dupes",
                "nodes": [{"id": "a", "type": "start"}, {"id": "a", "type": "end"}],
            })
