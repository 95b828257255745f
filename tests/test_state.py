"""
Lattice State Store and Edge Condition Tests
"""

import pytest

from lattice.compiler.ir_types import ConditionOp, ExecEdge, StateNamespace, WhenCondition
from lattice.runtime.conditions import evaluate_when, select_next_edge
from lattice.state import ReadOnlyNamespaceError, StateStore


@pytest.fixture
def store():
    return StateStore(input={"query": "rust async"}, context={"user": {"id": "u1"}})


# =============================================================================
# State Store
# =============================================================================

class TestStateStore:
    """Reads and writes by state ref."""

    def test_get_reads_every_namespace(self, store):
        """Refs read from each namespace."""
        assert store.get("$in.query") == "rust async"
        assert store.get("$ctx.user.id") == "u1"
        assert store.get("$vars.missing") is None
        assert store.get("$vars.missing", "fallback") == "fallback"

    def test_set_creates_nested_paths(self, store):
        """Writing a deep path creates the parents."""
        store.set("$vars.search.result.count", 3)

        assert store.get("$vars.search.result.count") == 3
        assert store.get("$vars.search") == {"result": {"count": 3}}
        assert store.has("$vars.search.result")
        assert not store.has("$vars.search.other")

    def test_read_only_namespaces(self, store):
        """$in and $ctx cannot be written or cleared."""
        with pytest.raises(ReadOnlyNamespaceError):
            store.set("$in.query", "x")
        with pytest.raises(ReadOnlyNamespaceError):
            store.set("$ctx.user", {})
        with pytest.raises(ReadOnlyNamespaceError):
            store.clear_scope(StateNamespace.CTX)

    def test_malformed_ref(self, store):
        """Malformed refs raise."""
        with pytest.raises(ValueError):
            store.get("vars.x")
        with pytest.raises(ValueError):
            store.set("$other.x", 1)

    def test_snapshot_is_a_copy(self, store):
        """Mutating a snapshot leaves the store unchanged."""
        store.set("$vars.list", [1])

        snapshot = store.snapshot()
        snapshot["$vars"]["list"].append(2)

        assert set(snapshot) == {"$vars", "$tmp", "$ctx", "$in"}
        assert store.get("$vars.list") == [1]

    def test_clear_tmp_scope(self, store):
        """Clearing tmp leaves other namespaces alone."""
        store.set("$tmp.scratch", "x")
        store.set("$vars.keep", "y")

        store.clear_scope(StateNamespace.TMP)

        assert store.get("$tmp.scratch") is None
        assert store.get("$vars.keep") == "y"


class TestSubscriptions:
    """Change listeners and batching."""

    def test_listener_receives_writes(self, store):
        """Listeners see each write."""
        changes = []
        unsubscribe = store.subscribe(changes.append)

        store.set("$vars.a", 1)
        unsubscribe()
        store.set("$vars.b", 2)

        assert len(changes) == 1
        assert changes[0].type == "variable-set"
        assert changes[0].namespace == StateNamespace.VARS
        assert changes[0].path == "a"
        assert changes[0].value == 1

    def test_snapshot_event(self, store):
        changes = []
        store.subscribe(changes.append)

        store.emit_snapshot()

        assert changes[0].type == "snapshot"
        assert changes[0].value["$in"] == {"query": "rust async"}

    def test_failing_listener_does_not_block_others(self, store, caplog):
        """One listener raising does not stop the rest."""
        def broken(change):
            raise RuntimeError("boom")

        changes = []
        store.subscribe(broken)
        store.subscribe(changes.append)

        store.set("$vars.a", 1)

        assert len(changes) == 1
        assert "State listener error" in caplog.text

    def test_batch_defers_notifications(self, store):
        """Notifications are held until the batch ends."""
        changes = []
        store.subscribe(changes.append)

        store.batch_start()
        store.set("$vars.a", 1)
        store.set("$vars.b.c", 2)
        assert changes == []
        assert store.changed_paths() == {"a", "b.c"}

        store.batch_commit()
        assert [c.path for c in changes] == ["a", "b.c"]

    def test_batch_rollback_drops_notifications(self, store):
        """Rollback drops pending notifications."""
        changes = []
        store.subscribe(changes.append)

        store.batch_start()
        store.set("$vars.a", 1)
        store.batch_rollback()

        assert changes == []
        assert store.get("$vars.a") == 1


# =============================================================================
# Edge Conditions
# =============================================================================

class TestEvaluateWhen:
    """Edge condition evaluation."""

    def test_always(self, store):
        """Always conditions hold."""
        assert evaluate_when(WhenCondition.always(), store)

    def test_eq_resolves_state_refs(self, store):
        """Both sides of eq resolve state refs."""
        store.set("$vars.route", "a")

        assert evaluate_when(WhenCondition.eq("$vars.route", "a"), store)
        assert not evaluate_when(WhenCondition.eq("$vars.route", "b"), store)

    def test_values_compare_as_strings(self, store):
        """Values compare by their string form."""
        store.set("$vars.count", 3.0)
        store.set("$vars.flag", True)

        assert evaluate_when(WhenCondition.eq("$vars.count", "3"), store)
        assert evaluate_when(WhenCondition.eq("$vars.flag", "true"), store)

    def test_missing_value_is_empty_string(self, store):
        """Missing refs compare as the empty string."""
        assert evaluate_when(WhenCondition.eq("$vars.nothing", ""), store)
        assert evaluate_when(WhenCondition(op=ConditionOp.NEQ, left="$vars.nothing", right="x"), store)

    def test_contains_and_regex(self, store):
        assert evaluate_when(WhenCondition(op=ConditionOp.CONTAINS, left="$in.query", right="async"), store)
        assert evaluate_when(WhenCondition(op=ConditionOp.REGEX, left="$in.query", right="^rust\\s"), store)
        assert not evaluate_when(WhenCondition(op=ConditionOp.REGEX, left="$in.query", right="^go"), store)

    def test_invalid_regex(self, store):
        """A bad regex raises instead of silently not matching."""
        with pytest.raises(ValueError, match="Invalid regex"):
            evaluate_when(WhenCondition(op=ConditionOp.REGEX, left="$in.query", right="("), store)


class TestSelectNextEdge:
    """Next edge selection."""

    def test_first_matching_condition_wins(self, store):
        """The first matching conditional edge is chosen."""
        store.set("$vars.route", "b")
        edges = [
            ExecEdge("switch", "a", WhenCondition.eq("$vars.route", "a")),
            ExecEdge("switch", "b", WhenCondition.eq("$vars.route", "b")),
            ExecEdge("switch", "b2", WhenCondition.eq("$vars.route", "b")),
            ExecEdge("switch", "default"),
        ]

        assert select_next_edge(edges, store).target == "b"

    def test_falls_back_to_first_always_edge(self, store):
        """Without a match the first always edge is taken."""
        edges = [
            ExecEdge("switch", "default"),
            ExecEdge("switch", "a", WhenCondition.eq("$vars.route", "a")),
            ExecEdge("switch", "other"),
        ]

        assert select_next_edge(edges, store).target == "default"

    def test_no_edge(self, store):
        """No matching edge gives None."""
        assert select_next_edge([ExecEdge("s", "a", WhenCondition.eq("$vars.x", "y"))], store) is None
        assert select_next_edge([], store) is None
