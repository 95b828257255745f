"""
Lattice State Store

Runtime state addressed by StateRefs. Four namespaces:
- $vars: workflow-scoped variables, written by steps
- $tmp: per-step scratch, cleared between steps
- $ctx: execution context supplied by the caller (read-only)
- $in: trigger input (read-only)
"""

from __future__ import annotations
from typing import Dict, List, Any, Callable, Optional, Set
from dataclasses import dataclass
import copy
import logging

from ..compiler.ir_types import StateNamespace, parse_state_ref


logger = logging.getLogger(__name__)


READ_ONLY_NAMESPACES = frozenset({StateNamespace.CTX, StateNamespace.IN})


class ReadOnlyNamespaceError(Exception):
    """Write attempted on $ctx or $in."""

    def __init__(self, namespace: StateNamespace):
        super().__init__(f"Cannot write to read-only namespace: {namespace.value}")
        self.namespace = namespace


# =============================================================================
# State Events
# =============================================================================

@dataclass
class StateChange:
    """Notification sent to subscribers after a write or on snapshot."""
    type: str
    namespace: Optional[StateNamespace] = None
    path: Optional[str] = None
    value: Any = None


StateListener = Callable[[StateChange], None]


# =============================================================================
# State Store
# =============================================================================

class StateStore:
    """
    Namespaced runtime state for one run.

    Features:
    - StateRef get/set with nested path creation
    - Read-only context and input namespaces
    - Subscriptions
    - Batch updates
    """

    def __init__(
        self,
        input: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self._state: Dict[StateNamespace, Dict[str, Any]] = {
            StateNamespace.VARS: {},
            StateNamespace.TMP: {},
            StateNamespace.CTX: copy.deepcopy(context or {}),
            StateNamespace.IN: copy.deepcopy(input or {}),
        }
        self._listeners: List[StateListener] = []
        self._batch_mode = False
        self._batch_changes: List[StateChange] = []

    def get(self, ref: str, default: Any = None) -> Any:
        """
        Resolve a StateRef. Missing paths return `default`.

        Raises:
            ValueError: If the reference is malformed
        """
        namespace, segments = parse_state_ref(ref)
        current: Any = self._state[namespace]
        for segment in segments:
            if not isinstance(current, dict) or segment not in current:
                return default
            current = current[segment]
        return current

    def set(self, ref: str, value: Any) -> None:
        """
        Write a value, creating intermediate objects as needed.

        Raises:
            ValueError: If the reference is malformed
            ReadOnlyNamespaceError: If the namespace is $ctx or $in
        """
        namespace, segments = parse_state_ref(ref)
        if namespace in READ_ONLY_NAMESPACES:
            raise ReadOnlyNamespaceError(namespace)

        current = self._state[namespace]
        for segment in segments[:-1]:
            if not isinstance(current.get(segment), dict):
                current[segment] = {}
            current = current[segment]
        current[segments[-1]] = value

        change = StateChange(
            type="variable-set",
            namespace=namespace,
            path=".".join(segments),
            value=value,
        )
        if self._batch_mode:
            self._batch_changes.append(change)
        else:
            self._notify(change)

    def has(self, ref: str) -> bool:
        sentinel = object()
        return self.get(ref, sentinel) is not sentinel

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Deep copy of all namespaces keyed by prefix ("$vars", ...)."""
        return {ns.value: copy.deepcopy(values) for ns, values in self._state.items()}

    def emit_snapshot(self) -> None:
        self._notify(StateChange(type="snapshot", value=self.snapshot()))

    def clear_scope(self, namespace: StateNamespace) -> None:
        """Clear a writable namespace ($tmp between steps)."""
        if namespace in READ_ONLY_NAMESPACES:
            raise ReadOnlyNamespaceError(namespace)
        self._state[namespace] = {}
        logger.debug(f"Cleared state scope {namespace.value}")

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Subscribe to state changes.

        Returns:
            Unsubscribe function
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"State listener error for {change.path or change.type}: {e}")

    # =========================================================================
    # Batch Operations
    # =========================================================================

    def batch_start(self) -> None:
        """Start a batch update (defer notifications)."""
        self._batch_mode = True
        self._batch_changes = []

    def batch_commit(self) -> None:
        """Commit batch and notify every deferred change in order."""
        self._batch_mode = False
        changes, self._batch_changes = self._batch_changes, []
        for change in changes:
            self._notify(change)

    def batch_rollback(self) -> None:
        """Drop deferred notifications. Writes already applied stay applied."""
        self._batch_mode = False
        self._batch_changes = []

    def changed_paths(self) -> Set[str]:
        """Paths written during the current batch."""
        return {c.path for c in self._batch_changes if c.path}
