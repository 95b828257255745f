"""Lattice State Module - Runtime state addressed by StateRefs."""

from .state_store import (
    StateStore,
    StateChange,
    StateListener,
    ReadOnlyNamespaceError,
    READ_ONLY_NAMESPACES,
)

__all__ = [
    "StateStore",
    "StateChange",
    "StateListener",
    "ReadOnlyNamespaceError",
    "READ_ONLY_NAMESPACES",
]
