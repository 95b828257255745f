"""
Lattice Compiler Diagnostics

Validation issues reported by the compiler and the errors raised when a
workflow cannot be compiled.
"""

from __future__ import annotations
from typing import List, Optional, Sequence
from dataclasses import dataclass, field
from enum import Enum


# =============================================================================
# Validation
# =============================================================================

class ValidationSeverity(str, Enum):
    """Severity of validation issues."""
    BLOCKING = "blocking"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single validation issue."""
    code: str
    severity: ValidationSeverity
    message: str
    nodes: Optional[List[str]] = None
    edges: Optional[List[str]] = None


@dataclass
class ValidationResult:
    """Result of workflow validation."""
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    def has_blocking(self) -> bool:
        """Check if there are blocking errors."""
        return any(e.severity == ValidationSeverity.BLOCKING for e in self.errors)


# =============================================================================
# Compilation Errors
# =============================================================================

class CompilationError(Exception):
    """Error during workflow compilation."""

    code = "E_COMPILATION"

    def __init__(
        self,
        message: str,
        nodes: Optional[List[str]] = None,
        edges: Optional[List[str]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.message = message
        self.nodes = nodes
        self.edges = edges

    def to_issue(self) -> ValidationIssue:
        return ValidationIssue(
            code=self.code,
            severity=ValidationSeverity.BLOCKING,
            message=self.message,
            nodes=self.nodes,
            edges=self.edges,
        )


class DanglingEdgeError(CompilationError):
    """An edge references a node id that does not exist."""
    code = "E_MISSING_REF"

    def __init__(self, edge_ids: Sequence[str], missing: Sequence[str]):
        super().__init__(
            f"Edges reference non-existent nodes: {', '.join(missing)}",
            nodes=list(missing),
            edges=list(edge_ids),
        )


class UnreachableNodesError(CompilationError):
    code = "E_UNREACHABLE"

    def __init__(self, node_ids: Sequence[str]):
        super().__init__(
            f"Workflow contains unreachable nodes: {', '.join(node_ids)}",
            nodes=list(node_ids),
        )


class CyclicWorkflowError(CompilationError):
    code = "E_CYCLE"

    def __init__(self, cycles: Sequence[Sequence[str]]):
        rendered = "; ".join(" -> ".join(cycle) for cycle in cycles)
        super().__init__(
            f"Workflow contains cycle(s): {rendered}",
            nodes=sorted({node_id for cycle in cycles for node_id in cycle}),
        )


class StartNodeError(CompilationError):
    code = "E_START_COUNT"

    def __init__(self, start_ids: Sequence[str]):
        super().__init__(
            f"Workflow must contain exactly one start node. Found: {len(start_ids)}",
            nodes=list(start_ids) or None,
        )


class UnsupportedNodeError(CompilationError):
    """No lowerer is registered for a node type."""
    code = "E_UNSUPPORTED_NODE"

    def __init__(self, node_type: str, node_id: Optional[str] = None):
        super().__init__(
            f"Unsupported workflow node type for ExecIR lowering: {node_type}",
            nodes=[node_id] if node_id else None,
        )
        self.node_type = node_type


class InvalidStateRefError(CompilationError):
    code = "E_INVALID_STATE_REF"

    def __init__(self, refs: Sequence[str]):
        super().__init__(f"Invalid state references in program: {', '.join(refs)}")
        self.refs = list(refs)


class MissingTemplateError(CompilationError):
    code = "E_MISSING_TEMPLATE"

    def __init__(self, template_ids: Sequence[str]):
        super().__init__(f"Required prompt templates are not registered: {', '.join(template_ids)}")
        self.template_ids = list(template_ids)


class EmptyOutputError(CompilationError):
    code = "E_NO_OUTPUT"

    def __init__(self, target: str):
        super().__init__(f"Compiler produced no files for target: {target}")
