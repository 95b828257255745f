"""Lattice Compiler Module - Workflow analysis, lowering and emission."""

from .workflow_compiler import WorkflowCompiler, workflow_compiler
from .analyzer import AnalyzedGraph, analyze_graph
from .validation import CompilationError, ValidationIssue, ValidationResult, ValidationSeverity
from .ir_types import ExecProgram, ExecNode, ExecEdge, ExecOp, ModelClass, WhenCondition
from .lowering import lower_to_exec_ir, lower_workflow
from .emitters import CompileInput, CompileOutput, CompilerTarget, EmitterNotFoundError

__all__ = [
    "WorkflowCompiler",
    "workflow_compiler",
    "AnalyzedGraph",
    "analyze_graph",
    "CompilationError",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "ExecProgram",
    "ExecNode",
    "ExecEdge",
    "ExecOp",
    "ModelClass",
    "WhenCondition",
    "lower_to_exec_ir",
    "lower_workflow",
    "CompileInput",
    "CompileOutput",
    "CompilerTarget",
    "EmitterNotFoundError",
]
