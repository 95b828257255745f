"""
Lattice - Agent Workflow Compiler

Lattice compiles agent workflows (typed graphs of prompts, branches, tool
calls and sub-agents) into:
- a platform-neutral ExecIR program
- platform artifacts for Claude, OpenAI Assistants and portable JSON

At run time it maps provider events to a redacted canonical event stream,
decides model escalation and evaluates IR edge conditions.
"""

__version__ = "0.1.0"

from .compiler import (
    WorkflowCompiler,
    workflow_compiler,
    CompilationError,
    CompileInput,
    CompileOutput,
    CompilerTarget,
    ExecProgram,
    analyze_graph,
    lower_to_exec_ir,
)
from .schemas.workflow import WorkflowDocument, WorkflowNode, WorkflowEdge, WorkflowNodeType
from .schemas.migration import migrate_legacy_workflow
from .runtime import (
    ProviderEventMapper,
    map_provider_events,
    redact_content,
    should_escalate,
    evaluate_when,
    select_next_edge,
)
from .state.state_store import StateStore

__all__ = [
    # Compiler
    "WorkflowCompiler",
    "workflow_compiler",
    "CompilationError",
    "CompileInput",
    "CompileOutput",
    "CompilerTarget",
    "ExecProgram",
    "analyze_graph",
    "lower_to_exec_ir",
    # Workflow
    "WorkflowDocument",
    "WorkflowNode",
    "WorkflowEdge",
    "WorkflowNodeType",
    "migrate_legacy_workflow",
    # Runtime
    "ProviderEventMapper",
    "map_provider_events",
    "redact_content",
    "should_escalate",
    "evaluate_when",
    "select_next_edge",
    # State
    "StateStore",
]
