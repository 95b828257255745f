"""Lattice Lowering - WorkflowDocument to ExecIR."""

from .types import Fragment, Lowerer, LoweringContext
from .registry import LowererRegistry, DuplicateLowererError
from .lowerers import (
    BranchingLowerer,
    DEFAULT_LOWERERS,
    LLM_WRITE_TEMPLATE,
    SUB_AGENT_TEMPLATE,
)
from .pipeline import (
    LoweringResult,
    check_graph,
    create_default_lowerer_registry,
    lower_to_exec_ir,
    lower_workflow,
)

__all__ = [
    "Fragment",
    "Lowerer",
    "LoweringContext",
    "LowererRegistry",
    "DuplicateLowererError",
    "BranchingLowerer",
    "DEFAULT_LOWERERS",
    "LLM_WRITE_TEMPLATE",
    "SUB_AGENT_TEMPLATE",
    "LoweringResult",
    "check_graph",
    "create_default_lowerer_registry",
    "lower_to_exec_ir",
    "lower_workflow",
]
