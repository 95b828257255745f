"""
Lattice Workflow Compiler

Compiles a WorkflowDocument into ExecIR and platform artifacts.
"""

from __future__ import annotations
from typing import List, Optional
import logging

from ..config import get_config
from ..registry.prompts import PromptTemplateRegistry, create_default_prompt_registry
from ..schemas.workflow import WorkflowDocument, WorkflowNodeType
from .analyzer import analyze_graph
from .emitters import CompileInput, CompileOutput, EmitterRegistry, create_default_emitter_registry
from .ir_types import ExecProgram
from .lowering import LowererRegistry, create_default_lowerer_registry, lower_workflow
from .validation import (
    CompilationError,
    EmptyOutputError,
    MissingTemplateError,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)

logger = logging.getLogger(__name__)


class WorkflowCompiler:
    """
    Compiles workflow documents.

    Features:
    - Non-raising validation reporting every issue at once
    - Lowering to an ExecProgram
    - Template checks against the prompt catalog
    - Emission through the target's emitter
    """

    def __init__(
        self,
        lowerers: Optional[LowererRegistry] = None,
        emitters: Optional[EmitterRegistry] = None,
        prompts: Optional[PromptTemplateRegistry] = None,
    ):
        self.lowerers = lowerers or create_default_lowerer_registry()
        self.emitters = emitters or create_default_emitter_registry()
        self.prompts = prompts or create_default_prompt_registry()

    def validate(self, workflow: WorkflowDocument) -> ValidationResult:
        """Validate a workflow without compiling."""
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []
        reject_cycles = get_config().compiler.reject_cycles

        node_ids = {node.id for node in workflow.nodes}
        for edge in workflow.edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in node_ids:
                    errors.append(ValidationIssue(
                        code="E_MISSING_REF",
                        severity=ValidationSeverity.BLOCKING,
                        message=f"Edge {edge.id} references non-existent node: {endpoint}",
                        edges=[edge.id],
                    ))

        graph = analyze_graph(workflow.nodes, workflow.edges)
        if graph.unreachable:
            errors.append(ValidationIssue(
                code="E_UNREACHABLE",
                severity=ValidationSeverity.BLOCKING,
                message=f"Workflow contains unreachable nodes: {', '.join(graph.unreachable)}",
                nodes=list(graph.unreachable),
            ))

        for cycle in graph.cycles:
            issue = ValidationIssue(
                code="E_CYCLE" if reject_cycles else "W_CYCLE",
                severity=ValidationSeverity.BLOCKING if reject_cycles else ValidationSeverity.WARNING,
                message=f"Cycle detected: {' -> '.join(cycle)}",
                nodes=list(cycle),
            )
            (errors if reject_cycles else warnings).append(issue)

        starts = [node.id for node in workflow.nodes if node.type == WorkflowNodeType.START]
        if len(starts) != 1:
            errors.append(ValidationIssue(
                code="E_START_COUNT",
                severity=ValidationSeverity.BLOCKING,
                message=f"Workflow must contain exactly one start node. Found: {len(starts)}",
                nodes=starts or None,
            ))

        for node in workflow.nodes:
            if self.lowerers.get(node.type) is None:
                errors.append(ValidationIssue(
                    code="E_UNSUPPORTED_NODE",
                    severity=ValidationSeverity.BLOCKING,
                    message=f"Unsupported workflow node type for ExecIR lowering: {node.type.value}",
                    nodes=[node.id],
                ))

        # Remaining checks need a program
        if not errors:
            try:
                result = lower_workflow(workflow, registry=self.lowerers, reject_cycles=reject_cycles)
            except CompilationError as e:
                errors.append(e.to_issue())
            else:
                missing = [t for t in result.required_templates if not self.prompts.has(t)]
                if missing:
                    errors.append(MissingTemplateError(missing).to_issue())

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def lower(self, workflow: WorkflowDocument) -> ExecProgram:
        """Lower a workflow to ExecIR. Raises CompilationError."""
        return lower_workflow(workflow, registry=self.lowerers).program

    def compile(self, compile_input: CompileInput) -> CompileOutput:
        """
        Lower, check templates and emit for the requested target.

        Raises:
            CompilationError: If the workflow cannot be lowered or emitted
            EmitterNotFoundError: If no emitter handles the target
        """
        workflow = compile_input.workflow
        result = lower_workflow(workflow, registry=self.lowerers)

        missing = [t for t in result.required_templates if not self.prompts.has(t)]
        if missing:
            raise MissingTemplateError(missing)

        output = self.emitters.emit(CompileInput(
            workflow=workflow,
            model=compile_input.model,
            target=compile_input.target,
            program=result.program,
        ))

        graph_warnings = [
            f"Workflow contains cycle: {' -> '.join(cycle)}"
            for cycle in (result.graph.cycles if result.graph else [])
        ]
        output.warnings = graph_warnings + output.warnings

        if not output.files:
            raise EmptyOutputError(compile_input.target.value)

        logger.info(
            f"Compiled workflow {workflow.id} for {compile_input.target.value}: "
            f"{len(output.files)} file(s), {len(output.warnings)} warning(s)"
        )
        return output


# Singleton instance
workflow_compiler = WorkflowCompiler()
