"""
Lattice Workflow Compiler Tests

Validation, lowering and compilation through the compiler facade.
"""

import json
import pytest

from lattice.compiler.emitters import (
    CompileInput,
    CompileOutput,
    CompilerTarget,
    Emitter,
    EmitterRegistry,
)
from lattice.compiler.validation import (
    CompilationError,
    EmptyOutputError,
    MissingTemplateError,
    UnreachableNodesError,
    ValidationSeverity,
)
from lattice.compiler.workflow_compiler import WorkflowCompiler
from lattice.registry.models import ModelRegistry
from lattice.registry.prompts import PromptTemplateRegistry, LLM_WRITE_V1

from builders import chain, edge, node, workflow


class SilentEmitter(Emitter):
    target = CompilerTarget.PORTABLE_JSON

    def emit(self, compile_input):
        return CompileOutput(target=self.target)


@pytest.fixture
def compiler():
    return WorkflowCompiler()


@pytest.fixture
def model():
    return ModelRegistry().get("claude-sonnet")


class TestValidate:
    """Non-raising validation."""

    def test_valid_workflow(self, compiler, linear_workflow):
        """A valid workflow has no issues."""
        result = compiler.validate(linear_workflow)

        assert result.valid
        assert result.errors == []
        assert not result.has_blocking()

    def test_reports_every_issue(self, compiler):
        """Validation collects every issue instead of stopping."""
        wf = workflow(
            [node("a", "prompt"), node("fan", "parallel"), node("orphan", "prompt")],
            [edge("a", "fan"), edge("fan", "ghost", edge_id="e_ghost"), edge("orphan", "orphan")],
        )

        result = compiler.validate(wf)
        codes = [issue.code for issue in result.errors]

        assert not result.valid
        assert result.has_blocking()
        assert "E_MISSING_REF" in codes
        assert "E_UNREACHABLE" in codes
        assert "E_CYCLE" in codes
        assert "E_START_COUNT" in codes
        assert "E_UNSUPPORTED_NODE" in codes
        assert all(issue.severity == ValidationSeverity.BLOCKING for issue in result.errors)

    def test_tolerated_cycle_is_a_warning(self, compiler, monkeypatch):
        """Tolerated cycles are warnings."""
        monkeypatch.setenv("LATTICE_REJECT_CYCLES", "false")
        wf = workflow(
            [node("start", "start"), node("a", "prompt"), node("b", "prompt")],
            [edge("start", "a"), edge("a", "b"), edge("b", "a")],
        )

        result = compiler.validate(wf)

        assert result.valid
        assert [w.code for w in result.warnings] == ["W_CYCLE"]

    def test_missing_template_is_reported(self, linear_workflow):
        """Templates missing from the catalog are reported."""
        compiler = WorkflowCompiler(prompts=PromptTemplateRegistry())

        result = compiler.validate(linear_workflow)

        assert [e.code for e in result.errors] == ["E_MISSING_TEMPLATE"]


class TestCompile:
    """Lowering plus emission."""

    @pytest.mark.parametrize("target, path", [
        (CompilerTarget.CLAUDE, ".claude/commands/test-workflow.md"),
        (CompilerTarget.OPENAI_ASSISTANTS, "out/test-workflow.assistant.json"),
        (CompilerTarget.PORTABLE_JSON, "out/test-workflow.portable.json"),
    ])
    def test_compile_each_target(self, compiler, linear_workflow, model, target, path):
        """Every target produces output."""
        output = compiler.compile(CompileInput(workflow=linear_workflow, model=model, target=target))

        assert output.target == target
        assert [f.path for f in output.files] == [path]

    def test_portable_output_carries_program(self, compiler, linear_workflow, model):
        """Portable output embeds the lowered program."""
        output = compiler.compile(CompileInput(
            workflow=linear_workflow, model=model, target=CompilerTarget.PORTABLE_JSON,
        ))
        bundle = json.loads(output.files[0].content)

        assert bundle["execir"]["entry_node"] == "start"
        assert [n["op"] for n in bundle["execir"]["nodes"]] == ["START", "LLM_WRITE", "END"]

    def test_compile_fails_eagerly_on_invalid_workflow(self, compiler, model):
        """Compile raises before emitting when lowering fails."""
        wf = workflow(
            [node("start", "start"), node("end", "end"), node("orphan", "prompt")],
            chain("start", "end"),
        )

        with pytest.raises(UnreachableNodesError):
            compiler.compile(CompileInput(workflow=wf, model=model, target=CompilerTarget.CLAUDE))

    def test_compile_requires_templates(self, linear_workflow, model):
        """Compile raises E_MISSING_TEMPLATE."""
        prompts = PromptTemplateRegistry()
        compiler = WorkflowCompiler(prompts=prompts)

        with pytest.raises(MissingTemplateError) as exc:
            compiler.compile(CompileInput(workflow=linear_workflow, model=model, target=CompilerTarget.CLAUDE))
        assert exc.value.template_ids == ["llm-write-v1"]

        prompts.register(LLM_WRITE_V1)
        assert compiler.compile(CompileInput(
            workflow=linear_workflow, model=model, target=CompilerTarget.CLAUDE,
        )).files

    def test_empty_output_fails(self, linear_workflow, model):
        """An emitter producing no files fails with E_NO_OUTPUT."""
        emitters = EmitterRegistry()
        emitters.register(SilentEmitter())
        compiler = WorkflowCompiler(emitters=emitters)

        with pytest.raises(EmptyOutputError) as exc:
            compiler.compile(CompileInput(
                workflow=linear_workflow, model=model, target=CompilerTarget.PORTABLE_JSON,
            ))
        assert exc.value.code == "E_NO_OUTPUT"
        assert isinstance(exc.value, CompilationError)

    def test_tolerated_cycles_become_warnings(self, compiler, model, monkeypatch):
        """Tolerated cycles are prepended to the warnings."""
        monkeypatch.setenv("LATTICE_REJECT_CYCLES", "false")
        wf = workflow(
            [node("start", "start"), node("a", "prompt"), node("b", "prompt")],
            [edge("start", "a"), edge("a", "b"), edge("b", "a")],
        )

        output = compiler.compile(CompileInput(workflow=wf, model=model, target=CompilerTarget.CLAUDE))

        assert output.warnings == ["Workflow contains cycle: a -> b"]
