"""
Lattice Emitter Tests

Claude, OpenAI Assistants and portable JSON emitters plus the registry.
"""

import json
import pytest

from lattice.compiler.emitters import (
    ClaudeEmitter,
    CompileInput,
    CompilerTarget,
    EmitterNotFoundError,
    EmitterRegistry,
    OpenAIAssistantsEmitter,
    PortableJsonEmitter,
    create_default_emitter_registry,
    slugify,
)
from lattice.compiler.lowering import lower_to_exec_ir
from lattice.registry.models import ModelRegistry

from builders import chain, edge, node, workflow


@pytest.fixture
def models():
    return ModelRegistry()


@pytest.fixture
def claude_model(models):
    return models.get("claude-sonnet")


@pytest.fixture
def gpt_model(models):
    return models.get("gpt-4o")


@pytest.fixture
def tool_workflow():
    return workflow(
        [
            node("start", "start"),
            node("ask", "askUserQuestion", questionText="Which repo?"),
            node("search", "mcp", serverId="github", toolName="search_code"),
            node("fetch", "httpRequest", method="GET", url="https://example.com"),
            node("end", "end"),
        ],
        chain("start", "ask", "search", "fetch", "end"),
        name="Code Search",
    )


class TestSlug:
    """Artifact file names."""

    @pytest.mark.parametrize("name, expected", [
        ("Test Workflow", "test-workflow"),
        ("  Weird//Name!! ", "weird-name"),
        ("already-slugged", "already-slugged"),
    ])
    def test_slugify(self, name, expected):
        """Names become lowercase hyphenated slugs."""
        assert slugify(name) == expected

    def test_empty_slug_uses_fallback(self):
        assert slugify("!!!", fallback="wf") == "wf"


class TestClaudeEmitter:
    """Claude slash-command output."""

    def test_command_file(self, linear_workflow, claude_model):
        """Claude output is a single slash-command markdown file."""
        output = ClaudeEmitter().emit(CompileInput(
            workflow=linear_workflow, model=claude_model, target=CompilerTarget.CLAUDE,
        ))

        assert output.target == CompilerTarget.CLAUDE
        assert len(output.files) == 1
        command = output.files[0]
        assert command.path == ".claude/commands/test-workflow.md"
        assert command.content.startswith("---\ndescription: Execute workflow Test Workflow\n")
        assert "allowed-tools: Task\n" in command.content
        assert "Model: Claude Sonnet" in command.content
        assert '2. Summarize (prompt) - prompt="Summarize the input"' in command.content
        assert "- start -> summarize" in command.content
        assert output.preview == command.content
        assert output.warnings == []

    def test_steps_follow_execution_order(self, claude_model):
        """Steps are numbered in execution order, not declaration order."""
        wf = workflow(
            [node("end", "end"), node("work", "prompt"), node("start", "start")],
            chain("start", "work", "end"),
        )

        content = ClaudeEmitter().emit(CompileInput(
            workflow=wf, model=claude_model, target=CompilerTarget.CLAUDE,
        )).files[0].content

        assert content.index("1. Start (start)") < content.index("2. Work (prompt)") < content.index("3. End (end)")

    def test_allowed_tools_from_node_types(self, tool_workflow, claude_model):
        """Allowed tools are derived from the node types present."""
        content = ClaudeEmitter().emit(CompileInput(
            workflow=tool_workflow, model=claude_model, target=CompilerTarget.CLAUDE,
        )).files[0].content

        assert "allowed-tools: Task,AskUserQuestion,mcp__github__search_code,WebFetch" in content
        assert "method=GET, url=https://example.com" in content

    def test_non_xml_model_warns(self, linear_workflow, gpt_model):
        """A function-calling model is reported, not rejected."""
        output = ClaudeEmitter().emit(CompileInput(
            workflow=linear_workflow, model=gpt_model, target=CompilerTarget.CLAUDE,
        ))

        assert output.warnings == ["Model GPT-4o uses function-calling format; Claude target expects xml."]
        assert output.files


class TestOpenAIAssistantsEmitter:
    """OpenAI Assistants configuration output."""

    def test_assistant_config(self, tool_workflow, gpt_model):
        """Assistant JSON carries tools for mcp and httpRequest nodes."""
        output = OpenAIAssistantsEmitter().emit(CompileInput(
            workflow=tool_workflow, model=gpt_model, target=CompilerTarget.OPENAI_ASSISTANTS,
        ))
        payload = json.loads(output.files[0].content)

        assert output.files[0].path == "out/code-search.assistant.json"
        assert payload["name"] == "Code Search"
        assert payload["model"] == "gpt-4o"
        assert payload["instructions"] == "Execute workflow Code Search with 5 steps."
        assert [t["function"]["name"] for t in payload["tools"]] == ["mcp_github_search_code", "http_request_fetch"]
        assert payload["metadata"] == {"workflowId": "wf_test", "nodeCount": "5", "edgeCount": "4"}
        assert output.warnings == []

    def test_repeated_mcp_tool_is_declared_once(self, gpt_model):
        """Two steps calling the same MCP tool share one function tool."""
        wf = workflow(
            [
                node("start", "start"),
                node("first", "mcp", serverId="github", toolName="search"),
                node("second", "mcp", serverId="github", toolName="search"),
                node("end", "end"),
            ],
            chain("start", "first", "second", "end"),
        )

        output = OpenAIAssistantsEmitter().emit(CompileInput(
            workflow=wf, model=gpt_model, target=CompilerTarget.OPENAI_ASSISTANTS,
        ))
        payload = json.loads(output.files[0].content)

        assert [t["function"]["name"] for t in payload["tools"]] == ["mcp_github_search"]
        assert "(First)" in payload["tools"][0]["function"]["description"]

    def test_xml_model_warns(self, linear_workflow, claude_model):
        """A model preferring XML prompts is reported, not rejected."""
        output = OpenAIAssistantsEmitter().emit(CompileInput(
            workflow=linear_workflow, model=claude_model, target=CompilerTarget.OPENAI_ASSISTANTS,
        ))

        assert output.warnings == ["Model Claude Sonnet uses xml format; OpenAI target expects function-calling."]


class TestPortableJsonEmitter:
    """Portable JSON bundle output."""

    def test_bundle(self, claude_model):
        """The portable bundle sorts nodes by id and embeds the program."""
        wf = workflow(
            [node("start", "start"), node("b", "prompt"), node("a", "end")],
            chain("start", "b", "a"),
        )
        program = lower_to_exec_ir(wf)

        output = PortableJsonEmitter().emit(CompileInput(
            workflow=wf, model=claude_model, target=CompilerTarget.PORTABLE_JSON, program=program,
        ))
        bundle = json.loads(output.files[0].content)

        assert output.files[0].path == "out/test-workflow.portable.json"
        assert bundle["schemaVersion"] == "1.0.0"
        assert bundle["compiledFor"] == "claude-sonnet"
        assert [n["id"] for n in bundle["workflow"]["nodes"]] == ["a", "b", "start"]
        assert bundle["execir"] == program.to_dict()
        assert output.warnings == []

    def test_bundle_without_program(self, linear_workflow, gpt_model):
        """Without a program the bundle has no execir key."""
        output = PortableJsonEmitter().emit(CompileInput(
            workflow=linear_workflow, model=gpt_model, target=CompilerTarget.PORTABLE_JSON,
        ))

        assert "execir" not in json.loads(output.files[0].content)

    def test_emission_is_deterministic(self, linear_workflow, gpt_model):
        """Identical input produces identical output."""
        compile_input = CompileInput(
            workflow=linear_workflow, model=gpt_model, target=CompilerTarget.PORTABLE_JSON,
        )

        assert PortableJsonEmitter().emit(compile_input) == PortableJsonEmitter().emit(compile_input)


class TestEmitterRegistry:
    """Target dispatch."""

    def test_default_registry_dispatches_by_target(self, linear_workflow, gpt_model):
        """The default registry serves every target."""
        registry = create_default_emitter_registry()

        output = registry.emit(CompileInput(
            workflow=linear_workflow, model=gpt_model, target=CompilerTarget.OPENAI_ASSISTANTS,
        ))

        assert output.target == CompilerTarget.OPENAI_ASSISTANTS
        assert set(registry.targets()) == set(CompilerTarget)

    def test_missing_emitter_names_target(self, linear_workflow, gpt_model):
        """A missing emitter error names the target."""
        registry = EmitterRegistry()
        registry.register(ClaudeEmitter())

        with pytest.raises(EmitterNotFoundError) as exc:
            registry.emit(CompileInput(
                workflow=linear_workflow, model=gpt_model, target=CompilerTarget.PORTABLE_JSON,
            ))

        assert "portable-json" in str(exc.value)
        assert isinstance(exc.value, LookupError)

    def test_later_registration_replaces_earlier(self):
        """Registering a target again replaces the emitter."""
        registry = EmitterRegistry()
        first, second = ClaudeEmitter(), ClaudeEmitter()
        registry.register(first)
        registry.register(second)

        assert registry.get("claude") is second

    def test_unknown_target_string(self):
        with pytest.raises(EmitterNotFoundError):
            create_default_emitter_registry().get("vertex")
