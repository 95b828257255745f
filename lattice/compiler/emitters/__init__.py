"""Lattice Emitters - Platform artifacts from workflows and ExecIR."""

from .base import (
    CompileInput,
    CompileOutput,
    CompilerTarget,
    Emitter,
    OutputFile,
    slugify,
)
from .claude import ClaudeEmitter
from .openai_assistants import OpenAIAssistantsEmitter
from .portable_json import PortableJsonEmitter
from .registry import EmitterNotFoundError, EmitterRegistry, create_default_emitter_registry

__all__ = [
    "CompileInput",
    "CompileOutput",
    "CompilerTarget",
    "Emitter",
    "OutputFile",
    "slugify",
    "ClaudeEmitter",
    "OpenAIAssistantsEmitter",
    "PortableJsonEmitter",
    "EmitterNotFoundError",
    "EmitterRegistry",
    "create_default_emitter_registry",
]
