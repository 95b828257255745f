"""
Lattice Emitter Base

Shared types for platform emitters. An emitter turns a CompileInput into
files for one target; emission is a pure function of its input.
"""

from __future__ import annotations
from typing import Any, ClassVar, Dict, List, Optional
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from enum import Enum
import re

from ...schemas.models import ModelDefinition, PromptFormat
from ...schemas.workflow import WorkflowDocument
from ..ir_types import ExecProgram


class CompilerTarget(str, Enum):
    """Artifact families the compiler can emit."""
    CLAUDE = "claude"
    OPENAI_ASSISTANTS = "openai-assistants"
    PORTABLE_JSON = "portable-json"


@dataclass
class CompileInput:
    workflow: WorkflowDocument
    model: ModelDefinition
    target: CompilerTarget
    program: Optional[ExecProgram] = None


@dataclass
class OutputFile:
    path: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "content": self.content}


@dataclass
class CompileOutput:
    target: CompilerTarget
    files: List[OutputFile] = field(default_factory=list)
    preview: str = ""
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.value,
            "files": [f.to_dict() for f in self.files],
            "preview": self.preview,
            "warnings": list(self.warnings),
        }


_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(name: str, fallback: str = "workflow") -> str:
    """File-safe name: lowercase alphanumerics joined by single hyphens."""
    slug = _SLUG_STRIP.sub("-", name.lower()).strip("-")
    return slug or fallback


class Emitter(ABC):
    """
    Base emitter.

    Subclasses set `target` and, if the platform prefers one prompt style,
    `expected_prompt_format`. A model with a different style is reported
    as a warning, never an error.
    """

    target: ClassVar[CompilerTarget]
    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    expected_prompt_format: ClassVar[Optional[PromptFormat]] = None

    @abstractmethod
    def emit(self, compile_input: CompileInput) -> CompileOutput:
        """Produce this target's files."""

    def capability_warnings(self, model: ModelDefinition) -> List[str]:
        expected = self.expected_prompt_format
        actual = model.capabilities.prompt_format
        if expected is None or actual == expected:
            return []
        return [
            f"Model {model.display_name} uses {actual.value} format; "
            f"{self.name or self.target.value} target expects {expected.value}."
        ]

    @staticmethod
    def file_stem(workflow: WorkflowDocument) -> str:
        return slugify(workflow.name, fallback=slugify(workflow.id))
