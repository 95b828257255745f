"""
Lattice Model Definitions

Declared capabilities of the language models a workflow can be compiled for.
"""

from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class PromptFormat(str, Enum):
    """Prompt style a model handles best."""
    XML = "xml"
    FUNCTION_CALLING = "function-calling"
    CHAT = "chat"


class ModelCapabilities(BaseModel):
    """Capability flags for a model."""
    model_config = ConfigDict(populate_by_name=True)

    tool_use: bool = Field(default=False, alias="toolUse")
    structured_output: bool = Field(default=False, alias="structuredOutput")
    vision: bool = False
    context_window: int = Field(..., gt=0, alias="contextWindow")
    prompt_format: PromptFormat = Field(default=PromptFormat.CHAT, alias="promptFormat")


class ModelDefinition(BaseModel):
    """A model entry from the model catalog."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, alias="displayName")
    provider: str = Field(..., min_length=1)
    preview: str = ""
    capabilities: ModelCapabilities
