"""Lattice Registry Module - Model and prompt template catalogs."""

from .models import ModelRegistry, UnknownModelError, BUILT_IN_MODELS
from .prompts import (
    PromptTemplate,
    PromptTemplateRegistry,
    TemplateNotFoundError,
    create_default_prompt_registry,
)

__all__ = [
    "ModelRegistry",
    "UnknownModelError",
    "BUILT_IN_MODELS",
    "PromptTemplate",
    "PromptTemplateRegistry",
    "TemplateNotFoundError",
    "create_default_prompt_registry",
]
