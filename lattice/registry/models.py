"""
Lattice Model Catalog

Flat catalog of model definitions consulted by id.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence

from ..schemas.models import ModelCapabilities, ModelDefinition, PromptFormat


BUILT_IN_MODELS: List[ModelDefinition] = [
    ModelDefinition(
        id="claude-sonnet",
        display_name="Claude Sonnet",
        provider="Anthropic",
        preview="Balanced reasoning with strong tool and long-context support.",
        capabilities=ModelCapabilities(
            tool_use=True,
            structured_output=True,
            vision=True,
            context_window=200000,
            prompt_format=PromptFormat.XML,
        ),
    ),
    ModelDefinition(
        id="gpt-4o",
        display_name="GPT-4o",
        provider="OpenAI",
        preview="Fast multimodal responses with strong function-calling ergonomics.",
        capabilities=ModelCapabilities(
            tool_use=True,
            structured_output=True,
            vision=True,
            context_window=128000,
            prompt_format=PromptFormat.FUNCTION_CALLING,
        ),
    ),
]


class UnknownModelError(LookupError):
    """Requested model id is not in the catalog."""

    def __init__(self, model_id: str):
        super().__init__(f"Unknown model: {model_id}")
        self.model_id = model_id


class ModelRegistry:
    """Model definitions keyed by id."""

    def __init__(self, models: Optional[Sequence[ModelDefinition]] = None):
        source = BUILT_IN_MODELS if models is None else models
        self._models: Dict[str, ModelDefinition] = {m.id: m for m in source}

    def list(self) -> List[ModelDefinition]:
        return list(self._models.values())

    def get(self, model_id: str) -> ModelDefinition:
        model = self._models.get(model_id)
        if model is None:
            raise UnknownModelError(model_id)
        return model
