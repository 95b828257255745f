"""
Lattice Prompt Template Catalog

Templates referenced by LLM_WRITE nodes. The compiler only checks that
every template a program needs is registered; rendering belongs to the
interpreter.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    version: str
    system_prompt: str
    user_prompt_template: str
    output_schema: Optional[Dict[str, Any]] = None


class TemplateNotFoundError(LookupError):
    def __init__(self, template_id: str):
        super().__init__(f"Prompt template not found: {template_id}")
        self.template_id = template_id


class PromptTemplateRegistry:
    """Prompt templates keyed by id. Each id may be registered once."""

    def __init__(self):
        self._templates: Dict[str, PromptTemplate] = {}

    def register(self, template: PromptTemplate) -> None:
        if template.id in self._templates:
            raise ValueError(f"Prompt template already registered: {template.id}")
        self._templates[template.id] = template

    def has(self, template_id: str) -> bool:
        return template_id in self._templates

    def get(self, template_id: str) -> PromptTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def list(self) -> List[PromptTemplate]:
        return list(self._templates.values())


LLM_WRITE_V1 = PromptTemplate(
    id="llm-write-v1",
    version="1",
    system_prompt="You are a task executor. Follow the instruction precisely. Respond in JSON.",
    user_prompt_template=(
        "Instruction:\n{{instruction}}\n\nInput:\n{{input_json}}\n\nReturn only valid JSON."
    ),
)

SUB_AGENT_V1 = PromptTemplate(
    id="node-sub-agent-v1",
    version="1",
    system_prompt=(
        "You are a delegated sub-agent in a workflow. Complete the assigned objective "
        "and return only valid JSON conforming to the schema."
    ),
    user_prompt_template=(
        "<delegated_task>\n{{instruction}}\n</delegated_task>\n\n"
        "<input_json>\n{{input_json}}\n</input_json>\n\n"
        "Output JSON only."
    ),
)

REPAIR_V1 = PromptTemplate(
    id="repair-v1",
    version="1",
    system_prompt="Fix the JSON output based on validation errors. Return JSON only.",
    user_prompt_template=(
        "Errors:\n{{error}}\n\nPrevious output:\n{{previous_output}}\n\n"
        "Expected schema:\n{{expected_schema}}"
    ),
)


def create_default_prompt_registry() -> PromptTemplateRegistry:
    registry = PromptTemplateRegistry()
    for template in (LLM_WRITE_V1, SUB_AGENT_V1, REPAIR_V1):
        registry.register(template)
    return registry
