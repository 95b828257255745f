"""
Lattice Emitter Registry

Lookup table from compiler target to emitter.
"""

from __future__ import annotations
from typing import Dict, List, Union
import logging

from .base import CompileInput, CompileOutput, CompilerTarget, Emitter
from .claude import ClaudeEmitter
from .openai_assistants import OpenAIAssistantsEmitter
from .portable_json import PortableJsonEmitter

logger = logging.getLogger(__name__)


class EmitterNotFoundError(LookupError):
    def __init__(self, target: str):
        super().__init__(f"No emitter registered for target: {target}")
        self.target = target


class EmitterRegistry:
    """
    One emitter per target.

    Registering a target twice replaces the earlier emitter.
    """

    def __init__(self):
        self._emitters: Dict[CompilerTarget, Emitter] = {}

    def register(self, emitter: Emitter) -> None:
        if emitter.target in self._emitters:
            logger.info(f"Replacing emitter for target {emitter.target.value}")
        self._emitters[emitter.target] = emitter

    def get(self, target: Union[CompilerTarget, str]) -> Emitter:
        try:
            key = CompilerTarget(target)
        except ValueError:
            raise EmitterNotFoundError(str(target))
        emitter = self._emitters.get(key)
        if emitter is None:
            raise EmitterNotFoundError(key.value)
        return emitter

    def targets(self) -> List[CompilerTarget]:
        return list(self._emitters)

    def emit(self, compile_input: CompileInput) -> CompileOutput:
        return self.get(compile_input.target).emit(compile_input)


def create_default_emitter_registry() -> EmitterRegistry:
    registry = EmitterRegistry()
    registry.register(ClaudeEmitter())
    registry.register(OpenAIAssistantsEmitter())
    registry.register(PortableJsonEmitter())
    return registry
