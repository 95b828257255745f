"""
Lattice Lowerer Registry

Lookup table from workflow node type to lowerer.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Union
import logging

from ...schemas.workflow import WorkflowNodeType
from .types import Lowerer

logger = logging.getLogger(__name__)


class DuplicateLowererError(ValueError):
    def __init__(self, node_type: str):
        super().__init__(f"Lowerer already registered for node type: {node_type}")
        self.node_type = node_type


class LowererRegistry:
    """One lowerer per node type; populated at construction time."""

    def __init__(self):
        self._lowerers: Dict[WorkflowNodeType, Lowerer] = {}

    def register(self, lowerer: Lowerer) -> None:
        node_type = lowerer.node_type
        if node_type in self._lowerers:
            raise DuplicateLowererError(node_type.value)
        self._lowerers[node_type] = lowerer
        logger.debug(f"Registered lowerer for {node_type.value}: {type(lowerer).__name__}")

    def get(self, node_type: Union[WorkflowNodeType, str]) -> Optional[Lowerer]:
        try:
            key = WorkflowNodeType(node_type)
        except ValueError:
            return None
        return self._lowerers.get(key)

    def supported_types(self) -> List[WorkflowNodeType]:
        return list(self._lowerers)
