"""
WorkflowRepository Base Interface

Abstract key-by-id storage for workflow documents.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..schemas.workflow import WorkflowDocument


class WorkflowRepository(ABC):
    """
    Abstract interface for workflow document persistence.

    Implementations:
    - InMemoryWorkflowRepository: For testing (no persistence)
    - SQLiteWorkflowRepository: File-based persistence
    """

    @abstractmethod
    async def save(self, workflow: WorkflowDocument) -> None:
        """Save or replace a workflow document."""
        pass

    @abstractmethod
    async def get(self, workflow_id: str) -> Optional[WorkflowDocument]:
        """Get a workflow document by ID."""
        pass

    @abstractmethod
    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow document. Returns True if deleted."""
        pass

    @abstractmethod
    async def list(self) -> List[WorkflowDocument]:
        """List all workflow documents, most recently updated first."""
        pass

    async def exists(self, workflow_id: str) -> bool:
        return await self.get(workflow_id) is not None
