"""
In-Memory Workflow Repository

Fast, non-persistent storage for testing and development.
"""

from typing import Dict, List, Optional

from .base import WorkflowRepository
from ..schemas.workflow import WorkflowDocument


class InMemoryWorkflowRepository(WorkflowRepository):
    """
    In-memory workflow repository (no persistence).

    Documents are copied on the way in and out so callers never share
    mutable state with the repository.

    WARNING: All data is lost on server restart.
    """

    def __init__(self):
        self._documents: Dict[str, WorkflowDocument] = {}

    async def save(self, workflow: WorkflowDocument) -> None:
        self._documents[workflow.id] = workflow.model_copy(deep=True)

    async def get(self, workflow_id: str) -> Optional[WorkflowDocument]:
        document = self._documents.get(workflow_id)
        return document.model_copy(deep=True) if document else None

    async def delete(self, workflow_id: str) -> bool:
        if workflow_id in self._documents:
            del self._documents[workflow_id]
            return True
        return False

    async def list(self) -> List[WorkflowDocument]:
        documents = sorted(self._documents.values(), key=lambda d: d.updated_at, reverse=True)
        return [d.model_copy(deep=True) for d in documents]

    def clear(self) -> None:
        """Clear all documents (for testing)."""
        self._documents.clear()
