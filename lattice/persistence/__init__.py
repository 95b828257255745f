"""Lattice Persistence Module - Workflow document storage."""

from .base import WorkflowRepository
from .memory import InMemoryWorkflowRepository
from .sqlite import SQLiteWorkflowRepository

__all__ = [
    "WorkflowRepository",
    "InMemoryWorkflowRepository",
    "SQLiteWorkflowRepository",
    "get_workflow_repository",
]


def get_workflow_repository() -> WorkflowRepository:
    """
    Get the configured workflow repository.

    Returns the repository selected by LATTICE_PERSISTENCE_BACKEND:
    - memory: In-memory (default)
    - sqlite: SQLite file-based
    """
    from ..config import get_config, PersistenceBackend

    config = get_config()

    if config.persistence.backend == PersistenceBackend.SQLITE:
        return SQLiteWorkflowRepository(config.persistence.sqlite_path)
    return InMemoryWorkflowRepository()
