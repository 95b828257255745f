"""
SQLite Workflow Repository

File-based persistent storage for workflow documents.
"""

import json
import sqlite3
import asyncio
from typing import List, Optional
from pathlib import Path

from .base import WorkflowRepository
from ..schemas.workflow import WorkflowDocument


class SQLiteWorkflowRepository(WorkflowRepository):
    """
    SQLite-backed workflow repository.

    Features:
    - File-based persistence (survives server restarts)
    - Automatic table creation
    - Documents stored as their camelCase JSON form
    - Blocking I/O kept off the event loop via the default executor
    """

    CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS workflows (
        workflow_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        document TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_workflows_updated ON workflows(updated_at);
    """

    def __init__(self, db_path: str = "./lattice_workflows.db"):
        self.db_path = db_path
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database and tables exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript(self.CREATE_TABLE_SQL)

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def save(self, workflow: WorkflowDocument) -> None:
        def _save():
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO workflows (workflow_id, name, document, updated_at)
                    VALUES (?, ?, ?, ?)
                """, (
                    workflow.id,
                    workflow.name,
                    json.dumps(workflow.to_dict()),
                    workflow.updated_at,
                ))

        await asyncio.get_running_loop().run_in_executor(None, _save)

    async def get(self, workflow_id: str) -> Optional[WorkflowDocument]:
        def _get():
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT document FROM workflows WHERE workflow_id = ?",
                    (workflow_id,)
                ).fetchone()
                return self._row_to_document(row) if row else None

        return await asyncio.get_running_loop().run_in_executor(None, _get)

    async def delete(self, workflow_id: str) -> bool:
        def _delete():
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM workflows WHERE workflow_id = ?",
                    (workflow_id,)
                )
                return cursor.rowcount > 0

        return await asyncio.get_running_loop().run_in_executor(None, _delete)

    async def list(self) -> List[WorkflowDocument]:
        def _list():
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT document FROM workflows ORDER BY updated_at DESC"
                ).fetchall()
                return [self._row_to_document(row) for row in rows]

        return await asyncio.get_running_loop().run_in_executor(None, _list)

    def _row_to_document(self, row: sqlite3.Row) -> WorkflowDocument:
        return WorkflowDocument.model_validate(json.loads(row["document"]))
