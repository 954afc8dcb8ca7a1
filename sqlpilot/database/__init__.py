"""Local persistence owned by the query assistant.

The knowledge store keeps custom knowledge, the learned schema, the
remote knowledge reference and the saved-query history in one SQLite
file whose layout migrates forward on open.
"""

from sqlpilot.database.knowledge_store import (
    BackupPayload,
    Bucket,
    HistoryEntry,
    KnowledgeStore,
)
from sqlpilot.database.sqlite_client import SQLiteClient

__all__ = [
    "BackupPayload",
    "Bucket",
    "HistoryEntry",
    "KnowledgeStore",
    "SQLiteClient",
]
