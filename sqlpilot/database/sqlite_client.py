"""SQLite database client for the local knowledge store.

Thin async wrapper over aiosqlite: dict rows, implicit commits outside an
explicit transaction, and access to the schema version counter.
"""

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

DEFAULT_DB_PATH = "./data/sqlpilot.db"


class SQLiteClient:
    """SQLite database client used by KnowledgeStore."""

    def __init__(self, database_path: Optional[str] = None):
        self.database_path = database_path or os.getenv("SQLPILOT_DB", DEFAULT_DB_PATH)
        self._db: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    async def connect(self) -> None:
        if self._db is not None:
            return  # idempotent
        if self.database_path != ":memory:":
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
        # Transactions are managed explicitly (BEGIN/COMMIT) rather than by
        # the sqlite3 module's implicit ones.
        self._db = await aiosqlite.connect(self.database_path, isolation_level=None)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        if self.database_path != ":memory:":
            await self._db.execute("PRAGMA journal_mode = WAL")

    async def disconnect(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def execute(self, query: str, params=None) -> int:
        """Run a statement; returns lastrowid (useful after INSERT)."""
        cursor = await self._db.execute(query, self._params(params))
        return cursor.lastrowid

    async def fetch_one(self, query: str, params=None) -> Optional[Dict[str, Any]]:
        cursor = await self._db.execute(query, self._params(params))
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(self, query: str, params=None) -> List[Dict[str, Any]]:
        cursor = await self._db.execute(query, self._params(params))
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    async def table_names(self) -> List[str]:
        rows = await self.fetch_all(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
        )
        return sorted(r["name"] for r in rows)

    async def get_user_version(self) -> int:
        row = await self.fetch_one("PRAGMA user_version")
        return int(row["user_version"]) if row else 0

    async def set_user_version(self, version: int) -> None:
        # PRAGMA does not accept bound parameters
        await self._db.execute(f"PRAGMA user_version = {int(version)}")

    @asynccontextmanager
    async def transaction(self):
        await self._db.execute("BEGIN IMMEDIATE")
        try:
            yield self
            await self._db.execute("COMMIT")
        except BaseException:
            await self._db.execute("ROLLBACK")
            raise

    # -- internals --

    def _params(self, params):
        if params is None:
            return []
        if isinstance(params, dict):
            return params
        return list(params)
