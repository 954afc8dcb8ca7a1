"""KnowledgeStore: the assistant's local, versioned persistence layer.

Four logical buckets:
- knowledge         custom knowledge text (single string)
- schema            learned schema descriptor (single string)
- remote reference  URL of the hosted knowledge file (single string)
- history           saved queries, keyed by a store-assigned integer id

Every mutation replaces a whole bucket value or a whole history record.
All operations serialize on one asyncio lock, so a reader observes either
the old or the new value, and export sees one consistent snapshot.
Import validates the entire payload before touching anything, then
replaces the present buckets inside a single transaction.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple, Union

import aiosqlite

from sqlpilot._logging import get_component_logger
from sqlpilot._serialization import now_ms, utc_now_iso
from sqlpilot.database import schema
from sqlpilot.database.sqlite_client import SQLiteClient
from sqlpilot.errors import InvalidBackupFormat, StorageError


class Bucket(str, Enum):
    KNOWLEDGE = "knowledge"
    SCHEMA = "schema"
    REMOTE_REFERENCE = "remote_reference"


_BUCKET_LOCATIONS: Dict[Bucket, Tuple[str, str]] = {
    Bucket.KNOWLEDGE: (schema.KNOWLEDGE_TABLE, schema.KNOWLEDGE_KEY),
    Bucket.SCHEMA: (schema.KNOWLEDGE_TABLE, schema.SCHEMA_KEY),
    Bucket.REMOTE_REFERENCE: (schema.SETTINGS_TABLE, schema.REMOTE_REFERENCE_KEY),
}


@dataclass
class HistoryEntry:
    """A saved, reusable query."""

    id: int
    name: str
    query: str
    timestamp: int  # epoch milliseconds of creation or last edit

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BackupPayload:
    """A validated backup document. ``None`` means the bucket was absent."""

    knowledge: Optional[str] = None
    schema: Optional[str] = None
    remote_reference: Optional[str] = None
    history: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def parse(cls, payload: Any) -> "BackupPayload":
        """Validate a loosely shaped backup document.

        Raises:
            InvalidBackupFormat: the document is not an object, carries neither
                knowledge nor schema, or has a wrongly typed field.
        """
        if not isinstance(payload, dict):
            raise InvalidBackupFormat("backup must be a JSON object")

        knowledge = _optional_text(payload, "knowledge")
        schema_text = _optional_text(payload, "schema")
        if knowledge is None and schema_text is None:
            raise InvalidBackupFormat("backup has neither 'knowledge' nor 'schema'")

        remote_reference = _optional_text(payload, "remoteReference")

        history = payload.get("history")
        if history is not None:
            history = _parse_history(history)

        return cls(
            knowledge=knowledge,
            schema=schema_text,
            remote_reference=remote_reference,
            history=history,
        )


def _optional_text(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidBackupFormat(f"'{key}' must be a string")
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _or(value: Optional[int], default: int) -> int:
    return default if value is None else value


def _parse_history(history: Any) -> List[Dict[str, Any]]:
    if not isinstance(history, list):
        raise InvalidBackupFormat("'history' must be a list")

    entries: List[Dict[str, Any]] = []
    seen_ids = set()
    for index, item in enumerate(history):
        if not isinstance(item, dict):
            raise InvalidBackupFormat(f"history[{index}] must be an object")
        name, query = item.get("name"), item.get("query")
        if not isinstance(name, str) or not isinstance(query, str):
            raise InvalidBackupFormat(f"history[{index}] needs string 'name' and 'query'")
        entry_id, timestamp = item.get("id"), item.get("timestamp")
        if entry_id is not None:
            if not _is_int(entry_id) or entry_id < 1:
                raise InvalidBackupFormat(f"history[{index}].id must be a positive integer")
            if entry_id in seen_ids:
                raise InvalidBackupFormat(f"history[{index}].id {entry_id} is duplicated")
            seen_ids.add(entry_id)
        if timestamp is not None and not _is_int(timestamp):
            raise InvalidBackupFormat(f"history[{index}].timestamp must be an integer")
        entries.append({"id": entry_id, "name": name, "query": query, "timestamp": timestamp})
    return entries


class KnowledgeStore:
    """
    Local persistence for knowledge, schema, remote reference and query history.

    Usage:
        store = await KnowledgeStore.open("~/.sqlpilot/knowledge.db")
        await store.put(Bucket.KNOWLEDGE, "parts.curjago is current stock")
        entry_id = await store.append_history("오늘 매출", "SELECT 1")
        backup = await store.export_all()
        await store.close()
    """

    def __init__(
        self,
        client: SQLiteClient,
        logger: Optional[Any] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self._client = client
        self._logger = get_component_logger("KnowledgeStore", logger)
        self._clock = clock
        self._lock = asyncio.Lock()

    @classmethod
    async def open(
        cls,
        path: Union[str, Path],
        logger: Optional[Any] = None,
        clock: Callable[[], int] = now_ms,
    ) -> "KnowledgeStore":
        store = cls(SQLiteClient(str(path)), logger=logger, clock=clock)
        try:
            await store._client.connect()
        except aiosqlite.Error as exc:
            raise StorageError(f"cannot open store at {path}: {exc}") from exc
        await store.migrate()
        return store

    async def close(self) -> None:
        await self._client.disconnect()

    @asynccontextmanager
    async def _guarded(self, operation: str) -> AsyncIterator[SQLiteClient]:
        if not self._client.is_connected:
            raise StorageError(f"{operation}: store is not open")
        async with self._lock:
            try:
                yield self._client
            except aiosqlite.Error as exc:
                self._logger.error("storage_operation_failed", operation=operation, error=str(exc))
                raise StorageError(f"{operation} failed: {exc}") from exc

    # =========================================================================
    # MIGRATION
    # =========================================================================

    async def migrate(self) -> int:
        """Bring the physical layout up to ``schema.STORE_VERSION``.

        Returns the number of version steps applied (0 when already current).
        """
        applied = 0
        async with self._guarded("migrate") as db:
            current = await db.get_user_version()
            for version, statements in schema.MIGRATIONS:
                if version <= current:
                    continue
                async with db.transaction():
                    for statement in statements:
                        await db.execute(statement)
                    await db.set_user_version(version)
                applied += 1
                self._logger.info("store_migrated", from_version=current, to_version=version)
                current = version

            for statement in schema.CURRENT_LAYOUT:
                await db.execute(statement)
            for table in schema.OBSOLETE_TABLES:
                await db.execute(f"DROP TABLE IF EXISTS {table}")

        if applied == 0:
            self._logger.debug("store_up_to_date", version=schema.STORE_VERSION)
        return applied

    async def version(self) -> int:
        async with self._guarded("version") as db:
            return await db.get_user_version()

    # =========================================================================
    # SINGLE-VALUE BUCKETS
    # =========================================================================

    async def get(self, bucket: Bucket) -> Optional[str]:
        """Return the bucket's value, or None when unset or empty."""
        bucket = Bucket(bucket)
        table, key = _BUCKET_LOCATIONS[bucket]
        async with self._guarded(f"get {bucket.value}") as db:
            row = await db.fetch_one(f"SELECT value FROM {table} WHERE key = ?", (key,))
        return (row["value"] or None) if row else None

    async def put(self, bucket: Bucket, value: str) -> None:
        """Replace the bucket's value."""
        bucket = Bucket(bucket)
        if not isinstance(value, str):
            raise TypeError(f"{bucket.value} must be a string")
        table, key = _BUCKET_LOCATIONS[bucket]
        async with self._guarded(f"put {bucket.value}") as db:
            await self._write_value(db, table, key, value)
        self._logger.info("bucket_saved", bucket=bucket.value, length=len(value))

    @staticmethod
    async def _write_value(db: SQLiteClient, table: str, key: str, value: str) -> None:
        await db.execute(
            f"INSERT INTO {table} (key, value) VALUES (?, ?) "
            "ON CONFLICT (key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def _next_timestamp(self, db: SQLiteClient) -> int:
        # Strictly increasing, even when two saves land in the same millisecond.
        row = await db.fetch_one(f"SELECT MAX(timestamp) AS latest FROM {schema.HISTORY_TABLE}")
        latest = row["latest"] if row and row["latest"] is not None else None
        now = self._clock()
        return now if latest is None or now > latest else latest + 1

    async def append_history(self, name: str, query: str) -> int:
        """Save a query under *name*; returns the store-assigned id."""
        async with self._guarded("append history") as db:
            timestamp = await self._next_timestamp(db)
            entry_id = await db.execute(
                f"INSERT INTO {schema.HISTORY_TABLE} (name, query, timestamp) VALUES (?, ?, ?)",
                (name, query, timestamp),
            )
        self._logger.info("history_saved", history_id=entry_id, name=name)
        return entry_id

    async def update_history(self, entry_id: int, name: str, query: str) -> HistoryEntry:
        """Rename/edit a saved query; its timestamp is refreshed.

        Raises:
            KeyError: no entry with that id.
        """
        async with self._guarded("update history") as db:
            existing = await db.fetch_one(
                f"SELECT id FROM {schema.HISTORY_TABLE} WHERE id = ?", (entry_id,)
            )
            if existing is None:
                raise KeyError(entry_id)
            timestamp = await self._next_timestamp(db)
            await db.execute(
                f"UPDATE {schema.HISTORY_TABLE} SET name = ?, query = ?, timestamp = ? WHERE id = ?",
                (name, query, timestamp, entry_id),
            )
        self._logger.info("history_updated", history_id=entry_id, name=name)
        return HistoryEntry(id=entry_id, name=name, query=query, timestamp=timestamp)

    async def delete_history(self, entry_id: int) -> bool:
        """Delete a saved query. Returns False when the id did not exist."""
        async with self._guarded("delete history") as db:
            existing = await db.fetch_one(
                f"SELECT id FROM {schema.HISTORY_TABLE} WHERE id = ?", (entry_id,)
            )
            if existing is not None:
                await db.execute(f"DELETE FROM {schema.HISTORY_TABLE} WHERE id = ?", (entry_id,))
        self._logger.info("history_deleted", history_id=entry_id, existed=existing is not None)
        return existing is not None

    async def get_history(self, entry_id: int) -> Optional[HistoryEntry]:
        async with self._guarded("get history") as db:
            row = await db.fetch_one(
                f"SELECT id, name, query, timestamp FROM {schema.HISTORY_TABLE} WHERE id = ?",
                (entry_id,),
            )
        return HistoryEntry(**row) if row else None

    async def list_history(self) -> List[HistoryEntry]:
        """All saved queries, newest first."""
        async with self._guarded("list history") as db:
            return await self._read_history(db)

    @staticmethod
    async def _read_history(db: SQLiteClient) -> List[HistoryEntry]:
        rows = await db.fetch_all(
            f"SELECT id, name, query, timestamp FROM {schema.HISTORY_TABLE} "
            "ORDER BY timestamp DESC, id DESC"
        )
        return [HistoryEntry(**r) for r in rows]

    # =========================================================================
    # BACKUP / RESTORE
    # =========================================================================

    async def export_all(self) -> Dict[str, Any]:
        """Snapshot every bucket as one JSON-ready document."""
        async with self._guarded("export") as db:
            values = {}
            for bucket, (table, key) in _BUCKET_LOCATIONS.items():
                row = await db.fetch_one(f"SELECT value FROM {table} WHERE key = ?", (key,))
                values[bucket] = row["value"] if row else ""
            history = await self._read_history(db)

        self._logger.info("store_exported", history_count=len(history))
        return {
            "knowledge": values[Bucket.KNOWLEDGE],
            "schema": values[Bucket.SCHEMA],
            "remoteReference": values[Bucket.REMOTE_REFERENCE],
            "history": [entry.to_dict() for entry in history],
            "exportedAt": utc_now_iso(),
        }

    async def import_all(self, payload: Any) -> BackupPayload:
        """Atomically replace every bucket present in *payload*.

        Raises:
            InvalidBackupFormat: before anything is written.
            StorageError: the write failed; nothing was changed.
        """
        backup = BackupPayload.parse(payload)

        async with self._guarded("import") as db:
            async with db.transaction():
                for bucket, value in (
                    (Bucket.KNOWLEDGE, backup.knowledge),
                    (Bucket.SCHEMA, backup.schema),
                    (Bucket.REMOTE_REFERENCE, backup.remote_reference),
                ):
                    if value is not None:
                        table, key = _BUCKET_LOCATIONS[bucket]
                        await self._write_value(db, table, key, value)

                if backup.history is not None:
                    await db.execute(f"DELETE FROM {schema.HISTORY_TABLE}")
                    fallback_ts = self._clock()
                    # Explicit ids go in first so assigned ids never take one of them.
                    pinned = [e for e in backup.history if e["id"] is not None]
                    assigned = [e for e in backup.history if e["id"] is None]
                    for entry in pinned:
                        await db.execute(
                            f"INSERT INTO {schema.HISTORY_TABLE} (id, name, query, timestamp) "
                            "VALUES (?, ?, ?, ?)",
                            (entry["id"], entry["name"], entry["query"], _or(entry["timestamp"], fallback_ts)),
                        )
                    for entry in assigned:
                        await db.execute(
                            f"INSERT INTO {schema.HISTORY_TABLE} (name, query, timestamp) "
                            "VALUES (?, ?, ?)",
                            (entry["name"], entry["query"], _or(entry["timestamp"], fallback_ts)),
                        )

        self._logger.info(
            "store_imported",
            knowledge=backup.knowledge is not None,
            schema=backup.schema is not None,
            history_count=None if backup.history is None else len(backup.history),
        )
        return backup
