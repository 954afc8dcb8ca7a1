"""SQLite layout of the local knowledge store and its migrations.

The physical layout is versioned through ``PRAGMA user_version``. Each
migration moves the store forward by exactly one version and only uses
idempotent statements, so a half-applied upgrade can be replayed.

Current layout (version 4):
    knowledge_store   key/value: userKnowledge, learnedSchema
    settings_store    key/value: remoteKnowledgeUrl
    query_history     saved queries (id assigned by the store)
"""

from typing import List, Tuple

STORE_VERSION = 4

KNOWLEDGE_TABLE = "knowledge_store"
SETTINGS_TABLE = "settings_store"
HISTORY_TABLE = "query_history"

KNOWLEDGE_KEY = "userKnowledge"
SCHEMA_KEY = "learnedSchema"
REMOTE_REFERENCE_KEY = "remoteKnowledgeUrl"

KNOWLEDGE_STORE_DDL = """
CREATE TABLE IF NOT EXISTS knowledge_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

SETTINGS_STORE_DDL = """
CREATE TABLE IF NOT EXISTS settings_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

QUERY_HISTORY_DDL = """
CREATE TABLE IF NOT EXISTS query_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    query TEXT NOT NULL,
    timestamp INTEGER NOT NULL
)
"""

QUERY_HISTORY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_query_history_timestamp ON query_history(timestamp DESC)"
)

# Version 1 kept free-form learning notes in their own table; version 4
# folds the newest note into knowledge_store and drops the table.
LEARNING_NOTES_DDL = """
CREATE TABLE IF NOT EXISTS learning_notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content TEXT NOT NULL,
    updated_at INTEGER NOT NULL DEFAULT 0
)
"""

MIGRATIONS: List[Tuple[int, List[str]]] = [
    (1, [KNOWLEDGE_STORE_DDL, LEARNING_NOTES_DDL]),
    (2, [SETTINGS_STORE_DDL]),
    (3, [QUERY_HISTORY_DDL, QUERY_HISTORY_INDEX_DDL]),
    (
        4,
        [
            LEARNING_NOTES_DDL,
            f"""
            INSERT OR IGNORE INTO knowledge_store (key, value)
            SELECT '{KNOWLEDGE_KEY}', content FROM learning_notes
            ORDER BY updated_at DESC, id DESC LIMIT 1
            """,
            "DROP TABLE IF EXISTS learning_notes",
        ],
    ),
]

# Buckets that must exist after every open, whatever the recorded version says.
CURRENT_LAYOUT = [
    KNOWLEDGE_STORE_DDL,
    SETTINGS_STORE_DDL,
    QUERY_HISTORY_DDL,
    QUERY_HISTORY_INDEX_DDL,
]

OBSOLETE_TABLES = ["learning_notes"]
