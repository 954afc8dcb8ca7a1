"""Schema Learner: one introspection query, folded into a compact descriptor.

Descriptor format, one line per base table in table-name order:

    Table 'parts': barcode (varchar(20)) [PK], descr (nvarchar(100)), curjago (int)
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlpilot._logging import get_component_logger
from sqlpilot.database.knowledge_store import Bucket, KnowledgeStore

SCHEMA_QUERY = """
SELECT
    t.TABLE_NAME, c.COLUMN_NAME, c.DATA_TYPE,
    c.CHARACTER_MAXIMUM_LENGTH,
    CASE WHEN k.CONSTRAINT_TYPE = 'PRIMARY KEY' THEN 'YES' ELSE 'NO' END as IS_PRIMARY_KEY
FROM INFORMATION_SCHEMA.TABLES t
JOIN INFORMATION_SCHEMA.COLUMNS c ON t.TABLE_NAME = c.TABLE_NAME
LEFT JOIN (
    SELECT kcu.TABLE_NAME, kcu.COLUMN_NAME, tc.CONSTRAINT_TYPE
    FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
    JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
    ON kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME AND tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
) k ON c.TABLE_NAME = k.TABLE_NAME AND c.COLUMN_NAME = k.COLUMN_NAME
WHERE t.TABLE_TYPE = 'BASE TABLE'
ORDER BY t.TABLE_NAME, c.ORDINAL_POSITION
"""

ExecuteFn = Callable[[str], Awaitable[List[Dict[str, Any]]]]


def describe_column(row: Dict[str, Any]) -> str:
    type_info = row.get("DATA_TYPE") or ""
    length = row.get("CHARACTER_MAXIMUM_LENGTH")
    if length:
        type_info = f"{type_info}({length})"
    pk = " [PK]" if row.get("IS_PRIMARY_KEY") == "YES" else ""
    return f"{row.get('COLUMN_NAME')} ({type_info}){pk}"


def render_schema(rows: List[Dict[str, Any]]) -> str:
    """Fold introspection rows into the descriptor text.

    Rows arrive ordered by table then ordinal position; tables keep their
    first-seen order and columns their row order.
    """
    tables: Dict[str, List[str]] = {}
    for row in rows:
        tables.setdefault(row.get("TABLE_NAME"), []).append(describe_column(row))
    return "".join(f"Table '{name}': {', '.join(columns)}\n" for name, columns in tables.items())


class SchemaLearner:
    """
    Learns the store's schema and caches the descriptor.

    Failures propagate unchanged for the caller to report; the cached
    descriptor is only replaced after a successful, non-empty introspection.
    """

    def __init__(self, store: KnowledgeStore, logger: Optional[Any] = None):
        self._store = store
        self._logger = get_component_logger("SchemaLearner", logger)

    async def learn(self, execute_fn: ExecuteFn) -> str:
        rows = await execute_fn(SCHEMA_QUERY)
        descriptor = render_schema(rows)
        if not descriptor:
            self._logger.warning("schema_learn_empty")
            return descriptor

        await self._store.put(Bucket.SCHEMA, descriptor)
        self._logger.info(
            "schema_learned",
            table_count=descriptor.count("\n"),
            column_count=len(rows),
        )
        return descriptor
