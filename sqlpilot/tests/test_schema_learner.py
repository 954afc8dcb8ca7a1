import pytest

from sqlpilot.database.knowledge_store import Bucket
from sqlpilot.errors import QueryTimeout
from sqlpilot.services.schema_learner import SCHEMA_QUERY, SchemaLearner, render_schema


def test_render_schema_groups_columns_per_table():
    rows = [
        {"TABLE_NAME": "parts", "COLUMN_NAME": "barcode", "DATA_TYPE": "varchar",
         "CHARACTER_MAXIMUM_LENGTH": 20, "IS_PRIMARY_KEY": "YES"},
        {"TABLE_NAME": "parts", "COLUMN_NAME": "curjago", "DATA_TYPE": "int",
         "CHARACTER_MAXIMUM_LENGTH": None, "IS_PRIMARY_KEY": "NO"},
    ]
    assert render_schema(rows) == "Table 'parts': barcode (varchar(20)) [PK], curjago (int)\n"


def test_render_schema_one_line_per_table_in_row_order(backends):
    text = render_schema(backends.schema_rows)
    assert text.splitlines() == [
        "Table 'outm_2505': junno (varchar(20)) [PK], tmamoney1 (money)",
        "Table 'parts': barcode (varchar(20)) [PK], curjago (int)",
    ]


def test_render_empty():
    assert render_schema([]) == ""


def test_introspection_query_shape():
    assert "INFORMATION_SCHEMA.TABLES" in SCHEMA_QUERY
    assert "t.TABLE_TYPE = 'BASE TABLE'" in SCHEMA_QUERY
    assert "ORDER BY t.TABLE_NAME, c.ORDINAL_POSITION" in SCHEMA_QUERY


@pytest.mark.asyncio
async def test_learn_caches_descriptor(store, backends):
    queries = []

    async def execute(query):
        queries.append(query)
        return backends.schema_rows

    descriptor = await SchemaLearner(store).learn(execute)

    assert queries == [SCHEMA_QUERY]
    assert descriptor.startswith("Table 'outm_2505'")
    assert await store.get(Bucket.SCHEMA) == descriptor


@pytest.mark.asyncio
async def test_failure_leaves_cached_descriptor(store):
    await store.put(Bucket.SCHEMA, "cached")

    async def execute(query):
        raise QueryTimeout("query exceeded 15000ms deadline")

    with pytest.raises(QueryTimeout):
        await SchemaLearner(store).learn(execute)
    assert await store.get(Bucket.SCHEMA) == "cached"


@pytest.mark.asyncio
async def test_empty_introspection_keeps_cached_descriptor(store):
    await store.put(Bucket.SCHEMA, "cached")

    async def execute(query):
        return []

    assert await SchemaLearner(store).learn(execute) == ""
    assert await store.get(Bucket.SCHEMA) == "cached"


def test_row_without_length_key():
    rows = [{"TABLE_NAME": "parts", "COLUMN_NAME": "barcode", "DATA_TYPE": "varchar", "IS_PRIMARY_KEY": "YES"}]
    assert "Table 'parts': barcode (varchar) [PK]" in render_schema(rows)
