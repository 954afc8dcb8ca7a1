"""Shared fixtures: a real SQLite store in tmp_path and fake HTTP backends."""

import asyncio
import json
from typing import Any, Dict, List

import httpx
import pytest
import pytest_asyncio

from querywire.health import PROBE_QUERY
from sqlpilot.config.settings import Settings
from sqlpilot.database.knowledge_store import KnowledgeStore
from sqlpilot.services.schema_learner import SCHEMA_QUERY

KNOWLEDGE_REFERENCE = "https://github.com/acme/pos-rules/blob/main/winpos3.txt"

SCHEMA_ROWS = [
    {"TABLE_NAME": "outm_2505", "COLUMN_NAME": "junno", "DATA_TYPE": "varchar",
     "CHARACTER_MAXIMUM_LENGTH": 20, "IS_PRIMARY_KEY": "YES"},
    {"TABLE_NAME": "outm_2505", "COLUMN_NAME": "tmamoney1", "DATA_TYPE": "money",
     "CHARACTER_MAXIMUM_LENGTH": None, "IS_PRIMARY_KEY": "NO"},
    {"TABLE_NAME": "parts", "COLUMN_NAME": "barcode", "DATA_TYPE": "varchar",
     "CHARACTER_MAXIMUM_LENGTH": 20, "IS_PRIMARY_KEY": "YES"},
    {"TABLE_NAME": "parts", "COLUMN_NAME": "curjago", "DATA_TYPE": "int",
     "CHARACTER_MAXIMUM_LENGTH": None, "IS_PRIMARY_KEY": "NO"},
]


class FrozenClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeBackends:
    """In-process stand-ins for the query proxy, the model and the knowledge host."""

    def __init__(self):
        self.proxy_queries: List[str] = []
        self.llm_prompts: List[str] = []
        self.llm_systems: List[str] = []
        self.knowledge_urls: List[str] = []

        self.probe_status = 200
        self.probe_body: Dict[str, Any] = {
            "data": [{"version": "Microsoft SQL Server 2019 (RTM) - 15.0\nX64", "current_db": "WINPOS3"}]
        }
        self.schema_rows = list(SCHEMA_ROWS)
        self.schema_status = 200
        self.query_status = 200
        self.query_body: Dict[str, Any] = {"data": [{"TodaySales": 1250000}]}

        self.sql_answer = "```sql\nSELECT ISNULL(SUM(tmamoney1), 0) FROM outm_2505\n```"
        self.summary_answer = "오늘 매출은 125만원입니다."
        self.held_requests: Dict[str, asyncio.Event] = {}

        self.knowledge_status = 200
        self.knowledge_text = "remote rules"

    async def proxy(self, request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        self.proxy_queries.append(query)
        if query == PROBE_QUERY:
            return httpx.Response(self.probe_status, json=self.probe_body)
        if query == SCHEMA_QUERY:
            if self.schema_status != 200:
                return httpx.Response(self.schema_status, json={"error": "permission denied", "code": "EPERM"})
            return httpx.Response(200, json={"data": self.schema_rows})
        return httpx.Response(self.query_status, json=self.query_body)

    async def llm(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        prompt = body["contents"][0]["parts"][0]["text"]
        self.llm_prompts.append(prompt)
        self.llm_systems.append(body["systemInstruction"]["parts"][0]["text"])
        if prompt.startswith("Analyze this JSON data"):
            text = self.summary_answer
        else:
            for marker, gate in self.held_requests.items():
                if f"Request: {marker}" in prompt:
                    await gate.wait()
            text = self.sql_answer
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

    def knowledge(self, request: httpx.Request) -> httpx.Response:
        self.knowledge_urls.append(str(request.url))
        return httpx.Response(self.knowledge_status, text=self.knowledge_text)

    @property
    def generation_prompts(self) -> List[str]:
        return [p for p in self.llm_prompts if not p.startswith("Analyze this JSON data")]

    def transports(self) -> Dict[str, httpx.MockTransport]:
        return {
            "proxy_transport": httpx.MockTransport(self.proxy),
            "llm_transport": httpx.MockTransport(self.llm),
            "knowledge_transport": httpx.MockTransport(self.knowledge),
        }


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest_asyncio.fixture
async def store(tmp_path, clock):
    store = await KnowledgeStore.open(tmp_path / "knowledge.db", clock=clock)
    yield store
    await store.close()


@pytest.fixture
def backends() -> FakeBackends:
    return FakeBackends()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        proxy_url="http://proxy.test/api/query",
        llm_base_url="https://gemini.test",
        llm_api_key="test-key",
        db_path=tmp_path / "sqlpilot.db",
        default_knowledge_url=KNOWLEDGE_REFERENCE,
    )
