"""Environment-driven settings for the query assistant.

Environment:
    SQLPILOT_PROXY_URL              Backend query proxy endpoint
    SQLPILOT_QUERY_TIMEOUT_MS       Deadline for proxy calls (default: 15000)
    SQLPILOT_LLM_BACKEND            "gemini" (default) or "openai_chat"
    SQLPILOT_LLM_BASE_URL           Model endpoint base URL
    SQLPILOT_LLM_MODEL              Model name (default: gemini-2.5-flash)
    SQLPILOT_LLM_API_KEY            Model credential (falls back to API_KEY)
    SQLPILOT_DB                     Local knowledge store path
    SQLPILOT_TIMEZONE               Target timezone (default: Asia/Seoul)
    SQLPILOT_KNOWLEDGE_URL          Remote knowledge reference used on first run
    SQLPILOT_GENERATION_TIMEOUT_S   Deadline for query generation (default: 60)
    SQLPILOT_SUMMARY_TIMEOUT_S      Deadline for result summaries (default: 30)

Examples:
    SQLPILOT_PROXY_URL=https://pos.example.com/api/query sqlpilot ask "오늘 매출 얼마야?"
    SQLPILOT_LLM_BACKEND=openai_chat SQLPILOT_LLM_BASE_URL=http://localhost:11434 \
        SQLPILOT_LLM_MODEL=llama3.2 sqlpilot status
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from querywire.adapters.gemini import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL
from querywire.adapters.openai_chat import DEFAULT_OPENAI_BASE_URL
from querywire.endpoints import BackendKind, EndpointSpec

from sqlpilot.config.context_bounds import ContextBounds
from sqlpilot.config.thresholds import (
    DEFAULT_GENERATION_TIMEOUT_S,
    DEFAULT_QUERY_TIMEOUT_MS,
    DEFAULT_SUMMARY_TIMEOUT_S,
)

DEFAULT_PROXY_URL = "http://localhost:3000/api/query"
DEFAULT_TIMEZONE = "Asia/Seoul"
DEFAULT_KNOWLEDGE_URL = "https://raw.githubusercontent.com/xerimaii-code/winpos3/main/winpos3.txt"


def get_default_db_path() -> Path:
    """Default local store location (~/.sqlpilot/knowledge.db)."""
    return Path.home() / ".sqlpilot" / "knowledge.db"


@dataclass
class Settings:
    proxy_url: str = DEFAULT_PROXY_URL
    query_timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS
    llm_backend: BackendKind = BackendKind.GEMINI
    llm_base_url: str = DEFAULT_GEMINI_BASE_URL
    llm_model: str = DEFAULT_GEMINI_MODEL
    llm_api_key: str = ""
    db_path: Path = field(default_factory=get_default_db_path)
    timezone: str = DEFAULT_TIMEZONE
    default_knowledge_url: str = DEFAULT_KNOWLEDGE_URL
    generation_timeout_s: float = DEFAULT_GENERATION_TIMEOUT_S
    summary_timeout_s: float = DEFAULT_SUMMARY_TIMEOUT_S
    context_bounds: ContextBounds = field(default_factory=ContextBounds)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        backend = BackendKind(env.get("SQLPILOT_LLM_BACKEND", BackendKind.GEMINI.value))
        default_base = (
            DEFAULT_GEMINI_BASE_URL if backend == BackendKind.GEMINI else DEFAULT_OPENAI_BASE_URL
        )
        default_model = DEFAULT_GEMINI_MODEL if backend == BackendKind.GEMINI else ""

        db_override = env.get("SQLPILOT_DB")
        return cls(
            proxy_url=env.get("SQLPILOT_PROXY_URL", DEFAULT_PROXY_URL),
            query_timeout_ms=int(env.get("SQLPILOT_QUERY_TIMEOUT_MS", DEFAULT_QUERY_TIMEOUT_MS)),
            llm_backend=backend,
            llm_base_url=env.get("SQLPILOT_LLM_BASE_URL", default_base),
            llm_model=env.get("SQLPILOT_LLM_MODEL", default_model),
            llm_api_key=env.get("SQLPILOT_LLM_API_KEY") or env.get("API_KEY", ""),
            db_path=Path(db_override).expanduser().resolve() if db_override else get_default_db_path(),
            timezone=env.get("SQLPILOT_TIMEZONE", DEFAULT_TIMEZONE),
            default_knowledge_url=env.get("SQLPILOT_KNOWLEDGE_URL", DEFAULT_KNOWLEDGE_URL),
            generation_timeout_s=float(
                env.get("SQLPILOT_GENERATION_TIMEOUT_S", DEFAULT_GENERATION_TIMEOUT_S)
            ),
            summary_timeout_s=float(env.get("SQLPILOT_SUMMARY_TIMEOUT_S", DEFAULT_SUMMARY_TIMEOUT_S)),
        )

    def proxy_endpoint(self) -> EndpointSpec:
        return EndpointSpec(name="query_proxy", base_url=self.proxy_url, backend_kind=BackendKind.QUERY_PROXY)

    def llm_endpoint(self) -> EndpointSpec:
        metadata = {"api_key": self.llm_api_key} if self.llm_api_key else {}
        return EndpointSpec(
            name="llm",
            base_url=self.llm_base_url,
            backend_kind=self.llm_backend,
            model=self.llm_model or None,
            metadata=metadata,
        )
