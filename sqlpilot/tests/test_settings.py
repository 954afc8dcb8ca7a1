from pathlib import Path

from querywire.adapters.gemini import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL
from querywire.adapters.openai_chat import DEFAULT_OPENAI_BASE_URL
from querywire.endpoints import BackendKind
from sqlpilot.config.settings import DEFAULT_KNOWLEDGE_URL, DEFAULT_PROXY_URL, DEFAULT_TIMEZONE, Settings
from sqlpilot.config.thresholds import DEFAULT_QUERY_TIMEOUT_MS
from sqlpilot.orchestration.wiring import create_completion_client


class TestFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.proxy_url == DEFAULT_PROXY_URL
        assert settings.query_timeout_ms == DEFAULT_QUERY_TIMEOUT_MS
        assert settings.llm_backend == BackendKind.GEMINI
        assert settings.llm_base_url == DEFAULT_GEMINI_BASE_URL
        assert settings.llm_model == DEFAULT_GEMINI_MODEL
        assert settings.llm_api_key == ""
        assert settings.timezone == DEFAULT_TIMEZONE
        assert settings.default_knowledge_url == DEFAULT_KNOWLEDGE_URL

    def test_overrides(self, tmp_path):
        settings = Settings.from_env({
            "SQLPILOT_PROXY_URL": "https://pos.example.com/api/query",
            "SQLPILOT_QUERY_TIMEOUT_MS": "5000",
            "SQLPILOT_DB": str(tmp_path / "store.db"),
            "SQLPILOT_TIMEZONE": "UTC",
        })

        assert settings.proxy_url == "https://pos.example.com/api/query"
        assert settings.query_timeout_ms == 5000
        assert settings.db_path == Path(tmp_path / "store.db").resolve()
        assert settings.timezone == "UTC"

    def test_api_key_fallback(self):
        assert Settings.from_env({"API_KEY": "legacy"}).llm_api_key == "legacy"
        assert Settings.from_env({"API_KEY": "legacy", "SQLPILOT_LLM_API_KEY": "new"}).llm_api_key == "new"

    def test_openai_backend_defaults(self):
        settings = Settings.from_env({"SQLPILOT_LLM_BACKEND": "openai_chat"})
        assert settings.llm_backend == BackendKind.OPENAI_CHAT
        assert settings.llm_base_url == DEFAULT_OPENAI_BASE_URL
        assert settings.llm_model == ""
        assert settings.llm_endpoint().model is None


class TestCompletionReadiness:
    def test_gemini_needs_key(self):
        assert not create_completion_client(Settings.from_env({})).ready
        assert create_completion_client(Settings.from_env({"API_KEY": "k"})).ready

    def test_self_hosted_openai_server_needs_no_key(self):
        settings = Settings.from_env({
            "SQLPILOT_LLM_BACKEND": "openai_chat",
            "SQLPILOT_LLM_BASE_URL": "http://localhost:11434",
        })
        assert create_completion_client(settings).ready

    def test_hosted_openai_needs_key(self):
        settings = Settings.from_env({"SQLPILOT_LLM_BACKEND": "openai_chat"})
        assert not create_completion_client(settings).ready
