"""
Orchestration wiring for the query assistant.

Factory functions create service instances with all dependencies injected.
Apps (the CLI, tests) use create_orchestrator() instead of constructing
services directly; HTTP transports can be swapped for fakes.
"""

from typing import Any, Optional

import httpx
import structlog

from querywire.adapters.gemini import GeminiAdapter
from querywire.adapters.openai_chat import OpenAIChatAdapter
from querywire.client import CompletionClient
from querywire.endpoints import BackendKind
from querywire.health import ProxyHealthProbe
from querywire.proxy import QueryProxyClient

from sqlpilot.config.settings import Settings
from sqlpilot.database.knowledge_store import KnowledgeStore
from sqlpilot.orchestration.orchestrator import QueryOrchestrator
from sqlpilot.orchestration.session import Session
from sqlpilot.services.analyzer import ResultAnalyzer
from sqlpilot.services.gateway import QueryGateway
from sqlpilot.services.generator import QueryGenerator
from sqlpilot.services.reconciler import KnowledgeReconciler
from sqlpilot.services.schema_learner import SchemaLearner


def get_logger() -> Any:
    """Get logger for wiring module."""
    return structlog.get_logger("orchestration.wiring")


def create_completion_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CompletionClient:
    """Completion client for the configured model backend."""
    overrides = None
    if transport is not None:
        overrides = {
            BackendKind.GEMINI: GeminiAdapter(transport=transport),
            BackendKind.OPENAI_CHAT: OpenAIChatAdapter(transport=transport),
        }
    return CompletionClient(settings.llm_endpoint(), adapter_overrides=overrides)


async def create_orchestrator(
    settings: Settings,
    *,
    store: Optional[KnowledgeStore] = None,
    proxy_transport: Optional[httpx.AsyncBaseTransport] = None,
    llm_transport: Optional[httpx.AsyncBaseTransport] = None,
    knowledge_transport: Optional[httpx.AsyncBaseTransport] = None,
    logger: Optional[Any] = None,
) -> QueryOrchestrator:
    """
    Create a fully wired QueryOrchestrator.

    Opens (and migrates) the local store unless one is passed in. Does not
    probe the store or fetch knowledge; call ``startup()`` for that.

    Args:
        settings: Environment-derived settings
        store: Already-open store to use instead of ``settings.db_path``
        proxy_transport: httpx transport for the backend query proxy
        llm_transport: httpx transport for the language model
        knowledge_transport: httpx transport for the hosted knowledge file
        logger: Optional logger (creates one if None)
    """
    logger = logger or get_logger()

    if store is None:
        store = await KnowledgeStore.open(settings.db_path, logger=logger)

    proxy = QueryProxyClient(settings.proxy_endpoint(), transport=proxy_transport)
    completion = create_completion_client(settings, transport=llm_transport)

    logger.info(
        "orchestrator_wired",
        proxy_url=settings.proxy_url,
        llm_backend=settings.llm_backend.value,
        llm_model=settings.llm_model,
        llm_ready=completion.ready,
        db_path=str(settings.db_path),
    )

    return QueryOrchestrator(
        store=store,
        session=Session(ProxyHealthProbe(proxy), timeout_ms=settings.query_timeout_ms, logger=logger),
        reconciler=KnowledgeReconciler(
            store,
            default_reference=settings.default_knowledge_url,
            transport=knowledge_transport,
            logger=logger,
        ),
        learner=SchemaLearner(store, logger=logger),
        generator=QueryGenerator(completion, timeout_s=settings.generation_timeout_s, logger=logger),
        gateway=QueryGateway(proxy, default_timeout_ms=settings.query_timeout_ms, logger=logger),
        analyzer=ResultAnalyzer(completion, timeout_s=settings.summary_timeout_s, logger=logger),
        timezone=settings.timezone,
        query_timeout_ms=settings.query_timeout_ms,
        context_bounds=settings.context_bounds,
        logger=logger,
    )


__all__ = [
    "create_completion_client",
    "create_orchestrator",
]
