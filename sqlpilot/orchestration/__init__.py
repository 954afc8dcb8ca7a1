"""
Query assistant orchestration.

Usage:
    from sqlpilot.config import Settings
    from sqlpilot.orchestration import create_orchestrator

    orchestrator = await create_orchestrator(Settings.from_env())
    snapshot = await orchestrator.startup()
    outcome = await orchestrator.submit("지금 제일 많이 팔린 상품?")
"""

from .orchestrator import QueryOrchestrator
from .session import InvalidTransition, Session
from .types import (
    ConnectionStatus,
    KnowledgeSource,
    QueryOutcome,
    ReconcileResult,
    SessionSnapshot,
    SubmissionKind,
)
from .wiring import create_completion_client, create_orchestrator

__all__ = [
    # Orchestrator
    "QueryOrchestrator",
    "Session",
    "InvalidTransition",
    # Wiring
    "create_completion_client",
    "create_orchestrator",
    # Types
    "ConnectionStatus",
    "KnowledgeSource",
    "QueryOutcome",
    "ReconcileResult",
    "SessionSnapshot",
    "SubmissionKind",
]
