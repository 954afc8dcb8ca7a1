"""
Domain types for the query orchestrator.

Connection state of the session, and the outcome of one submission.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlpilot.errors import SqlPilotError
from sqlpilot.services.reconciler import KnowledgeSource, ReconcileResult


class ConnectionStatus(str, Enum):
    """Session connection state."""

    CONNECTING = "connecting"
    ONLINE = "online"
    OFFLINE = "offline"


class SubmissionKind(str, Enum):
    """How the query text of a submission was obtained."""

    NATURAL_LANGUAGE = "natural_language"
    REPLAY = "replay"


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session at one moment."""

    status: ConnectionStatus
    store_name: Optional[str] = None
    diagnostic: Optional[str] = None
    timed_out: bool = False
    checked_at: Optional[float] = None

    @property
    def is_online(self) -> bool:
        return self.status == ConnectionStatus.ONLINE


@dataclass
class QueryOutcome:
    """Result of one submission, successful or not."""

    submission_id: int
    kind: SubmissionKind
    request: str
    query: str = ""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    summary: Optional[str] = None
    error: Optional[str] = None
    failure: Optional[SqlPilotError] = None
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.superseded


__all__ = [
    "ConnectionStatus",
    "SubmissionKind",
    "SessionSnapshot",
    "QueryOutcome",
    "KnowledgeSource",
    "ReconcileResult",
]
