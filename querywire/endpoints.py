from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class BackendKind(str, Enum):
    QUERY_PROXY = "query_proxy"
    GEMINI = "gemini"
    OPENAI_CHAT = "openai_chat"


@dataclass
class EndpointSpec:
    name: str
    base_url: str
    backend_kind: BackendKind
    model: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def api_key(self) -> str:
        return self.metadata.get("api_key", "")


@dataclass
class HealthState:
    status: str  # healthy | unhealthy | unknown
    checked_at: Optional[float] = None
    detail: Optional[str] = None
    store_name: Optional[str] = None
    category: Optional[str] = None  # ErrorCategory value when unhealthy
