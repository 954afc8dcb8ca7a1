from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"
    PARSE = "parse"
    UNKNOWN = "unknown"


@dataclass
class WireError(Exception):
    category: ErrorCategory
    message: str
    code: Optional[str] = None
    details: Optional[str] = None
    status_code: Optional[int] = None
    raw_backend: Optional[Any] = None

    def __str__(self) -> str:
        return f"{self.category.value}: {self.message}"


@dataclass
class Message:
    role: str
    content: str


@dataclass
class CompletionRequest:
    """
    One-shot text completion:
      - system: instruction framing the model's role
      - messages: user turns (usually exactly one)
    """
    messages: List[Message]
    system: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    extra_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CompletionResult:
    text: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    raw: Optional[Any] = None


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]]
    api_version: Optional[str] = None
    raw: Optional[Any] = None
