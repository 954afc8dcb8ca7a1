from .types import (
    CompletionRequest,
    CompletionResult,
    ErrorCategory,
    Message,
    QueryResult,
    WireError,
)
from .endpoints import BackendKind, EndpointSpec, HealthState
from .deadline import Deadline
from .proxy import QueryProxyClient
from .client import CompletionClient
from .health import HealthProbe, ProxyHealthProbe

__all__ = [
    # Types
    "CompletionRequest",
    "CompletionResult",
    "ErrorCategory",
    "Message",
    "QueryResult",
    "WireError",
    # Endpoints
    "BackendKind",
    "EndpointSpec",
    "HealthState",
    # Deadlines
    "Deadline",
    # Clients
    "QueryProxyClient",
    "CompletionClient",
    # Health
    "HealthProbe",
    "ProxyHealthProbe",
]
