from __future__ import annotations

from typing import Dict, Optional

from querywire.adapters.base import CompletionAdapter
from querywire.adapters.gemini import GeminiAdapter
from querywire.adapters.openai_chat import DEFAULT_OPENAI_BASE_URL, OpenAIChatAdapter
from querywire.deadline import Deadline
from querywire.endpoints import BackendKind, EndpointSpec
from querywire.telemetry import span
from querywire.types import CompletionRequest, CompletionResult, ErrorCategory, WireError


class CompletionClient:
    """Routes a completion request to the adapter for the endpoint's backend kind."""

    def __init__(
        self,
        endpoint: EndpointSpec,
        adapter_overrides: Dict[BackendKind, CompletionAdapter] | None = None,
    ):
        self.endpoint = endpoint
        self.adapters: Dict[BackendKind, CompletionAdapter] = {
            BackendKind.GEMINI: GeminiAdapter(),
            BackendKind.OPENAI_CHAT: OpenAIChatAdapter(),
        }
        if adapter_overrides:
            self.adapters.update(adapter_overrides)

    @property
    def has_credential(self) -> bool:
        return bool(self.endpoint.api_key)

    @property
    def requires_credential(self) -> bool:
        # Self-hosted OpenAI-compatible servers usually run without a key.
        if self.endpoint.backend_kind == BackendKind.OPENAI_CHAT:
            return self.endpoint.base_url.rstrip("/") == DEFAULT_OPENAI_BASE_URL
        return True

    @property
    def ready(self) -> bool:
        return self.has_credential or not self.requires_credential

    async def complete(
        self, request: CompletionRequest, deadline: Optional[Deadline] = None
    ) -> CompletionResult:
        adapter = self.adapters.get(self.endpoint.backend_kind)
        if adapter is None:
            raise WireError(
                ErrorCategory.UNKNOWN, f"No adapter for backend {self.endpoint.backend_kind}"
            )
        async with span("completion", backend=self.endpoint.backend_kind.value):
            call = adapter.complete(self.endpoint, request)
            if deadline is None:
                return await call
            return await deadline.run(call, what="completion")
