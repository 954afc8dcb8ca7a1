"""
OpenAI Chat Completions adapter.

Supports the OpenAI API and compatible self-hosted servers (vLLM, Ollama).
Non-streaming: one request, one assistant message.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from querywire.adapters.base import CompletionAdapter
from querywire.endpoints import EndpointSpec
from querywire.types import CompletionRequest, CompletionResult, ErrorCategory, WireError

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com"


class OpenAIChatAdapter(CompletionAdapter):
    def _path(self, endpoint: EndpointSpec, request: CompletionRequest) -> str:
        return "/v1/chat/completions"

    def _headers(self, endpoint: EndpointSpec) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if endpoint.api_key:
            headers["Authorization"] = f"Bearer {endpoint.api_key}"
        return headers

    def _build_payload(self, endpoint: EndpointSpec, request: CompletionRequest) -> Dict[str, Any]:
        messages = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.extend({"role": m.role, "content": m.content} for m in request.messages)

        payload: Dict[str, Any] = {
            "messages": messages,
            "stream": False,
        }

        model = request.model or endpoint.model
        if model:
            payload["model"] = model

        if request.temperature is not None:
            payload["temperature"] = request.temperature

        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        payload.update(request.extra_params)
        return payload

    def _parse_result(self, data: Dict[str, Any]) -> CompletionResult:
        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise WireError(ErrorCategory.PARSE, "'choices' is not a list", raw_backend=data)
        if not choices:
            return CompletionResult(text="", usage=_usage(data), raw=data)

        choice = choices[0]
        if not isinstance(choice, dict):
            raise WireError(ErrorCategory.PARSE, "choice is not an object", raw_backend=data)
        message = choice.get("message")
        if not isinstance(message, dict):
            raise WireError(ErrorCategory.PARSE, "choice has no message object", raw_backend=data)
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise WireError(ErrorCategory.PARSE, "message content is not text", raw_backend=data)

        return CompletionResult(
            text=content or "",
            finish_reason=choice.get("finish_reason"),
            usage=_usage(data),
            raw=data,
        )


def _usage(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    usage = data.get("usage")
    return usage if isinstance(usage, dict) else None
