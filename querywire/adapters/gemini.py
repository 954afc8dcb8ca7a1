"""
Google Gemini generateContent adapter.

POST {base_url}/v1beta/models/{model}:generateContent
Auth via the x-goog-api-key header. Thinking is disabled
(thinkingBudget=0) since query generation wants a fast, direct answer.
"""
from __future__ import annotations

from typing import Any, Dict

from querywire.adapters.base import CompletionAdapter
from querywire.endpoints import EndpointSpec
from querywire.types import CompletionRequest, CompletionResult, ErrorCategory, WireError

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class GeminiAdapter(CompletionAdapter):
    def _path(self, endpoint: EndpointSpec, request: CompletionRequest) -> str:
        model = request.model or endpoint.model or DEFAULT_GEMINI_MODEL
        return f"/v1beta/models/{model}:generateContent"

    def _headers(self, endpoint: EndpointSpec) -> Dict[str, str]:
        return {"x-goog-api-key": endpoint.api_key} if endpoint.api_key else {}

    def _build_payload(self, endpoint: EndpointSpec, request: CompletionRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [
                {"role": "user" if m.role != "assistant" else "model", "parts": [{"text": m.content}]}
                for m in request.messages
            ],
        }
        if request.system:
            payload["systemInstruction"] = {"parts": [{"text": request.system}]}

        generation_config: Dict[str, Any] = {"thinkingConfig": {"thinkingBudget": 0}}
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.max_tokens is not None:
            generation_config["maxOutputTokens"] = request.max_tokens
        payload["generationConfig"] = generation_config

        payload.update(request.extra_params)
        return payload

    def _parse_result(self, data: Dict[str, Any]) -> CompletionResult:
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise WireError(ErrorCategory.PARSE, "'candidates' is not a list", raw_backend=data)
        if not candidates:
            feedback = data.get("promptFeedback")
            reason = None
            if isinstance(feedback, dict):
                reason = feedback.get("blockReason")
            reason = reason or "no candidates returned"
            raise WireError(ErrorCategory.UPSTREAM, f"model returned no answer: {reason}", raw_backend=data)

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise WireError(ErrorCategory.PARSE, "candidate is not an object", raw_backend=data)
        content = candidate.get("content") or {}
        if not isinstance(content, dict):
            raise WireError(ErrorCategory.PARSE, "candidate content is not an object", raw_backend=data)
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            raise WireError(ErrorCategory.PARSE, "content parts is not a list", raw_backend=data)

        text = "".join(
            p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
        )
        usage = data.get("usageMetadata")
        return CompletionResult(
            text=text,
            finish_reason=candidate.get("finishReason"),
            usage=usage if isinstance(usage, dict) else None,
            raw=data,
        )
