"""Tests for the language-model adapters."""

import json
from types import SimpleNamespace

import httpx
import pytest

import querywire.adapters.base as base_module
from querywire.adapters.gemini import GeminiAdapter
from querywire.adapters.openai_chat import OpenAIChatAdapter
from querywire.endpoints import BackendKind, EndpointSpec
from querywire.types import CompletionRequest, ErrorCategory, Message, WireError

GEMINI = EndpointSpec(
    name="llm",
    base_url="https://gemini.test",
    backend_kind=BackendKind.GEMINI,
    model="gemini-2.5-flash",
    metadata={"api_key": "secret"},
)
OPENAI = EndpointSpec(
    name="llm",
    base_url="http://llm.test",
    backend_kind=BackendKind.OPENAI_CHAT,
    model="local-model",
)


def request(system: str = "be terse") -> CompletionRequest:
    return CompletionRequest(messages=[Message(role="user", content="hi")], system=system, temperature=0.0)


def gemini_answer(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


@pytest.mark.asyncio
async def test_gemini_request_shape():
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["path"] = req.url.path
        seen["key"] = req.headers.get("x-goog-api-key")
        seen["body"] = json.loads(req.content)
        return httpx.Response(200, json=gemini_answer("SELECT 1"))

    result = await GeminiAdapter(transport=httpx.MockTransport(handler)).complete(GEMINI, request())

    assert result.text == "SELECT 1"
    assert result.finish_reason == "STOP"
    assert seen["path"] == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert seen["key"] == "secret"
    body = seen["body"]
    assert body["contents"] == [{"role": "user", "parts": [{"text": "hi"}]}]
    assert body["systemInstruction"] == {"parts": [{"text": "be terse"}]}
    assert body["generationConfig"]["thinkingConfig"] == {"thinkingBudget": 0}
    assert body["generationConfig"]["temperature"] == 0.0


@pytest.mark.asyncio
async def test_gemini_joins_parts():
    data = {"candidates": [{"content": {"parts": [{"text": "SELECT "}, {"text": "2"}]}}]}
    adapter = GeminiAdapter(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=data)))
    assert (await adapter.complete(GEMINI, request())).text == "SELECT 2"


@pytest.mark.asyncio
async def test_gemini_blocked_prompt_is_upstream_error():
    data = {"promptFeedback": {"blockReason": "SAFETY"}}
    adapter = GeminiAdapter(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=data)))
    with pytest.raises(WireError) as exc_info:
        await adapter.complete(GEMINI, request())
    assert exc_info.value.category == ErrorCategory.UPSTREAM
    assert "SAFETY" in exc_info.value.message


@pytest.mark.asyncio
async def test_http_error_status_uses_error_message():
    body = {"error": {"code": 400, "message": "API key not valid."}}
    adapter = GeminiAdapter(transport=httpx.MockTransport(lambda r: httpx.Response(400, json=body)))
    with pytest.raises(WireError) as exc_info:
        await adapter.complete(GEMINI, request())
    assert exc_info.value.category == ErrorCategory.UPSTREAM
    assert exc_info.value.message == "API key not valid."
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_openai_request_shape():
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["path"] = req.url.path
        seen["auth"] = req.headers.get("authorization")
        seen["body"] = json.loads(req.content)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"content": "SELECT 3"}, "finish_reason": "stop"}]},
        )

    result = await OpenAIChatAdapter(transport=httpx.MockTransport(handler)).complete(OPENAI, request())

    assert result.text == "SELECT 3"
    assert seen["path"] == "/v1/chat/completions"
    assert seen["auth"] is None
    assert seen["body"]["model"] == "local-model"
    assert seen["body"]["stream"] is False
    assert seen["body"]["messages"][0] == {"role": "system", "content": "be terse"}
    assert seen["body"]["messages"][1] == {"role": "user", "content": "hi"}


@pytest.mark.asyncio
async def test_transport_failures_are_retried(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(base_module, "asyncio", SimpleNamespace(sleep=fake_sleep))
    calls = []

    def handler(req: httpx.Request) -> httpx.Response:
        calls.append(req)
        if len(calls) == 1:
            raise httpx.ConnectError("refused", request=req)
        return httpx.Response(200, json=gemini_answer("ok"))

    adapter = GeminiAdapter(max_retries=2, transport=httpx.MockTransport(handler))
    result = await adapter.complete(GEMINI, request())

    assert result.text == "ok"
    assert len(calls) == 2
    assert sleeps == [1]


@pytest.mark.asyncio
async def test_transport_failure_surfaces_after_last_attempt():
    def handler(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=req)

    adapter = GeminiAdapter(max_retries=1, transport=httpx.MockTransport(handler))
    with pytest.raises(WireError) as exc_info:
        await adapter.complete(GEMINI, request())
    assert exc_info.value.category == ErrorCategory.TRANSPORT


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data",
    [
        {"candidates": ["oops"]},
        {"candidates": "oops"},
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": {"text": "x"}}}]},
    ],
)
async def test_gemini_malformed_answer_is_parse_error(data):
    adapter = GeminiAdapter(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=data)))
    with pytest.raises(WireError) as exc_info:
        await adapter.complete(GEMINI, request())
    assert exc_info.value.category == ErrorCategory.PARSE


@pytest.mark.asyncio
async def test_gemini_non_object_feedback_still_reports_no_answer():
    data = {"candidates": [], "promptFeedback": "x"}
    adapter = GeminiAdapter(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=data)))
    with pytest.raises(WireError) as exc_info:
        await adapter.complete(GEMINI, request())
    assert exc_info.value.category == ErrorCategory.UPSTREAM
    assert "no candidates returned" in exc_info.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data",
    [
        {"choices": [{"message": None}]},
        {"choices": ["oops"]},
        {"choices": {"message": {}}},
        {"choices": [{"message": {"content": ["SELECT 1"]}}]},
    ],
)
async def test_openai_malformed_answer_is_parse_error(data):
    adapter = OpenAIChatAdapter(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=data)))
    with pytest.raises(WireError) as exc_info:
        await adapter.complete(OPENAI, request())
    assert exc_info.value.category == ErrorCategory.PARSE


@pytest.mark.asyncio
async def test_openai_empty_choices_is_empty_text():
    adapter = OpenAIChatAdapter(
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []}))
    )
    assert (await adapter.complete(OPENAI, request())).text == ""
