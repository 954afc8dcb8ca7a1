"""Tests for the backend query proxy client."""

import asyncio
import json

import httpx
import pytest

from querywire.deadline import Deadline
from querywire.endpoints import BackendKind, EndpointSpec
from querywire.proxy import QueryProxyClient, _categorize_exception, parse_proxy_response
from querywire.types import ErrorCategory, WireError

PROXY_URL = "http://proxy.test/api/query"


def make_client(handler) -> QueryProxyClient:
    endpoint = EndpointSpec(name="proxy", base_url=PROXY_URL, backend_kind=BackendKind.QUERY_PROXY)
    return QueryProxyClient(endpoint, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_execute_posts_query_and_returns_rows():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [{"n": 1}, {"n": 2}], "apiVersion": "2"})

    result = await make_client(handler).execute("SELECT 1", Deadline(1.0))

    assert seen == {"method": "POST", "url": PROXY_URL, "body": {"query": "SELECT 1"}}
    assert result.rows == [{"n": 1}, {"n": 2}]
    assert result.api_version == "2"


@pytest.mark.asyncio
async def test_missing_data_is_empty_rows():
    result = await make_client(lambda r: httpx.Response(200, json={})).execute("SELECT 1", Deadline(1.0))
    assert result.rows == []


@pytest.mark.asyncio
async def test_deadline_cancels_never_responding_backend():
    cancelled = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return httpx.Response(200, json={"data": []})

    loop = asyncio.get_running_loop()
    started = loop.time()
    with pytest.raises(WireError) as exc_info:
        await make_client(handler).execute("SELECT 1", Deadline(0.05))

    assert exc_info.value.category == ErrorCategory.TIMEOUT
    assert loop.time() - started < 2.0
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_upstream_error_preserves_message_code_details():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            500,
            json={"error": "Invalid object name 'outm_9913'.", "details": "RequestError", "code": "EREQUEST"},
        )

    with pytest.raises(WireError) as exc_info:
        await make_client(handler).execute("SELECT * FROM outm_9913", Deadline(1.0))

    err = exc_info.value
    assert err.category == ErrorCategory.UPSTREAM
    assert err.message == "Invalid object name 'outm_9913'."
    assert err.code == "EREQUEST"
    assert err.details == "RequestError"
    assert err.status_code == 500


@pytest.mark.asyncio
async def test_upstream_error_without_json_body():
    with pytest.raises(WireError) as exc_info:
        await make_client(lambda r: httpx.Response(502, text="Bad Gateway")).execute("SELECT 1", Deadline(1.0))
    assert exc_info.value.category == ErrorCategory.UPSTREAM
    assert exc_info.value.message == "HTTP 502"


@pytest.mark.asyncio
async def test_transport_error_is_categorized():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(WireError) as exc_info:
        await make_client(handler).execute("SELECT 1", Deadline(1.0))
    assert exc_info.value.category == ErrorCategory.TRANSPORT


def test_non_json_success_is_parse_error():
    with pytest.raises(WireError) as exc_info:
        parse_proxy_response(httpx.Response(200, text="<html>oops</html>"))
    assert exc_info.value.category == ErrorCategory.PARSE


def test_rows_must_be_objects():
    with pytest.raises(WireError) as exc_info:
        parse_proxy_response(httpx.Response(200, json={"data": [1, 2]}))
    assert exc_info.value.category == ErrorCategory.PARSE


def test_categorize_timeout_before_transport():
    request = httpx.Request("POST", PROXY_URL)
    assert _categorize_exception(httpx.ReadTimeout("slow", request=request)).category == ErrorCategory.TIMEOUT
    assert _categorize_exception(httpx.ConnectError("down", request=request)).category == ErrorCategory.TRANSPORT
    assert _categorize_exception(RuntimeError("odd")).category == ErrorCategory.UNKNOWN
