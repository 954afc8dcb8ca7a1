"""Tests for the proxy connectivity probe."""

import asyncio
import json

import httpx
import pytest

from querywire.endpoints import BackendKind, EndpointSpec
from querywire.health import PROBE_QUERY, ProxyHealthProbe
from querywire.proxy import QueryProxyClient


def make_probe(handler) -> ProxyHealthProbe:
    endpoint = EndpointSpec(name="proxy", base_url="http://proxy.test/api/query", backend_kind=BackendKind.QUERY_PROXY)
    return ProxyHealthProbe(QueryProxyClient(endpoint, transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_healthy_probe_reports_store_and_version_preview():
    seen = {}

    def handler(req: httpx.Request) -> httpx.Response:
        seen["query"] = json.loads(req.content)["query"]
        version = "Microsoft SQL Server 2019 (RTM) - 15.0.2000.5 (X64)\n\tSep 24 2019"
        return httpx.Response(200, json={"data": [{"version": version, "current_db": "WINPOS3"}]})

    state = await make_probe(handler).check(timeout=1.0)

    assert seen["query"] == PROBE_QUERY
    assert state.status == "healthy"
    assert state.store_name == "WINPOS3"
    assert state.detail == "Server: Microsoft SQL Server 2019 (RTM..."


@pytest.mark.asyncio
async def test_missing_database_name_is_unknown():
    state = await make_probe(lambda r: httpx.Response(200, json={"data": [{"version": "X"}]})).check(1.0)
    assert state.status == "healthy"
    assert state.store_name == "Unknown"


@pytest.mark.asyncio
async def test_empty_result_is_unhealthy():
    state = await make_probe(lambda r: httpx.Response(200, json={"data": []})).check(1.0)
    assert state.status == "unhealthy"
    assert state.detail == "No data returned from DB"
    assert state.category == "upstream"


@pytest.mark.asyncio
async def test_timeout_is_unhealthy_with_timeout_category():
    async def handler(req: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200, json={"data": []})

    state = await make_probe(handler).check(timeout=0.05)
    assert state.status == "unhealthy"
    assert state.category == "timeout"


@pytest.mark.asyncio
async def test_rejected_probe_is_unhealthy_with_message():
    state = await make_probe(lambda r: httpx.Response(500, json={"error": "Login failed"})).check(1.0)
    assert state.status == "unhealthy"
    assert state.category == "upstream"
    assert state.detail == "Login failed"
