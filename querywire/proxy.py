"""
Backend query proxy client.

The proxy is a stateless relay in front of the relational store:

    POST <base_url>  {"query": "<text>"}
    2xx  -> {"data": [row, ...], "apiVersion": "..."}
    non-2xx -> {"error": "...", "details": "...", "code": "..."}

Every call runs under a Deadline; expiry cancels the in-flight request.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from querywire.deadline import Deadline
from querywire.endpoints import EndpointSpec
from querywire.telemetry import span
from querywire.types import ErrorCategory, QueryResult, WireError


def _categorize_exception(exc: Exception) -> WireError:
    if isinstance(exc, WireError):
        return exc
    # httpx.TimeoutException subclasses httpx.TransportError, so check it first.
    if isinstance(exc, httpx.TimeoutException):
        return WireError(ErrorCategory.TIMEOUT, str(exc) or "timed out")
    if isinstance(exc, httpx.TransportError):
        return WireError(ErrorCategory.TRANSPORT, str(exc) or exc.__class__.__name__)
    name = exc.__class__.__name__
    if "Timeout" in name:
        return WireError(ErrorCategory.TIMEOUT, str(exc))
    if "Network" in name or "Connect" in name:
        return WireError(ErrorCategory.TRANSPORT, str(exc))
    return WireError(ErrorCategory.UNKNOWN, str(exc))


def _json_or_none(resp: httpx.Response) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError:
        return None


def _parse_rows(body: Any) -> List[Dict[str, Any]]:
    if not isinstance(body, dict):
        raise WireError(ErrorCategory.PARSE, "proxy response is not a JSON object", raw_backend=body)
    rows = body.get("data")
    if rows is None:
        return []
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise WireError(ErrorCategory.PARSE, "proxy 'data' is not a list of rows", raw_backend=body)
    return rows


def parse_proxy_response(resp: httpx.Response) -> QueryResult:
    """Turn a proxy HTTP response into rows, or raise a categorized WireError."""
    body = _json_or_none(resp)
    if resp.is_success:
        if body is None:
            raise WireError(ErrorCategory.PARSE, "proxy returned a non-JSON body", raw_backend=resp.text)
        return QueryResult(rows=_parse_rows(body), api_version=body.get("apiVersion"), raw=body)

    if isinstance(body, dict):
        error = body.get("error")
        details = body.get("details")
        code = body.get("code")
        message = error or details or f"HTTP {resp.status_code}"
        raise WireError(
            ErrorCategory.UPSTREAM,
            str(message),
            code=str(code) if code is not None else None,
            details=str(details) if details is not None else None,
            status_code=resp.status_code,
            raw_backend=body,
        )
    raise WireError(
        ErrorCategory.UPSTREAM,
        f"HTTP {resp.status_code}",
        status_code=resp.status_code,
        raw_backend=resp.text,
    )


class QueryProxyClient:
    """
    Sends query text to the backend proxy.

    Usage:
        client = QueryProxyClient(EndpointSpec("proxy", url, BackendKind.QUERY_PROXY))
        result = await client.execute("SELECT 1", Deadline.from_ms(15000))
    """

    def __init__(
        self,
        endpoint: EndpointSpec,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connect_timeout: float = 10.0,
    ):
        self.endpoint = endpoint
        self.connect_timeout = connect_timeout
        self._transport = transport

    async def execute(self, query: str, deadline: Deadline) -> QueryResult:
        async with span("proxy.execute", endpoint=self.endpoint.name, query_length=len(query)):
            return await deadline.run(self._post(query), what="query")

    async def _post(self, query: str) -> QueryResult:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(None, connect=self.connect_timeout),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            ) as client:
                resp = await client.post(self.endpoint.base_url, json={"query": query})
        except httpx.HTTPError as exc:
            raise _categorize_exception(exc) from exc
        return parse_proxy_response(resp)
