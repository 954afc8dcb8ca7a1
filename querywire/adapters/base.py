from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from querywire.endpoints import EndpointSpec
from querywire.proxy import _categorize_exception
from querywire.types import CompletionRequest, CompletionResult, ErrorCategory, WireError

_RETRYABLE = {ErrorCategory.TIMEOUT, ErrorCategory.TRANSPORT}


def _upstream_message(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return f"HTTP {status_code}"


class CompletionAdapter(ABC):
    """
    Turns a CompletionRequest into one HTTP round trip against a model backend.

    Transport-level failures are retried with exponential backoff; HTTP error
    statuses are not, and surface as WireError(UPSTREAM).
    """

    def __init__(
        self,
        timeout: float = 120.0,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

    @abstractmethod
    def _path(self, endpoint: EndpointSpec, request: CompletionRequest) -> str:
        ...

    @abstractmethod
    def _headers(self, endpoint: EndpointSpec) -> Dict[str, str]:
        ...

    @abstractmethod
    def _build_payload(self, endpoint: EndpointSpec, request: CompletionRequest) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _parse_result(self, data: Dict[str, Any]) -> CompletionResult:
        ...

    async def complete(self, endpoint: EndpointSpec, request: CompletionRequest) -> CompletionResult:
        path = self._path(endpoint, request)
        payload = self._build_payload(endpoint, request)
        headers = {"Content-Type": "application/json", **self._headers(endpoint)}

        async with httpx.AsyncClient(
            base_url=endpoint.base_url.rstrip("/"),
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers=headers,
            transport=self._transport,
        ) as client:
            attempts = max(self.max_retries, 1)
            for attempt in range(attempts):
                try:
                    resp = await client.post(path, json=payload)
                except httpx.HTTPError as exc:
                    err = _categorize_exception(exc)
                    if err.category in _RETRYABLE and attempt < attempts - 1:
                        await asyncio.sleep(2 ** attempt)
                        continue
                    raise err from exc

                try:
                    data = resp.json()
                except ValueError:
                    data = None

                if not resp.is_success:
                    raise WireError(
                        ErrorCategory.UPSTREAM,
                        _upstream_message(data, resp.status_code),
                        status_code=resp.status_code,
                        raw_backend=data if data is not None else resp.text,
                    )
                if not isinstance(data, dict):
                    raise WireError(ErrorCategory.PARSE, "model returned a non-JSON body", raw_backend=resp.text)
                return self._parse_result(data)

        raise WireError(ErrorCategory.UNKNOWN, "no attempt was made")  # pragma: no cover
