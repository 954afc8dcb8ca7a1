"""Query Execution Gateway: runs query text through the backend proxy."""

import time
from typing import Any, Dict, List, Optional

from querywire.deadline import Deadline
from querywire.proxy import QueryProxyClient
from querywire.types import WireError

from sqlpilot._logging import get_component_logger
from sqlpilot.config.thresholds import DEFAULT_QUERY_TIMEOUT_MS
from sqlpilot.errors import error_from_wire


class QueryGateway:
    """
    Executes query text under a deadline. No retry.

    Raises:
        QueryTimeout: the deadline passed; the in-flight request was cancelled.
        UpstreamError: the proxy reported a store failure (message/code/details kept).
        TransportError: the proxy could not be reached.
    """

    def __init__(
        self,
        proxy: QueryProxyClient,
        default_timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS,
        logger: Optional[Any] = None,
    ):
        self._proxy = proxy
        self._default_timeout_ms = default_timeout_ms
        self._logger = get_component_logger("QueryGateway", logger)

    async def execute(self, query_text: str, timeout_ms: Optional[int] = None) -> List[Dict[str, Any]]:
        timeout_ms = timeout_ms or self._default_timeout_ms
        started = time.perf_counter()
        try:
            result = await self._proxy.execute(query_text, Deadline.from_ms(timeout_ms))
        except WireError as err:
            self._logger.warning(
                "query_failed",
                category=err.category.value,
                error=err.message,
                code=err.code,
                status_code=err.status_code,
                query_length=len(query_text),
            )
            raise error_from_wire(err) from err

        self._logger.info(
            "query_executed",
            row_count=len(result.rows),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return result.rows
