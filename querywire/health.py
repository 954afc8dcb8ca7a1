from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Optional

from .deadline import Deadline
from .endpoints import HealthState
from .proxy import QueryProxyClient
from .types import ErrorCategory, WireError

PROBE_QUERY = "SELECT @@VERSION as version, DB_NAME() as current_db"
VERSION_PREVIEW_CHARS = 30


class HealthProbe(ABC):
    @abstractmethod
    async def check(self, timeout: float) -> HealthState:
        ...


class ProxyHealthProbe(HealthProbe):
    """
    Connectivity probe through the backend query proxy.

    Runs a trivial version/database-name query under a deadline:
    - healthy:   store answered; store_name and a short server version preview
    - unhealthy: timeout, transport failure, or the store rejected the probe
                 (category carries which)
    """

    def __init__(self, proxy: QueryProxyClient, probe_query: str = PROBE_QUERY):
        self.proxy = proxy
        self.probe_query = probe_query

    async def check(self, timeout: float) -> HealthState:
        try:
            result = await self.proxy.execute(self.probe_query, Deadline(timeout))
        except WireError as err:
            return HealthState(
                status="unhealthy",
                checked_at=time.time(),
                detail=err.message,
                category=err.category.value,
            )

        if not result.rows:
            return HealthState(
                status="unhealthy",
                checked_at=time.time(),
                detail="No data returned from DB",
                category=ErrorCategory.UPSTREAM.value,
            )

        row = result.rows[0]
        store_name = row.get("current_db") or "Unknown"
        return HealthState(
            status="healthy",
            checked_at=time.time(),
            detail=f"Server: {_version_preview(row.get('version'))}...",
            store_name=str(store_name),
        )


def _version_preview(version: Optional[object]) -> str:
    text = str(version or "")
    return text.split("\n")[0][:VERSION_PREVIEW_CHARS]
