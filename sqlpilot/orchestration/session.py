"""Session connection state machine.

    connecting --probe ok-----> online
    connecting --probe failed-> offline
    online  --reconnect--> connecting
    offline --reconnect--> connecting

No state is terminal. Concurrent probe requests share one in-flight probe.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from querywire.health import HealthProbe
from querywire.types import ErrorCategory

from sqlpilot._logging import get_component_logger
from sqlpilot.config.thresholds import DEFAULT_QUERY_TIMEOUT_MS
from sqlpilot.errors import QueryTimeout
from sqlpilot.orchestration.types import ConnectionStatus, SessionSnapshot

_TRANSITIONS: Dict[ConnectionStatus, Set[ConnectionStatus]] = {
    ConnectionStatus.CONNECTING: {ConnectionStatus.ONLINE, ConnectionStatus.OFFLINE},
    ConnectionStatus.ONLINE: {ConnectionStatus.CONNECTING},
    ConnectionStatus.OFFLINE: {ConnectionStatus.CONNECTING},
}


class InvalidTransition(RuntimeError):
    pass


class Session:
    def __init__(
        self,
        probe: HealthProbe,
        timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS,
        logger: Optional[Any] = None,
    ):
        self._probe = probe
        self._timeout_ms = timeout_ms
        self._logger = get_component_logger("Session", logger)
        self._snapshot = SessionSnapshot(status=ConnectionStatus.CONNECTING)
        self._inflight: Optional[asyncio.Future] = None

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def status(self) -> ConnectionStatus:
        return self._snapshot.status

    @property
    def is_online(self) -> bool:
        return self._snapshot.is_online

    def _transition(self, snapshot: SessionSnapshot) -> None:
        current = self._snapshot.status
        if snapshot.status not in _TRANSITIONS[current]:
            raise InvalidTransition(f"{current.value} -> {snapshot.status.value}")
        self._snapshot = snapshot
        self._logger.info(
            "session_transition",
            from_status=current.value,
            to_status=snapshot.status.value,
            store_name=snapshot.store_name,
        )

    async def probe(self) -> SessionSnapshot:
        """Run (or join) a connectivity probe and return the resulting snapshot."""
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._run_probe())
        return await asyncio.shield(self._inflight)

    async def _run_probe(self) -> SessionSnapshot:
        if self._snapshot.status != ConnectionStatus.CONNECTING:
            self._transition(SessionSnapshot(status=ConnectionStatus.CONNECTING))

        health = await self._probe.check(self._timeout_ms / 1000.0)

        if health.status == "healthy":
            snapshot = SessionSnapshot(
                status=ConnectionStatus.ONLINE,
                store_name=health.store_name,
                diagnostic=health.detail,
                checked_at=health.checked_at,
            )
        else:
            timed_out = health.category == ErrorCategory.TIMEOUT.value
            diagnostic = (
                QueryTimeout.diagnostic if timed_out else f"Connection failed: {health.detail}"
            )
            snapshot = SessionSnapshot(
                status=ConnectionStatus.OFFLINE,
                diagnostic=diagnostic,
                timed_out=timed_out,
                checked_at=health.checked_at,
            )
        self._transition(snapshot)
        return snapshot
