"""Tests for the session connection state machine."""

import asyncio
from typing import List, Optional

import pytest

from querywire.endpoints import HealthState
from querywire.health import HealthProbe
from sqlpilot.errors import QueryTimeout
from sqlpilot.orchestration.session import InvalidTransition, Session
from sqlpilot.orchestration.types import ConnectionStatus, SessionSnapshot


class ScriptedProbe(HealthProbe):
    def __init__(self, states: List[HealthState], gate: Optional[asyncio.Event] = None):
        self.states = list(states)
        self.calls = []
        self.gate = gate

    async def check(self, timeout: float) -> HealthState:
        self.calls.append(timeout)
        if self.gate is not None:
            await self.gate.wait()
        return self.states.pop(0)


HEALTHY = HealthState(status="healthy", detail="Server: Microsoft SQL Server 2019...", store_name="WINPOS3")
TIMED_OUT = HealthState(status="unhealthy", detail="query exceeded 15000ms deadline", category="timeout")
REFUSED = HealthState(status="unhealthy", detail="Login failed for user 'sa'.", category="upstream")


def test_initial_state_is_connecting():
    session = Session(ScriptedProbe([]))
    assert session.status == ConnectionStatus.CONNECTING
    assert not session.is_online


@pytest.mark.asyncio
async def test_successful_probe_goes_online():
    probe = ScriptedProbe([HEALTHY])
    snapshot = await Session(probe, timeout_ms=15000).probe()

    assert snapshot.status == ConnectionStatus.ONLINE
    assert snapshot.store_name == "WINPOS3"
    assert snapshot.diagnostic == "Server: Microsoft SQL Server 2019..."
    assert probe.calls == [15.0]


@pytest.mark.asyncio
async def test_timeout_is_distinguished_from_other_failures():
    session = Session(ScriptedProbe([TIMED_OUT, REFUSED]))

    timed_out = await session.probe()
    assert timed_out.status == ConnectionStatus.OFFLINE
    assert timed_out.timed_out
    assert timed_out.diagnostic == QueryTimeout.diagnostic

    refused = await session.probe()
    assert refused.status == ConnectionStatus.OFFLINE
    assert not refused.timed_out
    assert refused.diagnostic == "Connection failed: Login failed for user 'sa'."


@pytest.mark.asyncio
async def test_no_state_is_terminal():
    session = Session(ScriptedProbe([HEALTHY, REFUSED, HEALTHY]))
    statuses = [(await session.probe()).status for _ in range(3)]
    assert statuses == [ConnectionStatus.ONLINE, ConnectionStatus.OFFLINE, ConnectionStatus.ONLINE]


@pytest.mark.asyncio
async def test_reconnect_passes_through_connecting():
    gate = asyncio.Event()
    session = Session(ScriptedProbe([HEALTHY, HEALTHY]))
    await session.probe()

    session._probe.gate = gate
    pending = asyncio.ensure_future(session.probe())
    for _ in range(3):
        await asyncio.sleep(0)
    assert session.status == ConnectionStatus.CONNECTING
    gate.set()
    assert (await pending).status == ConnectionStatus.ONLINE


@pytest.mark.asyncio
async def test_concurrent_probes_share_one_check():
    gate = asyncio.Event()
    probe = ScriptedProbe([HEALTHY], gate=gate)
    session = Session(probe)

    first = asyncio.ensure_future(session.probe())
    second = asyncio.ensure_future(session.probe())
    await asyncio.sleep(0)
    gate.set()

    assert await first == await second
    assert len(probe.calls) == 1


def test_invalid_transition_is_rejected():
    session = Session(ScriptedProbe([]))
    with pytest.raises(InvalidTransition):
        session._transition(SessionSnapshot(status=ConnectionStatus.CONNECTING))
