"""
Cancellable wall-clock deadlines for awaited network calls.

A Deadline is created when an operation starts and handed to every
await that belongs to it. Expiry cancels the awaited coroutine (which
aborts the underlying httpx request) and surfaces as a WireError with
category TIMEOUT instead of leaving the call pending.
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

from querywire.types import ErrorCategory, WireError

T = TypeVar("T")


class Deadline:
    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._clock = clock
        self._expires_at = clock() + timeout

    @classmethod
    def from_ms(cls, timeout_ms: int) -> "Deadline":
        return cls(timeout_ms / 1000.0)

    def remaining(self) -> float:
        return max(self._expires_at - self._clock(), 0.0)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    async def run(self, awaitable: Awaitable[T], what: Optional[str] = None) -> T:
        """Await *awaitable*, cancelling it if the deadline passes first."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.remaining())
        except asyncio.TimeoutError:
            label = what or "request"
            raise WireError(
                ErrorCategory.TIMEOUT,
                f"{label} exceeded {self.timeout * 1000:.0f}ms deadline",
            ) from None
