from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import structlog


@asynccontextmanager
async def span(name: str, logger: Optional[Any] = None, **kwargs) -> AsyncIterator[None]:
    # Emits one debug event per span with its wall-clock duration.
    log = logger or structlog.get_logger()
    started = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except asyncio.CancelledError:
        outcome = "cancelled"
        raise
    except Exception:
        outcome = "error"
        raise
    finally:
        log.debug(
            "span_finished",
            span=name,
            outcome=outcome,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            **kwargs,
        )
