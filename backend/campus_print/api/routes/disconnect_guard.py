"""Disconnect Guard — cancels request work when the client goes away.

Invariants:
    - The guarded coroutine runs as its own task; the route awaits its result
    - When request.is_disconnected() turns true the task is cancelled and
      awaited to completion (its cleanup runs) before ClientDisconnectedError
    - If the route itself is cancelled the task is cancelled too
"""

import asyncio
import logging
from collections.abc import Awaitable, Coroutine
from typing import Any, Protocol, TypeVar

from campus_print.core.errors import ClientDisconnectedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

POLL_INTERVAL_SECONDS = 0.25


class DisconnectAware(Protocol):
    """The part of starlette's Request this guard uses."""
    def is_disconnected(self) -> Awaitable[bool]: ...


async def run_unless_disconnected(
    request: DisconnectAware,
    work: Coroutine[Any, Any, T],
    poll_interval: float = POLL_INTERVAL_SECONDS,
) -> T:
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                logger.info("Client disconnected; request work cancelled")
                raise ClientDisconnectedError()
    finally:
        if not task.done():
            task.cancel()
