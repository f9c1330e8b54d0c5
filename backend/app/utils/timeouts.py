from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


async def retry_async(func: Callable[[], Awaitable[T]], attempts: int, delay: float) -> T:
    last_exc: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except Exception as exc:
            last_exc = exc
            if attempt < attempts:
                await asyncio.sleep(delay)
    if last_exc is None:
        raise RuntimeError("retry_async failed without exception")
    raise last_exc


async def call_with_timeout(
    func: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    attempts: int = 1,
    delay: float = 0.0,
) -> T:
    """Run ``func`` with a per-attempt timeout, retrying on any failure."""

    async def _attempt() -> T:
        return await asyncio.wait_for(func(), timeout=timeout)

    return await retry_async(_attempt, attempts=max(attempts, 1), delay=delay)
