from __future__ import annotations

import asyncio

import pytest

from backend.app.utils.timeouts import call_with_timeout, retry_async


@pytest.mark.anyio
async def test_retry_async_success() -> None:
    calls = {"count": 0}

    async def _fn() -> str:
        calls["count"] += 1
        return "ok"

    result = await retry_async(_fn, attempts=3, delay=0.01)

    assert result == "ok"
    assert calls["count"] == 1


@pytest.mark.anyio
async def test_retry_async_exhausts_attempts() -> None:
    async def _fn() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await retry_async(_fn, attempts=2, delay=0)


@pytest.mark.anyio
async def test_call_with_timeout_retries_after_timeout() -> None:
    calls = {"count": 0}

    async def _fn() -> str:
        calls["count"] += 1
        if calls["count"] == 1:
            await asyncio.sleep(1)
        return "late but fine"

    result = await call_with_timeout(_fn, timeout=0.05, attempts=2)

    assert result == "late but fine"
    assert calls["count"] == 2


@pytest.mark.anyio
async def test_call_with_timeout_raises_when_exhausted() -> None:
    async def _slow() -> str:
        await asyncio.sleep(1)
        return "never"

    with pytest.raises(asyncio.TimeoutError):
        await call_with_timeout(_slow, timeout=0.01, attempts=0)
