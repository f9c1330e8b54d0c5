from __future__ import annotations

import time

from backend.app.services.ratelimit import RateLimiter, RateRule


def test_rate_limiter_allows_within_limit() -> None:
    limiter = RateLimiter()
    for _ in range(3):
        assert limiter.allow("login:127.0.0.1", limit=3, window_seconds=1)


def test_rate_limiter_blocks_after_limit(monkeypatch) -> None:
    limiter = RateLimiter()
    monotonic_values = iter([0.0, 0.1, 0.2, 0.3])
    monkeypatch.setattr(time, "monotonic", lambda: next(monotonic_values))
    assert limiter.allow("journal:1", limit=2, window_seconds=1)
    assert limiter.allow("journal:1", limit=2, window_seconds=1)
    assert limiter.allow("journal:1", limit=2, window_seconds=1) is False
    assert limiter.allow("journal:2", limit=2, window_seconds=1)


def test_rate_limiter_window_slides(monkeypatch) -> None:
    limiter = RateLimiter()
    monotonic_values = iter([0.0, 0.5, 1.6])
    monkeypatch.setattr(time, "monotonic", lambda: next(monotonic_values))
    assert limiter.allow("signup:host", limit=1, window_seconds=1)
    assert limiter.allow("signup:host", limit=1, window_seconds=1) is False
    assert limiter.allow("signup:host", limit=1, window_seconds=1)


def test_rate_limiter_retry_after(monkeypatch) -> None:
    limiter = RateLimiter()
    rule = RateRule(limit=1, window_seconds=60)
    monotonic_values = iter([0.0, 10.0, 10.0, 61.0])
    monkeypatch.setattr(time, "monotonic", lambda: next(monotonic_values))
    assert limiter.check("login:host:a@b.c", rule)
    assert limiter.retry_after("login:host:a@b.c", rule) == 50
    assert limiter.check("login:host:a@b.c", rule) is False
    assert limiter.retry_after("login:host:a@b.c", rule) == 0


def test_rate_limiter_drops_expired_keys(monkeypatch) -> None:
    limiter = RateLimiter()
    rule = RateRule(limit=1, window_seconds=60)
    monotonic_values = iter([0.0, 100.0, 100.0])
    monkeypatch.setattr(time, "monotonic", lambda: next(monotonic_values))
    assert limiter.check("login:host:a@b.c", rule)
    assert len(limiter) == 1
    assert limiter.retry_after("login:host:a@b.c", rule) == 0
    assert len(limiter) == 0
    assert limiter.retry_after("login:host:new@b.c", rule) == 0
    assert len(limiter) == 0


def test_rate_limiter_sweeps_idle_keys(monkeypatch) -> None:
    limiter = RateLimiter(sweep_every=4)
    clock = {"now": 0.0}
    monkeypatch.setattr(time, "monotonic", lambda: clock["now"])
    for index in range(3):
        assert limiter.allow(f"login:host:user{index}@b.c", limit=10, window_seconds=60)
    assert len(limiter) == 3

    clock["now"] = 120.0
    assert limiter.allow("login:host:fresh@b.c", limit=10, window_seconds=60)
    assert len(limiter) == 1
