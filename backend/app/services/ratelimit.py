from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True)
class RateRule:
    limit: int
    window_seconds: float


SIGNUP_RULE = RateRule(limit=10, window_seconds=3600)
LOGIN_RULE = RateRule(limit=10, window_seconds=60)
ENTRY_CREATE_RULE = RateRule(limit=20, window_seconds=60)


class RateLimiter:
    """In-memory sliding window rate limiter, one deque of hit times per key.

    Keys whose hits have all expired are dropped, both when they are touched
    again and by a periodic sweep, so cycling through fresh keys (emails on
    login, for instance) does not grow the map without bound.
    """

    def __init__(self, sweep_every: int = 1000) -> None:
        self._buckets: dict[str, deque[float]] = {}
        self._windows: dict[str, float] = {}
        self._sweep_every = max(sweep_every, 1)
        self._calls = 0

    def __len__(self) -> int:
        return len(self._buckets)

    def _prune(self, key: str, window_seconds: float, now: float) -> deque[float]:
        bucket = self._buckets.get(key)
        if bucket is None:
            return deque()
        while bucket and now - bucket[0] > window_seconds:
            bucket.popleft()
        if not bucket:
            self._forget(key)
        return bucket

    def _forget(self, key: str) -> None:
        self._buckets.pop(key, None)
        self._windows.pop(key, None)

    def _sweep(self, now: float) -> None:
        for key in list(self._buckets):
            self._prune(key, self._windows[key], now)

    def allow(self, key: str, limit: int, window_seconds: float) -> bool:
        now = time.monotonic()
        self._calls += 1
        if self._calls % self._sweep_every == 0:
            self._sweep(now)
        bucket = self._prune(key, window_seconds, now)
        if len(bucket) >= limit:
            return False
        bucket.append(now)
        self._buckets[key] = bucket
        self._windows[key] = max(window_seconds, self._windows.get(key, 0.0))
        return True

    def check(self, key: str, rule: RateRule) -> bool:
        return self.allow(key, rule.limit, rule.window_seconds)

    def retry_after(self, key: str, rule: RateRule) -> int:
        """Whole seconds until ``key`` gets a free slot under ``rule`` (0 if it has one)."""

        now = time.monotonic()
        bucket = self._prune(key, rule.window_seconds, now)
        if len(bucket) < rule.limit:
            return 0
        return max(math.ceil(rule.window_seconds - (now - bucket[0])), 1)


__all__ = [
    "ENTRY_CREATE_RULE",
    "LOGIN_RULE",
    "SIGNUP_RULE",
    "RateLimiter",
    "RateRule",
]
