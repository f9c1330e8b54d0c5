from __future__ import annotations

import logging
from typing import Any, Protocol

from ..analytics.engine import AnalyticsEngine
from ..analytics.moods import MOOD_LABELS, MoodLabel, first_max
from ..metrics import AI_REQUESTS
from ..utils.timeouts import call_with_timeout
from .templates import EMPTY_INSIGHT, build_fallback_insight, build_insight_prompt

logger = logging.getLogger(__name__)

INSIGHT_LOOKBACK_DAYS = 30
SAMPLE_SIZE = 5
EXCERPT_CHARS = 200


class CompletionClient(Protocol):  # pragma: no cover - structural typing helper
    async def complete(self, *, model: str, prompt: str, max_tokens: int) -> str: ...


class MoodInsightGenerator:
    """Narrative mood insight from a language model with a rule-based fallback."""

    def __init__(
        self,
        engine: AnalyticsEngine,
        client: CompletionClient | None,
        *,
        model: str,
        enabled: bool = True,
        timeout: float = 15.0,
        attempts: int = 1,
        max_tokens: int = 500,
        lookback_days: int = INSIGHT_LOOKBACK_DAYS,
    ) -> None:
        self._engine = engine
        self._client = client if enabled else None
        self._model = model
        self._timeout = timeout
        self._attempts = attempts
        self._max_tokens = max_tokens
        self._lookback_days = lookback_days

    async def generate(self, owner_id: int) -> dict[str, Any]:
        snapshot = await self._engine.window_snapshot(owner_id, self._lookback_days)
        period = f"{snapshot.first_day.isoformat()} to {snapshot.last_day.isoformat()}"

        if not snapshot.entries:
            return {
                "insights": EMPTY_INSIGHT,
                "source": "empty",
                "mood_distribution": {},
                "total_entries": 0,
                "analyzed_period": period,
                "date_range": snapshot.date_range,
            }

        counts = snapshot.distribution()
        distribution = {mood: count for mood, count in counts.items() if count}
        total = len(snapshot.entries)
        samples = [
            (entry.title, (entry.content or "")[:EXCERPT_CHARS])
            for entry in snapshot.entries[:SAMPLE_SIZE]
        ]

        text, source = await self._ask_model(owner_id, distribution, samples, total)
        if text is None:
            dominant = first_max(
                counts,
                [label.value for label in MOOD_LABELS],
                MoodLabel.NEUTRAL.value,
            )
            text = build_fallback_insight(
                distribution,
                total=total,
                days=self._lookback_days,
                dominant=dominant,
            )
        AI_REQUESTS.labels(source=source).inc()

        return {
            "insights": text,
            "source": source,
            "mood_distribution": distribution,
            "total_entries": total,
            "analyzed_period": period,
            "date_range": snapshot.date_range,
        }

    async def _ask_model(
        self,
        owner_id: int,
        distribution: dict[str, int],
        samples: list[tuple[str, str]],
        total: int,
    ) -> tuple[str | None, str]:
        if self._client is None:
            return None, "fallback"

        prompt = build_insight_prompt(
            distribution,
            samples,
            total=total,
            days=self._lookback_days,
        )
        client = self._client
        try:
            text = await call_with_timeout(
                lambda: client.complete(
                    model=self._model,
                    prompt=prompt,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout,
                attempts=self._attempts,
            )
        except Exception as exc:
            logger.warning(
                "AI insight request failed, using fallback: %s",
                exc,
                extra={"extra_fields": {"user_id": owner_id, "model": self._model}},
            )
            return None, "fallback"
        return text, "ai"


__all__ = ["INSIGHT_LOOKBACK_DAYS", "MoodInsightGenerator"]
