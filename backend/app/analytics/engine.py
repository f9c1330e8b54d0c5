from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, Protocol, runtime_checkable

from ..core.errors import Unauthenticated
from .moods import MOOD_LABELS, MoodClassifier, MoodLabel, empty_distribution, first_max
from .streaks import compute_streaks, day_key

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


@runtime_checkable
class EntryStore(Protocol):  # pragma: no cover - structural typing helper
    async def list_entries(
        self,
        owner_id: int,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        newest_first: bool = True,
    ) -> Sequence[Any]: ...


@dataclass
class WindowSnapshot:
    first_day: date
    last_day: date
    entries: list[Any]
    moods: list[MoodLabel]

    @property
    def date_range(self) -> dict[str, str]:
        return {"from": self.first_day.isoformat(), "to": self.last_day.isoformat()}

    def distribution(self) -> dict[str, int]:
        counts = empty_distribution()
        for mood in self.moods:
            counts[mood.value] += 1
        return counts


def _utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def _word_count(text: str | None) -> int:
    return len((text or "").split())


def _weekday_index(value: datetime) -> int:
    """0=Sunday .. 6=Saturday."""

    return day_key(value).isoweekday() % 7


def _parse_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class AnalyticsEngine:
    """Derive mood analytics from a user's journal entries.

    Nothing is cached: every view fetches the entries again and classifies
    them with the current keyword table. Calendar days and windows use UTC.
    """

    def __init__(
        self,
        store: EntryStore,
        *,
        classifier: MoodClassifier | None = None,
        clock: Callable[[], datetime] | None = None,
        default_days: int = 30,
        max_days: int = 365,
    ) -> None:
        self._store = store
        self._classifier = classifier or MoodClassifier()
        self._clock = clock or datetime.utcnow
        self._default_days = default_days
        self._max_days = max(max_days, 1)

    @property
    def classifier(self) -> MoodClassifier:
        return self._classifier

    def today(self) -> date:
        return day_key(self._clock())

    def normalize_days(self, value: object, default: int | None = None) -> int:
        fallback = default if default is not None else self._default_days
        days = _parse_int(value)
        if days is None or days < 1:
            days = fallback
        return min(days, self._max_days)

    @staticmethod
    def _require_owner(owner_id: object) -> int:
        if isinstance(owner_id, bool) or not isinstance(owner_id, int) or owner_id <= 0:
            raise Unauthenticated()
        return owner_id

    async def window_snapshot(self, owner_id: int, days: int) -> WindowSnapshot:
        """Entries of the last ``days`` calendar days (today included), newest first."""

        owner = self._require_owner(owner_id)
        last_day = self.today()
        first_day = last_day - timedelta(days=days - 1)
        start = datetime.combine(first_day, time.min)
        rows = await self._store.list_entries(owner, start=start, newest_first=True)
        entries = sorted(
            (entry for entry in rows if first_day <= day_key(entry.created_at) <= last_day),
            key=lambda entry: _utc_naive(entry.created_at),
            reverse=True,
        )
        moods = [self._classifier.classify(entry.content) for entry in entries]
        return WindowSnapshot(first_day=first_day, last_day=last_day, entries=entries, moods=moods)

    async def overview(self, owner_id: int) -> dict[str, Any]:
        owner = self._require_owner(owner_id)
        entries = list(await self._store.list_entries(owner, newest_first=True))

        distribution = empty_distribution()
        weekday_counts: Counter[int] = Counter()
        total_words = 0
        for entry in entries:
            distribution[self._classifier.classify(entry.content).value] += 1
            weekday_counts[_weekday_index(entry.created_at)] += 1
            total_words += _word_count(entry.content)

        total = len(entries)
        streaks = compute_streaks((entry.created_at for entry in entries), today=self.today())
        average_words = math.floor(total_words / total + 0.5) if total else 0
        busiest = first_max(weekday_counts, range(7), 0)

        return {
            "total_entries": total,
            "mood_distribution": distribution,
            "current_streak": streaks.current,
            "longest_streak": streaks.longest,
            "average_words": average_words,
            "most_productive_day": WEEKDAY_NAMES[busiest],
            "day_counts": [
                {"day": index, "name": WEEKDAY_NAMES[index], "count": weekday_counts.get(index, 0)}
                for index in range(7)
            ],
        }

    async def trends(self, owner_id: int, period: object = None) -> dict[str, Any]:
        days = self.normalize_days(period)
        snapshot = await self.window_snapshot(owner_id, days)

        buckets: dict[date, dict[str, Any]] = {}
        for offset in range(days):
            current = snapshot.first_day + timedelta(days=offset)
            buckets[current] = {"date": current.isoformat(), **empty_distribution(), "total": 0}

        for entry, mood in zip(snapshot.entries, snapshot.moods, strict=True):
            bucket = buckets[day_key(entry.created_at)]
            bucket[mood.value] += 1
            bucket["total"] += 1

        return {"trends": list(buckets.values()), "period": days}

    async def calendar(
        self,
        owner_id: int,
        month: object = None,
        year: object = None,
    ) -> dict[str, Any]:
        owner = self._require_owner(owner_id)
        start, end = self._month_bounds(month, year)
        rows = await self._store.list_entries(owner, start=start, end=end, newest_first=True)
        entries = sorted(rows, key=lambda entry: _utc_naive(entry.created_at), reverse=True)

        # newest entry of a day decides the day's mood
        by_day: dict[str, dict[str, Any]] = {}
        for entry in entries:
            key = day_key(entry.created_at).isoformat()
            if key in by_day:
                continue
            by_day[key] = {
                "date": key,
                "mood": self._classifier.classify(entry.content).value,
                "entry_id": entry.id,
                "title": entry.title,
                "has_entry": True,
            }

        return {"mood_calendar": list(by_day.values()), "total_entries": len(entries)}

    async def stats(self, owner_id: int, days: object = None) -> dict[str, Any]:
        window = self.normalize_days(days)
        snapshot = await self.window_snapshot(owner_id, window)

        distribution = snapshot.distribution()
        daily: dict[str, dict[str, int]] = {}
        for entry, mood in sorted(
            zip(snapshot.entries, snapshot.moods, strict=True),
            key=lambda pair: _utc_naive(pair[0].created_at),
        ):
            key = day_key(entry.created_at).isoformat()
            day_counts = daily.setdefault(key, empty_distribution())
            day_counts[mood.value] += 1

        dominant = first_max(
            distribution,
            [label.value for label in MOOD_LABELS],
            MoodLabel.NEUTRAL.value,
        )
        return {
            "mood_distribution": distribution,
            "dominant_mood": dominant,
            "total_entries": len(snapshot.entries),
            "date_range": snapshot.date_range,
            "daily_moods": daily,
        }

    async def activity(self, owner_id: int) -> dict[str, Any]:
        owner = self._require_owner(owner_id)
        entries = await self._store.list_entries(owner, newest_first=False)

        by_day: dict[date, dict[str, Any]] = {}
        for entry in entries:
            current = day_key(entry.created_at)
            item = by_day.setdefault(
                current,
                {"date": current.isoformat(), "count": 0, "word_count": 0},
            )
            item["count"] += 1
            item["word_count"] += _word_count(entry.content)

        return {"activity": [by_day[key] for key in sorted(by_day)]}

    @staticmethod
    def _month_bounds(month: object, year: object) -> tuple[datetime | None, datetime | None]:
        month_value = _parse_int(month)
        year_value = _parse_int(year)
        if month_value is None or year_value is None:
            return None, None
        if not 1 <= month_value <= 12 or not 1 <= year_value <= 9998:
            return None, None
        start = datetime(year_value, month_value, 1)
        if month_value == 12:
            end = datetime(year_value + 1, 1, 1)
        else:
            end = datetime(year_value, month_value + 1, 1)
        return start, end


__all__ = ["AnalyticsEngine", "EntryStore", "WEEKDAY_NAMES", "WindowSnapshot"]
