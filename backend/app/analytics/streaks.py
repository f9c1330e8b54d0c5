from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from itertools import pairwise

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StreakState:
    current: int = 0
    longest: int = 0


def day_key(value: datetime | date) -> date:
    """Calendar day of a timestamp in UTC; naive datetimes are taken as UTC."""

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def compute_current_streak(days: set[date], today: date) -> int:
    """Consecutive days ending today, or ending yesterday when today is still empty."""

    cursor = today if today in days else today - ONE_DAY
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY
    return streak


def compute_longest_streak(days: Iterable[date]) -> int:
    ordered = sorted(set(days))
    if not ordered:
        return 0
    streak = 1
    longest = 1
    for previous, current in pairwise(ordered):
        if current - previous == ONE_DAY:
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 1
    return longest


def compute_streaks(
    entry_dates: Iterable[datetime | date],
    *,
    today: date | None = None,
) -> StreakState:
    days = {day_key(value) for value in entry_dates}
    if not days:
        return StreakState()
    reference = today if today is not None else datetime.now(UTC).date()
    return StreakState(
        current=compute_current_streak(days, reference),
        longest=compute_longest_streak(days),
    )


__all__ = [
    "StreakState",
    "compute_current_streak",
    "compute_longest_streak",
    "compute_streaks",
    "day_key",
]
