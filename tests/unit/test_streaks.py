from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from backend.app.analytics.streaks import (
    StreakState,
    compute_current_streak,
    compute_longest_streak,
    compute_streaks,
    day_key,
)

TODAY = date(2024, 5, 15)


def _days(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=offset) for offset in offsets]


def test_no_entries() -> None:
    assert compute_streaks([], today=TODAY) == StreakState(0, 0)


def test_unbroken_run_ending_today() -> None:
    for length in (1, 2, 7, 30):
        state = compute_streaks(_days(*range(length)), today=TODAY)
        assert state.current == state.longest == length


def test_run_ending_yesterday_still_counts() -> None:
    state = compute_streaks(_days(1, 2, 3), today=TODAY)
    assert state == StreakState(current=3, longest=3)


def test_gap_today_and_yesterday_resets_current() -> None:
    state = compute_streaks(_days(2, 3, 4, 5), today=TODAY)
    assert state.current == 0
    assert state.longest == 4


def test_only_the_starting_day_gets_grace() -> None:
    state = compute_streaks(_days(0, 1, 3), today=TODAY)
    assert state == StreakState(current=2, longest=2)


def test_duplicates_and_times_collapse_to_days() -> None:
    stamps = [
        datetime(2024, 5, 15, 8, 0),
        datetime(2024, 5, 15, 22, 30),
        datetime(2024, 5, 14, 0, 1),
    ]
    assert compute_streaks(stamps, today=TODAY) == StreakState(current=2, longest=2)


def test_aware_timestamps_use_utc_day() -> None:
    plus_five = timezone(timedelta(hours=5))
    # 02:00 at +05:00 is still the previous UTC day
    assert day_key(datetime(2024, 5, 15, 2, 0, tzinfo=plus_five)) == date(2024, 5, 14)
    assert day_key(date(2024, 5, 1)) == date(2024, 5, 1)


def test_longest_streak_over_several_runs() -> None:
    days = _days(20, 19, 18, 17, 10, 9, 1)
    assert compute_longest_streak(days) == 4
    assert compute_longest_streak([]) == 0
    assert compute_current_streak(set(days), TODAY) == 1
