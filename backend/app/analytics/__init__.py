"""Mood classification, streaks and analytics views over journal entries."""

from .engine import WEEKDAY_NAMES, AnalyticsEngine, EntryStore, WindowSnapshot
from .moods import (
    DEFAULT_MOOD_TABLE,
    MOOD_LABELS,
    MoodClassifier,
    MoodKeywordTable,
    MoodLabel,
    classify,
    first_max,
)
from .streaks import StreakState, compute_streaks

__all__ = [
    "DEFAULT_MOOD_TABLE",
    "MOOD_LABELS",
    "WEEKDAY_NAMES",
    "AnalyticsEngine",
    "EntryStore",
    "MoodClassifier",
    "MoodKeywordTable",
    "MoodLabel",
    "StreakState",
    "WindowSnapshot",
    "classify",
    "compute_streaks",
    "first_max",
]
