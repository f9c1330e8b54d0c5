from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints

from .analytics import DateRange, MoodDistribution
from .journal import JournalEntryModel

Note = Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)]


class MoodLogRequest(BaseModel):
    mood: Literal[
        "happy",
        "sad",
        "grateful",
        "angry",
        "anxious",
        "calm",
        "energetic",
        "tired",
        "neutral",
    ]
    note: Note | None = None


class MoodLogResponse(BaseModel):
    entry: JournalEntryModel
    mood: str


class CalendarDay(BaseModel):
    date: str
    mood: str
    entry_id: int
    title: str
    has_entry: bool = True


class CalendarResponse(BaseModel):
    mood_calendar: list[CalendarDay]
    total_entries: int


class StatsResponse(BaseModel):
    mood_distribution: MoodDistribution
    dominant_mood: str
    total_entries: int
    date_range: DateRange
    daily_moods: dict[str, MoodDistribution] = Field(default_factory=dict)


class InsightsResponse(BaseModel):
    insights: str
    source: Literal["ai", "fallback", "empty"]
    mood_distribution: dict[str, int]
    total_entries: int
    analyzed_period: str
    date_range: DateRange
