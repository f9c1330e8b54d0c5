from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MoodDistribution(BaseModel):
    happy: int = 0
    sad: int = 0
    grateful: int = 0
    angry: int = 0
    anxious: int = 0
    calm: int = 0
    energetic: int = 0
    tired: int = 0
    neutral: int = 0


class DayCount(BaseModel):
    day: int
    name: str
    count: int


class OverviewResponse(BaseModel):
    total_entries: int
    mood_distribution: MoodDistribution
    current_streak: int
    longest_streak: int
    average_words: int
    most_productive_day: str
    day_counts: list[DayCount]


class TrendBucket(MoodDistribution):
    date: str
    total: int = 0


class TrendsResponse(BaseModel):
    trends: list[TrendBucket]
    period: int


class ActivityDay(BaseModel):
    date: str
    count: int
    word_count: int


class ActivityResponse(BaseModel):
    activity: list[ActivityDay]


class DateRange(BaseModel):
    from_: str = Field(alias="from")
    to: str

    model_config = ConfigDict(populate_by_name=True)
