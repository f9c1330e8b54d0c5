from __future__ import annotations

from collections.abc import Mapping, Sequence

EMPTY_INSIGHT = "Start journaling to receive personalized mood insights!"

INSIGHT_PROMPT = """As a compassionate mental health assistant, analyze the following journal data from the last {days} days and provide supportive, actionable insights:

Mood Distribution: {mood_summary}
Total Entries: {total}

Recent Entry Samples:
{samples}

Provide:
1. A brief overview of their emotional patterns
2. Positive observations and strengths
3. Areas that might need attention
4. 2-3 practical suggestions for emotional well-being
5. Encouraging words

Keep the response warm, supportive, and under 300 words."""

FALLBACK_INSIGHT = """Based on your {total} journal entries over the last {days} days, here's what we observed:

**Emotional Patterns:** {mood_summary}

Your most frequent mood has been **{dominant}**. This shows you've been actively reflecting on your experiences.

**Positive Observations:** You're maintaining a consistent journaling practice, which is excellent for mental health awareness and emotional processing.

**Suggestions for Well-being:**
1. Continue your journaling routine - consistency is key
2. Try to identify patterns between your daily activities and moods
3. Practice gratitude by noting positive moments each day

Keep up the great work with your self-reflection journey!"""


def mood_summary(distribution: Mapping[str, int]) -> str:
    """``happy: 2 entries, sad: 1 entries`` for the non-zero moods, in label order."""

    parts = [f"{mood}: {count} entries" for mood, count in distribution.items() if count]
    return ", ".join(parts) or "no moods detected"


def build_insight_prompt(
    distribution: Mapping[str, int],
    samples: Sequence[tuple[str, str]],
    *,
    total: int,
    days: int,
) -> str:
    sample_lines = "\n".join(
        f"{index}. {title}: {excerpt}..." for index, (title, excerpt) in enumerate(samples, start=1)
    )
    return INSIGHT_PROMPT.format(
        days=days,
        mood_summary=mood_summary(distribution),
        total=total,
        samples=sample_lines,
    )


def build_fallback_insight(
    distribution: Mapping[str, int],
    *,
    total: int,
    days: int,
    dominant: str,
) -> str:
    return FALLBACK_INSIGHT.format(
        total=total,
        days=days,
        mood_summary=mood_summary(distribution),
        dominant=dominant,
    )
