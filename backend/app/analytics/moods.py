"""Keyword based mood classification.

Moods are never stored. Every read classifies the entry text again, so a
change to the keyword table applies to all historical entries at once.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

K = TypeVar("K")


class MoodLabel(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    GRATEFUL = "grateful"
    ANGRY = "angry"
    ANXIOUS = "anxious"
    CALM = "calm"
    ENERGETIC = "energetic"
    TIRED = "tired"
    NEUTRAL = "neutral"


MOOD_LABELS: tuple[MoodLabel, ...] = tuple(MoodLabel)


@dataclass(frozen=True)
class MoodKeywordTable:
    """Ordered, immutable mapping of mood label to substring keywords.

    Declaration order is the tie-break order used by the classifier.
    ``neutral`` is the zero-match fallback and may not carry keywords.
    """

    entries: tuple[tuple[MoodLabel, tuple[str, ...]], ...]

    def __post_init__(self) -> None:
        seen: set[MoodLabel] = set()
        normalized: list[tuple[MoodLabel, tuple[str, ...]]] = []
        for raw_label, raw_keywords in self.entries:
            label = MoodLabel(raw_label)
            if label in seen:
                raise ValueError(f"duplicate mood label {label.value!r}")
            seen.add(label)
            keywords = tuple(dict.fromkeys(k.strip().lower() for k in raw_keywords if k.strip()))
            if label is MoodLabel.NEUTRAL:
                if keywords:
                    raise ValueError("neutral is the fallback mood and cannot have keywords")
                continue
            if not keywords:
                raise ValueError(f"mood {label.value!r} needs at least one keyword")
            normalized.append((label, keywords))
        object.__setattr__(self, "entries", tuple(normalized))

    @classmethod
    def from_mapping(cls, mapping: Mapping[MoodLabel | str, Iterable[str]]) -> MoodKeywordTable:
        return cls(tuple((MoodLabel(label), tuple(words)) for label, words in mapping.items()))

    def __iter__(self) -> Iterator[tuple[MoodLabel, tuple[str, ...]]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def labels(self) -> tuple[MoodLabel, ...]:
        return tuple(label for label, _ in self.entries)

    def keywords_for(self, label: MoodLabel) -> tuple[str, ...]:
        for candidate, keywords in self.entries:
            if candidate is label:
                return keywords
        return ()


DEFAULT_MOOD_TABLE = MoodKeywordTable.from_mapping(
    {
        MoodLabel.HAPPY: (
            "happy",
            "joy",
            "joyful",
            "excited",
            "great",
            "wonderful",
            "amazing",
            "fantastic",
            "delighted",
            "cheerful",
            "pleased",
            "content",
        ),
        MoodLabel.SAD: (
            "sad",
            "down",
            "upset",
            "depressed",
            "unhappy",
            "miserable",
            "gloomy",
            "melancholy",
            "blue",
            "disappointed",
        ),
        MoodLabel.GRATEFUL: (
            "grateful",
            "thankful",
            "blessed",
            "appreciate",
            "fortunate",
            "luck",
        ),
        MoodLabel.ANGRY: (
            "angry",
            "frustrated",
            "mad",
            "annoyed",
            "irritated",
            "furious",
            "rage",
        ),
        MoodLabel.ANXIOUS: (
            "anxious",
            "worried",
            "nervous",
            "stressed",
            "tense",
            "uneasy",
            "concerned",
            "overwhelmed",
        ),
        MoodLabel.CALM: ("calm", "peaceful", "relaxed", "serene", "tranquil", "composed"),
        MoodLabel.ENERGETIC: ("energetic", "motivated", "productive", "active", "driven"),
        MoodLabel.TIRED: ("tired", "exhausted", "fatigued", "drained", "weary", "sleepy"),
    }
)


def first_max(counts: Mapping[K, int], order: Sequence[K], default: K) -> K:
    """Return the first key in ``order`` holding the strictly highest count.

    Every maximum in the analytics code goes through here so ties resolve the
    same way everywhere. All-zero (or empty) counts yield ``default``.
    """

    best: K | None = None
    best_count = 0
    for key in order:
        count = counts.get(key, 0)
        if count > best_count:
            best = key
            best_count = count
    return default if best is None else best


class MoodClassifier:
    """Scores text against a keyword table and picks one mood label."""

    def __init__(self, table: MoodKeywordTable = DEFAULT_MOOD_TABLE) -> None:
        self._table = table

    @property
    def table(self) -> MoodKeywordTable:
        return self._table

    def scores(self, content: str | None) -> dict[MoodLabel, int]:
        lowered = (content or "").lower()
        return {
            label: sum(1 for keyword in keywords if keyword in lowered)
            for label, keywords in self._table
        }

    def classify(self, content: str | None) -> MoodLabel:
        if not content:
            return MoodLabel.NEUTRAL
        return first_max(self.scores(content), self._table.labels, MoodLabel.NEUTRAL)


_default_classifier = MoodClassifier()


def classify(content: str | None) -> MoodLabel:
    return _default_classifier.classify(content)


def empty_distribution() -> dict[str, int]:
    return {label.value: 0 for label in MOOD_LABELS}


__all__ = [
    "DEFAULT_MOOD_TABLE",
    "MOOD_LABELS",
    "MoodClassifier",
    "MoodKeywordTable",
    "MoodLabel",
    "classify",
    "empty_distribution",
    "first_max",
]
