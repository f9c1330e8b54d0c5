from __future__ import annotations

import pytest

from backend.app.analytics.moods import (
    DEFAULT_MOOD_TABLE,
    MOOD_LABELS,
    MoodClassifier,
    MoodKeywordTable,
    MoodLabel,
    classify,
    empty_distribution,
    first_max,
)


@pytest.mark.parametrize("content", ["", None, "Went to the store", "1234 ... !!"])
def test_no_keyword_match_is_neutral(content) -> None:
    assert classify(content) is MoodLabel.NEUTRAL


def test_single_mood_keywords_classify_to_that_mood() -> None:
    for label, keywords in DEFAULT_MOOD_TABLE:
        assert classify(f"Today I felt {keywords[0]}.") is label


def test_matching_is_case_insensitive_substring() -> None:
    assert classify("EXHAUSTED after the trip") is MoodLabel.TIRED
    assert classify("so unhappy") is MoodLabel.HAPPY  # "happy" and "unhappy" both hit, happy first


def test_tie_goes_to_first_declared_mood() -> None:
    content = "I am so happy and grateful today"
    results = {classify(content) for _ in range(5)}
    assert results == {MoodLabel.HAPPY}


def test_strictly_highest_count_wins() -> None:
    assert classify("happy but tired, exhausted and drained") is MoodLabel.TIRED


def test_keyword_counted_once() -> None:
    classifier = MoodClassifier()
    scores = classifier.scores("calm calm calm but worried and nervous")
    assert scores[MoodLabel.CALM] == 1
    assert scores[MoodLabel.ANXIOUS] == 2
    assert classifier.classify("calm calm calm but worried and nervous") is MoodLabel.ANXIOUS


def test_custom_table_changes_order_and_words() -> None:
    table = MoodKeywordTable.from_mapping(
        {
            "grateful": ["Thanks"],
            "happy": ["thanks", "yay"],
        }
    )
    classifier = MoodClassifier(table)
    assert table.labels == (MoodLabel.GRATEFUL, MoodLabel.HAPPY)
    assert table.keywords_for(MoodLabel.GRATEFUL) == ("thanks",)
    assert classifier.classify("thanks!") is MoodLabel.GRATEFUL
    assert classifier.classify("Thanks, yay") is MoodLabel.HAPPY
    assert classifier.classify("I am sad") is MoodLabel.NEUTRAL


@pytest.mark.parametrize(
    "mapping",
    [
        {"neutral": ["meh"]},
        {"happy": []},
        {"happy": ["  "]},
        {"mystery": ["x"]},
    ],
)
def test_invalid_tables_are_rejected(mapping) -> None:
    with pytest.raises(ValueError):
        MoodKeywordTable.from_mapping(mapping)


def test_duplicate_labels_are_rejected() -> None:
    with pytest.raises(ValueError):
        MoodKeywordTable(((MoodLabel.SAD, ("sad",)), ("sad", ("blue",))))


def test_default_table_order_and_size() -> None:
    assert DEFAULT_MOOD_TABLE.labels == MOOD_LABELS[:-1]
    assert len(DEFAULT_MOOD_TABLE) == 8
    assert DEFAULT_MOOD_TABLE.keywords_for(MoodLabel.NEUTRAL) == ()


def test_first_max_rules() -> None:
    assert first_max({"a": 2, "b": 2, "c": 1}, ["a", "b", "c"], "z") == "a"
    assert first_max({"a": 2, "b": 2, "c": 1}, ["b", "a", "c"], "z") == "b"
    assert first_max({"a": 0, "b": 0}, ["a", "b"], "z") == "z"
    assert first_max({}, range(7), 0) == 0


def test_empty_distribution_lists_every_label() -> None:
    distribution = empty_distribution()
    assert list(distribution) == [label.value for label in MOOD_LABELS]
    assert set(distribution.values()) == {0}
