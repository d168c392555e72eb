"""Unit tests for the progress aggregation engine (services/aggregation.py).

Covers chapter / subject / overall percentages, the completeness predicate,
expected progress by date, days remaining, pace classification, progress
tiers and the unstarted-chapter list.  All functions are pure; no fixtures
beyond the sample builders are needed.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from study_tracker.services.aggregation import (
    Pace,
    ProgressTier,
    chapter_completion_percent,
    days_remaining,
    expected_progress_percent,
    is_chapter_complete,
    overall_completion_percent,
    pace_classification,
    parse_config_date,
    progress_tier,
    round_half_away,
    subject_completion_percent,
    unstarted_chapters,
)
from tests.fixtures.sample_subjects import make_chapter, make_subject, sample_subjects


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 1), (1.5, 2), (2.5, 3), (71.5, 72), (-2.5, -3), (42.857, 43), (0.49, 0)],
)
def test_round_half_away_breaks_ties_away_from_zero(value, expected):
    """Ties round away from zero, unlike Python's banker's ``round``."""
    assert round_half_away(value) == expected, (
        f"round_half_away({value}) should be {expected}, got {round_half_away(value)}"
    )


# ---------------------------------------------------------------------------
# Chapter percent and completeness
# ---------------------------------------------------------------------------


def test_six_ticks_without_revision_is_86_percent():
    """Revision is the seventh criterion: six ticks and no revision is not done."""
    chapter = make_chapter(ticks=6, revision_count=0)

    assert chapter_completion_percent(chapter) == 86, (
        f"Expected 86, got {chapter_completion_percent(chapter)}"
    )
    assert is_chapter_complete(chapter) is False


def test_all_seven_criteria_is_100_percent_and_complete():
    chapter = make_chapter(ticks=6, revision_count=3)

    assert chapter_completion_percent(chapter) == 100
    assert is_chapter_complete(chapter) is True


def test_revision_alone_counts_one_seventh():
    """A revised chapter with no ticks earns 1/7 → 14 %."""
    chapter = make_chapter(ticks=0, revision_count=1)

    assert chapter_completion_percent(chapter) == 14, (
        f"Expected 14, got {chapter_completion_percent(chapter)}"
    )


@pytest.mark.parametrize("ticks", range(7))
@pytest.mark.parametrize("revision_count", [0, 1, 5])
def test_chapter_percent_in_range_and_agrees_with_completeness(ticks, revision_count):
    """Percent is within 0..100, and only a complete chapter reaches 100."""
    chapter = make_chapter(ticks=ticks, revision_count=revision_count)
    percent = chapter_completion_percent(chapter)

    assert 0 <= percent <= 100, f"Percent out of range: {percent}"
    assert is_chapter_complete(chapter) == (percent == 100), (
        f"ticks={ticks} revisions={revision_count}: complete="
        f"{is_chapter_complete(chapter)} but percent={percent}"
    )


# ---------------------------------------------------------------------------
# Subject and overall
# ---------------------------------------------------------------------------


def test_subject_without_chapters_is_zero():
    assert subject_completion_percent(make_subject(chapters=[])) == 0


def test_no_subjects_is_zero_overall():
    assert overall_completion_percent([]) == 0


def test_subject_percent_is_rounded_mean_of_chapters():
    """(100 + 43) / 2 = 71.5 → 72 with half-away rounding."""
    subject = sample_subjects()[0]

    assert subject_completion_percent(subject) == 72, (
        f"Expected 72, got {subject_completion_percent(subject)}"
    )


def test_overall_is_mean_of_subjects_not_of_chapters():
    """Each subject weighs the same regardless of its chapter count.

    Subject A has one complete chapter (100 %); subject B has three
    unstarted chapters (0 %).  Mean-of-means gives 50, whereas a chapter-
    weighted mean would give 25.
    """
    subjects = [
        make_subject("a", "A", [make_chapter("a1", ticks=6, revision_count=1)]),
        make_subject(
            "b", "B", [make_chapter("b1"), make_chapter("b2"), make_chapter("b3")]
        ),
    ]

    assert overall_completion_percent(subjects) == 50, (
        f"Expected 50, got {overall_completion_percent(subjects)}"
    )


def test_empty_subject_pulls_overall_down():
    """A subject with no chapters still counts, at 0 %."""
    subjects = [
        make_subject("a", "A", [make_chapter("a1", ticks=6, revision_count=1)]),
        make_subject("b", "B", []),
    ]

    assert overall_completion_percent(subjects) == 50


# ---------------------------------------------------------------------------
# Expected progress and days remaining
# ---------------------------------------------------------------------------


def test_expected_progress_is_elapsed_share_of_window():
    """Day 25 of a 100-day window → 25 %."""
    start = date(2024, 1, 1)
    target = date(2024, 4, 10)  # 100 days later

    assert expected_progress_percent(start, target, date(2024, 1, 26)) == 25


def test_expected_progress_clamps_before_start_and_after_target():
    start, target = date(2024, 3, 1), date(2024, 4, 1)

    assert expected_progress_percent(start, target, date(2024, 2, 1)) == 0, (
        "Before the window starts expected progress must clamp to 0"
    )
    assert expected_progress_percent(start, target, date(2024, 6, 1)) == 100, (
        "After the target date expected progress must clamp to 100"
    )


@pytest.mark.parametrize(
    "start, target",
    [
        (None, date(2024, 4, 1)),
        (date(2024, 3, 1), None),
        (date(2024, 4, 1), date(2024, 4, 1)),
        (date(2024, 5, 1), date(2024, 4, 1)),
    ],
)
def test_expected_progress_is_none_without_a_valid_window(start, target):
    """Missing dates and empty or inverted windows have no expectation."""
    assert expected_progress_percent(start, target, date(2024, 3, 15)) is None


def test_expected_progress_ignores_time_of_day():
    start, target = date(2024, 1, 1), date(2024, 1, 11)
    late_evening = datetime(2024, 1, 6, 23, 59)

    assert expected_progress_percent(start, target, late_evening) == 50


def test_days_remaining_today_tomorrow_and_overdue():
    today = date(2024, 3, 15)

    assert days_remaining(today, today) == 0, "Due today must be 0 days remaining"
    assert days_remaining(date(2024, 3, 16), today) == 1
    assert days_remaining(date(2024, 3, 14), today) == -1, "Yesterday's target is overdue by 1"
    assert days_remaining(None, today) is None


# ---------------------------------------------------------------------------
# Pace and tiers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "actual, expected, pace",
    [
        (60, 55, Pace.AHEAD),
        (60, 61, Pace.ON_TRACK),
        (50, 54, Pace.BEHIND),
        (53, 50, Pace.AHEAD),
        (47, 50, Pace.BEHIND),
        (52, 50, Pace.ON_TRACK),
        (48, 50, Pace.ON_TRACK),
    ],
)
def test_pace_uses_three_point_dead_band(actual, expected, pace):
    assert pace_classification(actual, expected) is pace, (
        f"pace({actual}, {expected}) should be {pace}, got {pace_classification(actual, expected)}"
    )


def test_pace_is_none_without_expectation():
    assert pace_classification(40, None) is None


def test_pace_values_match_wire_strings():
    assert Pace.ON_TRACK.value == "onTrack"
    assert Pace.AHEAD.value == "ahead"
    assert Pace.BEHIND.value == "behind"


@pytest.mark.parametrize(
    "percent, tier",
    [
        (100, ProgressTier.HIGH),
        (80, ProgressTier.HIGH),
        (79, ProgressTier.MEDIUM),
        (50, ProgressTier.MEDIUM),
        (49, ProgressTier.LOW),
        (25, ProgressTier.LOW),
        (24, ProgressTier.MINIMAL),
        (0, ProgressTier.MINIMAL),
    ],
)
def test_progress_tier_boundaries(percent, tier):
    assert progress_tier(percent) is tier


# ---------------------------------------------------------------------------
# Config dates and triage list
# ---------------------------------------------------------------------------


def test_parse_config_date_treats_blank_as_unset():
    assert parse_config_date("") is None
    assert parse_config_date("   ") is None
    assert parse_config_date(None) is None
    assert parse_config_date("2024-05-01") == date(2024, 5, 1)


def test_unstarted_chapters_in_subject_then_chapter_order():
    """Only 0 % chapters are listed; a revised chapter is not unstarted."""
    subjects = sample_subjects()
    subjects[0].chapters.append(make_chapter("ch-fr-3", "Revised only", revision_count=1))

    pending = unstarted_chapters(subjects)

    assert [(s.id, c.id) for s, c in pending] == [
        ("sub-tax", "ch-tax-1"),
        ("sub-tax", "ch-tax-2"),
    ], f"Unexpected triage order: {[(s.id, c.id) for s, c in pending]}"
