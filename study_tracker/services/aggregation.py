"""Progress aggregation engine.

Pure functions that derive completion figures from chapters and subjects:

    chapter %  →  subject % (mean of chapters)  →  overall % (mean of subjects)

plus the date-based pace indicator and the "unstarted" triage list.  Nothing
here reads the clock, touches the cache, or does I/O; callers pass ``today``
explicitly.

A chapter has seven criteria: the six booleans in
:data:`~study_tracker.models.chapter.CRITERIA_FIELDS` and "revised at least
once".  Revision is mandatory, so six ticks with zero revisions is 86 %,
not 100 %.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from enum import Enum

from study_tracker.models.chapter import CRITERIA_FIELDS, Chapter
from study_tracker.models.subject import Subject

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOTAL_CRITERIA = len(CRITERIA_FIELDS) + 1
PACE_DEAD_BAND = 3  # points either side of "expected" that still count as on track


class Pace(str, Enum):
    """Actual overall progress relative to time-elapsed expectation."""

    AHEAD = "ahead"
    BEHIND = "behind"
    ON_TRACK = "onTrack"


class ProgressTier(str, Enum):
    """Coarse band of a completion percent, used for display emphasis."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 → 3, -2.5 → -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _as_day(value: date | datetime) -> date:
    """Drop any time-of-day so date arithmetic is in whole days."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_config_date(value: str | date | None) -> date | None:
    """Convert a config date (``""`` meaning unset) to a :class:`date`."""
    if value is None or isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    return date.fromisoformat(value)


def _mean_percent(percents: Sequence[int]) -> int:
    if not percents:
        return 0
    return round_half_away(sum(percents) / len(percents))


# ---------------------------------------------------------------------------
# Chapter / subject / overall
# ---------------------------------------------------------------------------


def chapter_completion_percent(chapter: Chapter) -> int:
    """Percentage of the seven criteria a chapter satisfies (0..100)."""
    done = sum(1 for field in CRITERIA_FIELDS if getattr(chapter, field) is True)
    revision_credit = 1 if chapter.revision_count >= 1 else 0
    return round_half_away(((done + revision_credit) / TOTAL_CRITERIA) * 100)


def is_chapter_complete(chapter: Chapter) -> bool:
    """True when every boolean criterion is set and the chapter was revised."""
    return (
        all(getattr(chapter, field) is True for field in CRITERIA_FIELDS)
        and chapter.revision_count >= 1
    )


def subject_completion_percent(subject: Subject) -> int:
    """Rounded mean of the chapter percents; 0 for a subject with no chapters."""
    return _mean_percent([chapter_completion_percent(c) for c in subject.chapters])


def overall_completion_percent(subjects: Sequence[Subject]) -> int:
    """Rounded mean of subject percents; 0 when there are no subjects.

    Each subject weighs the same regardless of how many chapters it has.
    """
    return _mean_percent([subject_completion_percent(s) for s in subjects])


# ---------------------------------------------------------------------------
# Dates and pace
# ---------------------------------------------------------------------------


def expected_progress_percent(
    start_date: date | None,
    target_date: date | None,
    today: date | datetime,
) -> int | None:
    """Share of the study window that has elapsed by *today*, as a percent.

    Returns:
        ``None`` if either date is unset or the window is empty or inverted;
        otherwise the elapsed share clamped to 0..100.
    """
    if start_date is None or target_date is None or target_date <= start_date:
        return None
    today = _as_day(today)
    elapsed = (today - start_date).days
    window = (target_date - start_date).days
    return max(0, min(100, round_half_away(elapsed / window * 100)))


def days_remaining(target_date: date | None, today: date | datetime) -> int | None:
    """Whole days until *target_date*: positive future, 0 today, negative overdue."""
    if target_date is None:
        return None
    return (target_date - _as_day(today)).days


def pace_classification(actual_percent: int, expected_percent: int | None) -> Pace | None:
    """Compare actual vs. expected progress with a ±3 point dead band."""
    if expected_percent is None:
        return None
    diff = actual_percent - expected_percent
    if diff >= PACE_DEAD_BAND:
        return Pace.AHEAD
    if diff <= -PACE_DEAD_BAND:
        return Pace.BEHIND
    return Pace.ON_TRACK


def progress_tier(percent: int) -> ProgressTier:
    if percent >= 80:
        return ProgressTier.HIGH
    if percent >= 50:
        return ProgressTier.MEDIUM
    if percent >= 25:
        return ProgressTier.LOW
    return ProgressTier.MINIMAL


# ---------------------------------------------------------------------------
# Triage
# ---------------------------------------------------------------------------


def unstarted_chapters(subjects: Iterable[Subject]) -> list[tuple[Subject, Chapter]]:
    """Every chapter at 0 %, in subject-then-chapter order (not truncated)."""
    return [
        (subject, chapter)
        for subject in subjects
        for chapter in subject.chapters
        if chapter_completion_percent(chapter) == 0
    ]
