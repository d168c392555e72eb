"""Schemas for the dashboard snapshot."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from study_tracker.models.base import TrackerModel
from study_tracker.services.aggregation import Pace, ProgressTier


class TriageState(str, Enum):
    """Which of the three triage displays applies."""

    NO_SUBJECTS = "no_subjects"
    ALL_STARTED = "all_started"
    PENDING = "pending"


class TriageEntry(TrackerModel):
    """One unstarted chapter surfaced for attention."""

    subject_id: str
    subject_name: str
    chapter_id: str
    chapter_name: str


class TriageView(TrackerModel):
    """Unstarted-chapter list, capped for display, with the remainder counted."""

    state: TriageState
    entries: list[TriageEntry] = Field(default_factory=list)
    overflow: int = 0


class PaceBadge(TrackerModel):
    """Actual vs. expected progress for the configured study window."""

    actual_percent: int
    expected_percent: int | None = None
    days_remaining: int | None = None
    pace: Pace | None = None


class SubjectSummary(TrackerModel):
    """Per-subject line of the dashboard."""

    id: str
    name: str
    percent: int
    chapter_count: int
    tier: ProgressTier


class DashboardSnapshot(TrackerModel):
    """Everything the dashboard view renders, computed from one cache read."""

    brand_title: str
    brand_subtitle: str
    overall_percent: int
    overall_tier: ProgressTier
    subject_count: int
    total_chapters: int
    complete_chapters: int
    subjects: list[SubjectSummary] = Field(default_factory=list)
    triage: TriageView
    pace: PaceBadge
