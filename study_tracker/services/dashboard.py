"""Dashboard snapshot built from one read of the subject tree and config."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime

from study_tracker.config import Settings, get_settings
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import TrackerConfig
from study_tracker.schemas.dashboard import (
    DashboardSnapshot,
    PaceBadge,
    SubjectSummary,
    TriageEntry,
    TriageState,
    TriageView,
)
from study_tracker.services.aggregation import (
    days_remaining,
    expected_progress_percent,
    is_chapter_complete,
    overall_completion_percent,
    pace_classification,
    parse_config_date,
    progress_tier,
    subject_completion_percent,
    unstarted_chapters,
)

logger = logging.getLogger(__name__)

TRIAGE_DISPLAY_LIMIT = 10


def resolve_brand(config: TrackerConfig, settings: Settings | None = None) -> tuple[str, str]:
    """Return ``(title, subtitle)``, substituting defaults for blank values."""
    settings = settings or get_settings()
    title = config.brand_title.strip() or settings.default_brand_title
    subtitle = config.brand_subtitle.strip() or settings.default_brand_subtitle
    return title, subtitle


def build_triage(subjects: Sequence[Subject], limit: int = TRIAGE_DISPLAY_LIMIT) -> TriageView:
    """Cap the unstarted-chapter list at *limit* and count the rest."""
    if not subjects:
        return TriageView(state=TriageState.NO_SUBJECTS)
    pending = unstarted_chapters(subjects)
    if not pending:
        return TriageView(state=TriageState.ALL_STARTED)
    entries = [
        TriageEntry(
            subject_id=subject.id,
            subject_name=subject.name,
            chapter_id=chapter.id,
            chapter_name=chapter.name,
        )
        for subject, chapter in pending[:limit]
    ]
    return TriageView(
        state=TriageState.PENDING,
        entries=entries,
        overflow=max(0, len(pending) - limit),
    )


def build_pace_badge(overall: int, config: TrackerConfig, today: date | datetime) -> PaceBadge:
    start = parse_config_date(config.start_date)
    target = parse_config_date(config.target_date)
    expected = expected_progress_percent(start, target, today)
    return PaceBadge(
        actual_percent=overall,
        expected_percent=expected,
        days_remaining=days_remaining(target, today),
        pace=pace_classification(overall, expected),
    )


def build_dashboard(
    subjects: Sequence[Subject],
    config: TrackerConfig,
    today: date | datetime,
    settings: Settings | None = None,
    triage_limit: int = TRIAGE_DISPLAY_LIMIT,
) -> DashboardSnapshot:
    """Compute the dashboard view.

    Args:
        subjects: Subjects with their chapters (read-only).
        config: Tracker config (dates drive the pace badge).
        today: Reference day for pace and days remaining.
        settings: Source of brand defaults.
        triage_limit: Maximum unstarted chapters listed.

    Returns:
        A :class:`DashboardSnapshot`; "complete" chapters are counted with
        :func:`is_chapter_complete`, not by percent.
    """
    overall = overall_completion_percent(subjects)
    title, subtitle = resolve_brand(config, settings)
    summaries = []
    for subject in subjects:
        percent = subject_completion_percent(subject)
        summaries.append(
            SubjectSummary(
                id=subject.id,
                name=subject.name,
                percent=percent,
                chapter_count=len(subject.chapters),
                tier=progress_tier(percent),
            )
        )

    total = sum(len(s.chapters) for s in subjects)
    complete = sum(1 for s in subjects for c in s.chapters if is_chapter_complete(c))
    logger.debug("Dashboard: %d subjects, %d/%d chapters complete", len(subjects), complete, total)

    return DashboardSnapshot(
        brand_title=title,
        brand_subtitle=subtitle,
        overall_percent=overall,
        overall_tier=progress_tier(overall),
        subject_count=len(subjects),
        total_chapters=total,
        complete_chapters=complete,
        subjects=summaries,
        triage=build_triage(subjects, triage_limit),
        pace=build_pace_badge(overall, config, today),
    )
