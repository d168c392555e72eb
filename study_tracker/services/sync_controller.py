"""Optimistic sync between the Local Cache and the Remote Store.

Each user intent is turned into a mutation command and run through
:meth:`SyncController.execute`:

1. capture the prior value and apply the change to the cache;
2. send the request;
3. on success, let the server representation win and recompute aggregates;
4. on any ``RemoteStoreError``, restore the prior value, emit an error
   notice, and stop (retrying is a fresh user action).  Any other error
   also restores the prior value and then propagates.

Several commands may be in flight at once (``asyncio.gather``); each holds
its own prior snapshot.  Requests are never cancelled or coalesced, and
responses for the same field are applied in arrival order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from study_tracker.exceptions import NameValidationError, RemoteStoreError
from study_tracker.models.chapter import CRITERIA_FIELDS
from study_tracker.models.tracker_config import CONFIG_FIELDS, TrackerConfig
from study_tracker.schemas.dashboard import DashboardSnapshot
from study_tracker.services.aggregation import (
    Pace,
    chapter_completion_percent,
    expected_progress_percent,
    overall_completion_percent,
    pace_classification,
    parse_config_date,
    subject_completion_percent,
)
from study_tracker.services.dashboard import build_dashboard
from study_tracker.services.local_cache import DASHBOARD, LocalCache
from study_tracker.services.mutations import (
    AddChapter,
    AddSubject,
    DeleteChapter,
    DeleteSubject,
    Mutation,
    MutationState,
    PatchChapter,
    RenameSubject,
    UpdateConfig,
)
from study_tracker.services.rest_client import RemoteStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results and notices
# ---------------------------------------------------------------------------


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """User-visible message for the presentation layer (a toast, a banner)."""

    level: NoticeLevel
    message: str


@dataclass(frozen=True)
class RecomputedProgress:
    """Aggregates recomputed after a mutation, narrowest scope first.

    Attributes:
        chapter_percent: Mutated chapter, if the mutation targeted one that
            still exists.
        subject_percent: Its subject, if it still exists.
        overall_percent: Across all subjects.
        pace: Pace classification; ``None`` without a target date.
    """

    chapter_percent: int | None
    subject_percent: int | None
    overall_percent: int
    pace: Pace | None


@dataclass
class MutationResult:
    """Outcome of one executed command."""

    state: MutationState
    response: Any = None
    error: Exception | None = None
    progress: RecomputedProgress | None = None

    @property
    def ok(self) -> bool:
        return self.state is MutationState.CONFIRMED


def _log_notice(notice: Notice) -> None:
    if notice.level is NoticeLevel.ERROR:
        logger.warning("Notice: %s", notice.message)
    else:
        logger.info("Notice: %s", notice.message)


def _clean_name(name: str, entity: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise NameValidationError(entity)
    return cleaned


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class SyncController:
    """Drive mutations against a :class:`RemoteStore` and keep the cache honest.

    Args:
        client: Remote Store implementation (normally a ``StoreClient``).
        cache: Session cache; a fresh one is created when omitted.
        notifier: Receives every :class:`Notice`.  Defaults to logging.
        on_change: Called with each :class:`MutationResult` once it is
            confirmed or rolled back, so the view can redraw.
        clock: Returns "today" for pace calculations.
    """

    def __init__(
        self,
        client: RemoteStore,
        cache: LocalCache | None = None,
        notifier: Callable[[Notice], None] | None = None,
        on_change: Callable[[MutationResult], None] | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else LocalCache()
        self._notify = notifier or _log_notice
        self._on_change = on_change
        self._clock = clock

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """Bulk-load subjects and config into the cache.

        Returns:
            ``True`` on success.  On failure the cache is emptied, a
            connectivity notice is emitted and ``False`` is returned.
        """
        try:
            subjects = await self.client.list_subjects()
            config = await self.client.get_config()
        except RemoteStoreError as exc:
            logger.error("Initial load failed: %s", exc)
            self.cache.replace_all([], TrackerConfig())
            self.cache.select(DASHBOARD)
            self._notify(Notice(NoticeLevel.ERROR, "Could not connect to server."))
            return False

        self.cache.replace_all(subjects, config)
        self.cache.select(subjects[0].id if subjects else DASHBOARD)
        logger.info("Loaded %d subjects", len(subjects))
        return True

    # ------------------------------------------------------------------
    # Core protocol
    # ------------------------------------------------------------------

    async def execute(self, mutation: Mutation) -> MutationResult:
        """Run one command through apply → send → commit | rollback."""
        prior = mutation.apply()
        try:
            response = await mutation.send(self.client)
        except RemoteStoreError as exc:
            mutation.rollback(prior)
            logger.warning("%s rolled back: %s", mutation.describe(), exc)
            self._notify(Notice(NoticeLevel.ERROR, mutation.failure_message(exc)))
            result = MutationResult(
                state=mutation.state, error=exc, progress=self._recompute(mutation)
            )
        except Exception:
            mutation.rollback(prior)
            logger.exception("%s rolled back after an unexpected error", mutation.describe())
            raise
        else:
            mutation.commit(response)
            logger.info("%s confirmed", mutation.describe())
            if mutation.success_message:
                self._notify(Notice(NoticeLevel.SUCCESS, mutation.success_message))
            result = MutationResult(
                state=mutation.state, response=response, progress=self._recompute(mutation)
            )

        if self._on_change is not None:
            self._on_change(result)
        return result

    # ------------------------------------------------------------------
    # Chapter intents
    # ------------------------------------------------------------------

    async def toggle_field(
        self, subject_id: str, chapter_id: str, field: str, value: bool
    ) -> MutationResult:
        if field not in CRITERIA_FIELDS:
            raise ValueError(f"Not a completion criterion: {field!r}")
        self.cache.get_chapter(subject_id, chapter_id)
        return await self.execute(
            PatchChapter(self.cache, subject_id, chapter_id, {field: bool(value)})
        )

    async def adjust_revision(
        self, subject_id: str, chapter_id: str, delta: int
    ) -> MutationResult | None:
        """Step the revision counter by one (*delta* is ``+1`` or ``-1``), floored at 0.

        Raises:
            ValueError: *delta* is not ``+1`` or ``-1``.

        Returns:
            ``None`` (and issues no request) when the clamped count equals
            the current one, e.g. decrementing at 0.
        """
        if delta not in (-1, 1):
            raise ValueError(f"revision step must be +1 or -1, got {delta!r}")
        current = self.cache.get_chapter(subject_id, chapter_id).revision_count
        new_count = max(0, current + delta)
        if new_count == current:
            return None
        return await self.execute(
            PatchChapter(
                self.cache,
                subject_id,
                chapter_id,
                {"revision_count": new_count},
                failure_text="Failed to save revision. Please retry.",
            )
        )

    async def rename_chapter(
        self, subject_id: str, chapter_id: str, name: str
    ) -> MutationResult | None:
        cleaned = _clean_name(name, "chapter")
        if cleaned == self.cache.get_chapter(subject_id, chapter_id).name:
            return None
        return await self.execute(
            PatchChapter(
                self.cache,
                subject_id,
                chapter_id,
                {"name": cleaned},
                failure_text="Failed to rename chapter. Please retry.",
                success_message="Chapter updated.",
            )
        )

    async def add_chapter(self, subject_id: str, name: str) -> MutationResult:
        cleaned = _clean_name(name, "chapter")
        self.cache.get_subject(subject_id)
        return await self.execute(AddChapter(self.cache, subject_id, cleaned))

    async def delete_chapter(self, subject_id: str, chapter_id: str) -> MutationResult:
        self.cache.get_chapter(subject_id, chapter_id)
        return await self.execute(DeleteChapter(self.cache, subject_id, chapter_id))

    # ------------------------------------------------------------------
    # Subject intents
    # ------------------------------------------------------------------

    async def add_subject(self, name: str) -> MutationResult:
        return await self.execute(AddSubject(self.cache, _clean_name(name, "subject")))

    async def rename_subject(self, subject_id: str, name: str) -> MutationResult | None:
        cleaned = _clean_name(name, "subject")
        if cleaned == self.cache.get_subject(subject_id).name:
            return None
        return await self.execute(RenameSubject(self.cache, subject_id, cleaned))

    async def delete_subject(self, subject_id: str) -> MutationResult:
        return await self.execute(DeleteSubject(self.cache, subject_id))

    def select(self, subject_id: str) -> None:
        self.cache.select(subject_id)

    # ------------------------------------------------------------------
    # Config intents
    # ------------------------------------------------------------------

    async def update_config(self, **fields: str) -> MutationResult | None:
        """Change dates and/or brand text.

        Values are validated and normalised locally first (a bad date raises
        ``pydantic.ValidationError`` before any request); fields whose value
        does not change are dropped, and nothing is sent if none remain.
        """
        unknown = set(fields) - set(CONFIG_FIELDS)
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        current = self.cache.config
        candidate = TrackerConfig.model_validate({**current.model_dump(), **fields})
        changed = {
            name: getattr(candidate, name)
            for name in fields
            if getattr(candidate, name) != getattr(current, name)
        }
        if not changed:
            return None
        return await self.execute(UpdateConfig(self.cache, changed))

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def progress(
        self, subject_id: str | None = None, chapter_id: str | None = None
    ) -> RecomputedProgress:
        """Recompute chapter → subject → overall percentages, then pace."""
        chapter_percent = None
        subject_percent = None
        if subject_id is not None and self.cache.has_subject(subject_id):
            if chapter_id is not None and self.cache.has_chapter(subject_id, chapter_id):
                chapter_percent = chapter_completion_percent(
                    self.cache.get_chapter(subject_id, chapter_id)
                )
            subject_percent = subject_completion_percent(self.cache.get_subject(subject_id))
        overall = overall_completion_percent(self.cache.subjects)

        pace = None
        config = self.cache.config
        if config.target_date:
            expected = expected_progress_percent(
                parse_config_date(config.start_date),
                parse_config_date(config.target_date),
                self._clock(),
            )
            pace = pace_classification(overall, expected)
        return RecomputedProgress(chapter_percent, subject_percent, overall, pace)

    def dashboard(self, today: date | None = None) -> DashboardSnapshot:
        return build_dashboard(self.cache.subjects, self.cache.config, today or self._clock())

    def _recompute(self, mutation: Mutation) -> RecomputedProgress:
        return self.progress(mutation.subject_id, mutation.chapter_id)
