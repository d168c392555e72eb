"""In-memory mirror of the Remote Store.

The cache holds the subject tree, the tracker config and the active
selection.  Every mutator is synchronous, does no I/O, and returns the value
it overwrote so that the caller can put it back exactly on rollback.

Entities are deep-copied on the way in and on the way out: nothing outside
the cache holds a reference that could change cached state behind its back.

A removed subject stays reachable to the mutators (not to the read
accessors) until its removal is either restored or confirmed with
:meth:`LocalCache.discard_removed`.  Commits and rollbacks of chapter
commands that were in flight when the subject left therefore land on the
object that :meth:`LocalCache.restore_subject` puts back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from study_tracker.exceptions import ChapterNotFoundError, SubjectNotFoundError
from study_tracker.models.chapter import CRITERIA_FIELDS, Chapter
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import CONFIG_FIELDS, TrackerConfig

logger = logging.getLogger(__name__)

# Sentinel selection meaning "no subject selected; show the dashboard".
DASHBOARD = "dashboard"

PATCHABLE_CHAPTER_FIELDS: frozenset[str] = frozenset(CRITERIA_FIELDS) | {"name"}


# ---------------------------------------------------------------------------
# Prior-state containers returned by removals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemovedSubject:
    """A subject taken out of the cache, with enough context to put it back.

    Attributes:
        index: Position the subject occupied in the subject list.
        subject: The removed subject, chapters included.
        prior_selection: Active selection before the removal.
    """

    index: int
    subject: Subject
    prior_selection: str


@dataclass(frozen=True)
class RemovedChapter:
    """A chapter taken out of its subject.

    Attributes:
        subject_id: Owning subject.
        index: Position the chapter occupied within the subject.
        chapter: The removed chapter.
    """

    subject_id: str
    index: int
    chapter: Chapter


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class LocalCache:
    """Subjects, chapters, config and active selection for one session."""

    def __init__(self) -> None:
        self._subjects: list[Subject] = []
        self._config: TrackerConfig = TrackerConfig()
        self._active: str = DASHBOARD
        # removed subjects awaiting a restore or a confirmed delete, by id
        self._removed: dict[str, Subject] = {}

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def subjects(self) -> list[Subject]:
        return [s.model_copy(deep=True) for s in self._subjects]

    @property
    def config(self) -> TrackerConfig:
        return self._config.model_copy()

    @property
    def active_subject_id(self) -> str:
        return self._active

    def get_subject(self, subject_id: str) -> Subject:
        return self._subject(subject_id).model_copy(deep=True)

    def get_chapter(self, subject_id: str, chapter_id: str) -> Chapter:
        return self._chapter(subject_id, chapter_id).model_copy()

    def has_subject(self, subject_id: str) -> bool:
        return any(s.id == subject_id for s in self._subjects)

    def has_chapter(self, subject_id: str, chapter_id: str) -> bool:
        for subject in self._subjects:
            if subject.id == subject_id:
                return subject.find_chapter(chapter_id) is not None
        return False

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-ready copy of the full cache state."""
        return {
            "config": self._config.to_wire(),
            "subjects": [s.to_wire() for s in self._subjects],
            "active": self._active,
        }

    # ------------------------------------------------------------------
    # Bulk load and selection
    # ------------------------------------------------------------------

    def replace_all(self, subjects: list[Subject], config: TrackerConfig) -> None:
        """Replace the whole cache with a fresh load from the Remote Store."""
        self._subjects = [s.model_copy(deep=True) for s in subjects]
        self._config = config.model_copy()
        self._removed.clear()
        if self._active != DASHBOARD and not self.has_subject(self._active):
            self._active = DASHBOARD
        logger.debug("Cache replaced: %d subjects", len(self._subjects))

    def select(self, subject_id: str) -> str:
        """Make *subject_id* (or :data:`DASHBOARD`) active; return the prior selection."""
        if subject_id != DASHBOARD:
            self._subject(subject_id)
        prior, self._active = self._active, subject_id
        return prior

    # ------------------------------------------------------------------
    # Subject mutators
    # ------------------------------------------------------------------

    def upsert_subject(self, subject: Subject) -> Subject | None:
        """Insert *subject* or replace the one with the same id in place.

        Returns:
            The replaced subject, or ``None`` if the subject was new.
        """
        incoming = subject.model_copy(deep=True)
        for index, existing in enumerate(self._subjects):
            if existing.id == subject.id:
                self._subjects[index] = incoming
                return existing
        self._subjects.append(incoming)
        return None

    def patch_subject_name(self, subject_id: str, name: str) -> str:
        subject = self._subject(subject_id, include_removed=True)
        prior, subject.name = subject.name, name
        return prior

    def remove_subject(self, subject_id: str) -> RemovedSubject:
        """Remove a subject together with all of its chapters.

        If the removed subject was active, the selection moves to the first
        remaining subject, or to :data:`DASHBOARD` when none remain.
        """
        index, subject = self._locate_subject(subject_id)
        del self._subjects[index]
        self._removed[subject_id] = subject
        removed = RemovedSubject(index=index, subject=subject, prior_selection=self._active)
        if self._active == subject_id:
            self._active = self._subjects[0].id if self._subjects else DASHBOARD
        return removed

    def restore_subject(self, removed: RemovedSubject) -> None:
        """Undo :meth:`remove_subject`, re-inserting at the original position."""
        self._removed.pop(removed.subject.id, None)
        index = min(removed.index, len(self._subjects))
        self._subjects.insert(index, removed.subject)
        if removed.prior_selection == DASHBOARD or self.has_subject(removed.prior_selection):
            self._active = removed.prior_selection

    def discard_removed(self, subject_id: str) -> None:
        """Forget a removed subject once its deletion is confirmed."""
        self._removed.pop(subject_id, None)

    # ------------------------------------------------------------------
    # Chapter mutators
    # ------------------------------------------------------------------

    def upsert_chapter(self, subject_id: str, chapter: Chapter) -> Chapter | None:
        subject = self._subject(subject_id, include_removed=True)
        incoming = chapter.model_copy()
        found = subject.find_chapter(chapter.id)
        if found is None:
            subject.chapters.append(incoming)
            return None
        index, existing = found
        subject.chapters[index] = incoming
        return existing

    def remove_chapter(self, subject_id: str, chapter_id: str) -> RemovedChapter:
        subject = self._subject(subject_id, include_removed=True)
        found = subject.find_chapter(chapter_id)
        if found is None:
            raise ChapterNotFoundError(subject_id, chapter_id)
        index, chapter = found
        del subject.chapters[index]
        return RemovedChapter(subject_id=subject_id, index=index, chapter=chapter)

    def restore_chapter(self, removed: RemovedChapter) -> None:
        subject = self._subject(removed.subject_id, include_removed=True)
        index = min(removed.index, len(subject.chapters))
        subject.chapters.insert(index, removed.chapter)

    def patch_chapter_field(
        self, subject_id: str, chapter_id: str, field: str, value: bool | str
    ) -> bool | str:
        """Set one criterion (or the name) on a chapter; return the prior value."""
        if field not in PATCHABLE_CHAPTER_FIELDS:
            raise ValueError(f"Unknown chapter field: {field!r}")
        chapter = self._chapter(subject_id, chapter_id, include_removed=True)
        prior = getattr(chapter, field)
        setattr(chapter, field, value)
        return prior

    def patch_chapter_revision(self, subject_id: str, chapter_id: str, new_count: int) -> int:
        if new_count < 0:
            raise ValueError(f"revision count cannot be negative: {new_count}")
        chapter = self._chapter(subject_id, chapter_id, include_removed=True)
        prior, chapter.revision_count = chapter.revision_count, new_count
        return prior

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def patch_config(self, fields: dict[str, str]) -> dict[str, str]:
        """Overwrite some config fields; return the prior values of those fields."""
        unknown = set(fields) - set(CONFIG_FIELDS)
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        prior = {name: getattr(self._config, name) for name in fields}
        self._config = self._config.model_copy(update=fields)
        return prior

    # ------------------------------------------------------------------
    # Internal lookups (return live objects)
    # ------------------------------------------------------------------

    def _locate_subject(self, subject_id: str) -> tuple[int, Subject]:
        for index, subject in enumerate(self._subjects):
            if subject.id == subject_id:
                return index, subject
        raise SubjectNotFoundError(subject_id)

    def _subject(self, subject_id: str, include_removed: bool = False) -> Subject:
        if include_removed and subject_id in self._removed:
            return self._removed[subject_id]
        return self._locate_subject(subject_id)[1]

    def _chapter(self, subject_id: str, chapter_id: str, include_removed: bool = False) -> Chapter:
        found = self._subject(subject_id, include_removed).find_chapter(chapter_id)
        if found is None:
            raise ChapterNotFoundError(subject_id, chapter_id)
        return found[1]
