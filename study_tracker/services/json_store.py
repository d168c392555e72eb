"""JSON-file persistence for the Remote Store.

The whole state lives in one document::

    {"config": {"startDate": "", "targetDate": "", "brandTitle": "", "brandSubtitle": ""},
     "subjects": [{"id": ..., "name": ..., "chapters": [...], "createdAt": ...}]}

Every operation is a full read → modify → write cycle under a process-local
lock; writes go to a temporary file that is then moved over the original.
Concurrent writers from other processes are not supported: the last write
wins.

Older data files hold a bare list of subjects.  Such a document is accepted
and rewritten in the current layout (empty config) on first read.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from study_tracker.exceptions import (
    ChapterNotFoundError,
    NameValidationError,
    StorageError,
    SubjectNotFoundError,
)
from study_tracker.models.chapter import Chapter
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import StoreDocument, TrackerConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHAPTER_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "concepts", "illustrations", "tyk", "rtp", "mtp", "pyq", "revision_count"}
)


def _require_name(name: str | None, entity: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise NameValidationError(entity)
    return cleaned


class JSONStore:
    """Authoritative store backed by a single JSON file.

    Args:
        path: Location of the data file.  Parent directories are created on
            :meth:`ensure_exists`.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    def ensure_exists(self) -> None:
        """Create the data directory and an empty document if missing."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self._write(StoreDocument())
                logger.info("Created data file %s", self.path)

    def read(self) -> StoreDocument:
        """Load the document, upgrading the legacy bare-list layout in place.

        Raises:
            StorageError: If the file cannot be read or does not hold a valid
                document.
        """
        with self._lock:
            if not self.path.exists():
                return StoreDocument()
            try:
                raw: Any = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("Cannot read data file %s: %s", self.path, exc)
                raise StorageError(f"Cannot read data file: {exc}", str(self.path)) from exc

            legacy = isinstance(raw, list)
            if legacy:
                raw = {"config": TrackerConfig().to_wire(), "subjects": raw}
            try:
                document = StoreDocument.model_validate(raw)
            except ValidationError as exc:
                logger.error("Invalid data file %s: %s", self.path, exc)
                raise StorageError(f"Invalid data file: {exc}", str(self.path)) from exc

            if legacy:
                logger.info("Upgrading legacy data file %s to {config, subjects}", self.path)
                self._write(document)
            return document

    def _write(self, document: StoreDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document.to_wire(), indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".subjects-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Cannot write data file: {exc}", str(self.path)) from exc

    def _modify(self, change: Callable[[StoreDocument], T]) -> T:
        """Run *change* against a fresh read and persist the result."""
        with self._lock:
            document = self.read()
            result = change(document)
            self._write(document)
            return result

    @staticmethod
    def _find_subject(document: StoreDocument, subject_id: str) -> tuple[int, Subject]:
        for index, subject in enumerate(document.subjects):
            if subject.id == subject_id:
                return index, subject
        raise SubjectNotFoundError(subject_id)

    @classmethod
    def _find_chapter(
        cls, document: StoreDocument, subject_id: str, chapter_id: str
    ) -> tuple[Subject, int, Chapter]:
        _, subject = cls._find_subject(document, subject_id)
        found = subject.find_chapter(chapter_id)
        if found is None:
            raise ChapterNotFoundError(subject_id, chapter_id)
        return subject, found[0], found[1]

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def list_subjects(self) -> list[Subject]:
        return self.read().subjects

    def create_subject(self, name: str) -> Subject:
        subject = Subject.new(_require_name(name, "subject"))

        def change(document: StoreDocument) -> Subject:
            document.subjects.append(subject)
            return subject

        created = self._modify(change)
        logger.info("Subject created: %s (%s)", created.id, created.name)
        return created

    def rename_subject(self, subject_id: str, name: str) -> Subject:
        cleaned = _require_name(name, "subject")

        def change(document: StoreDocument) -> Subject:
            _, subject = self._find_subject(document, subject_id)
            subject.name = cleaned
            return subject

        return self._modify(change)

    def delete_subject(self, subject_id: str) -> None:
        """Delete a subject and every chapter embedded in it."""

        def change(document: StoreDocument) -> int:
            index, subject = self._find_subject(document, subject_id)
            del document.subjects[index]
            return len(subject.chapters)

        dropped = self._modify(change)
        logger.info("Subject deleted: %s (%d chapters)", subject_id, dropped)

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def list_chapters(self, subject_id: str) -> list[Chapter]:
        _, subject = self._find_subject(self.read(), subject_id)
        return subject.chapters

    def add_chapter(self, subject_id: str, name: str) -> Chapter:
        chapter = Chapter.new(_require_name(name, "chapter"))

        def change(document: StoreDocument) -> Chapter:
            _, subject = self._find_subject(document, subject_id)
            subject.chapters.append(chapter)
            return chapter

        return self._modify(change)

    def update_chapter(self, subject_id: str, chapter_id: str, fields: dict[str, Any]) -> Chapter:
        """Apply a partial update.  Unknown keys are ignored; ``None`` values
        are skipped; a blank name raises :class:`NameValidationError`."""
        changes = {
            key: value
            for key, value in fields.items()
            if key in CHAPTER_UPDATABLE_FIELDS and value is not None
        }
        if "name" in changes:
            changes["name"] = _require_name(changes["name"], "chapter")

        def change(document: StoreDocument) -> Chapter:
            subject, index, chapter = self._find_chapter(document, subject_id, chapter_id)
            updated = Chapter.model_validate({**chapter.model_dump(), **changes})
            subject.chapters[index] = updated
            return updated

        return self._modify(change)

    def delete_chapter(self, subject_id: str, chapter_id: str) -> None:
        def change(document: StoreDocument) -> None:
            subject, index, _ = self._find_chapter(document, subject_id, chapter_id)
            del subject.chapters[index]

        self._modify(change)

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self) -> TrackerConfig:
        return self.read().config

    def update_config(self, fields: dict[str, Any]) -> TrackerConfig:
        def change(document: StoreDocument) -> TrackerConfig:
            document.config = TrackerConfig.model_validate(
                {**document.config.model_dump(), **fields}
            )
            return document.config

        return self._modify(change)
