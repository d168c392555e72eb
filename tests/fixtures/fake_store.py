"""FakeStoreClient - in-memory Remote Store for sync controller tests.

Implements the same coroutine interface as ``StoreClient`` without any
HTTP.  Behaviour mirrors the JSON store: ids are generated on create, names
are trimmed, unknown ids raise ``RemoteNotFoundError``.

Failure injection:
    ``fail_on``   - method names that raise ``StoreUnavailableError``.
    ``gate``      - optional ``asyncio.Event`` every call waits on, so tests
                    can hold several requests in flight at once.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from study_tracker.exceptions import RemoteNotFoundError, StoreUnavailableError
from study_tracker.models.chapter import Chapter
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import TrackerConfig


class FakeStoreClient:
    """Authoritative state kept in memory; every call is recorded in ``calls``."""

    def __init__(
        self,
        subjects: list[Subject] | None = None,
        config: TrackerConfig | None = None,
    ) -> None:
        self.subjects: list[Subject] = [s.model_copy(deep=True) for s in subjects or []]
        self.config: TrackerConfig = config or TrackerConfig()
        self.fail_on: set[str] = set()
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if method in self.fail_on or "*" in self.fail_on:
            raise StoreUnavailableError(f"Simulated outage during {method}")

    def _subject(self, subject_id: str) -> Subject:
        for subject in self.subjects:
            if subject.id == subject_id:
                return subject
        raise RemoteNotFoundError("Subject not found.", 404)

    def _chapter(self, subject_id: str, chapter_id: str) -> Chapter:
        found = self._subject(subject_id).find_chapter(chapter_id)
        if found is None:
            raise RemoteNotFoundError("Chapter not found.", 404)
        return found[1]

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    # ------------------------------------------------------------------
    # RemoteStore interface
    # ------------------------------------------------------------------

    async def list_subjects(self) -> list[Subject]:
        await self._enter("list_subjects")
        return [s.model_copy(deep=True) for s in self.subjects]

    async def create_subject(self, name: str) -> Subject:
        await self._enter("create_subject", name)
        subject = Subject(id=f"srv-{uuid.uuid4().hex[:8]}", name=name.strip())
        self.subjects.append(subject)
        return subject.model_copy(deep=True)

    async def rename_subject(self, subject_id: str, name: str) -> Subject:
        await self._enter("rename_subject", subject_id, name)
        subject = self._subject(subject_id)
        subject.name = name.strip()
        return subject.model_copy(deep=True)

    async def delete_subject(self, subject_id: str) -> None:
        await self._enter("delete_subject", subject_id)
        self.subjects.remove(self._subject(subject_id))

    async def list_chapters(self, subject_id: str) -> list[Chapter]:
        await self._enter("list_chapters", subject_id)
        return [c.model_copy() for c in self._subject(subject_id).chapters]

    async def add_chapter(self, subject_id: str, name: str) -> Chapter:
        await self._enter("add_chapter", subject_id, name)
        chapter = Chapter(id=f"srv-{uuid.uuid4().hex[:8]}", name=name.strip())
        self._subject(subject_id).chapters.append(chapter)
        return chapter.model_copy()

    async def update_chapter(
        self, subject_id: str, chapter_id: str, fields: dict[str, Any]
    ) -> Chapter:
        await self._enter("update_chapter", subject_id, chapter_id, dict(fields))
        chapter = self._chapter(subject_id, chapter_id)
        for field, value in fields.items():
            setattr(chapter, field, value.strip() if field == "name" else value)
        return chapter.model_copy()

    async def delete_chapter(self, subject_id: str, chapter_id: str) -> None:
        await self._enter("delete_chapter", subject_id, chapter_id)
        subject = self._subject(subject_id)
        subject.chapters.remove(self._chapter(subject_id, chapter_id))

    async def get_config(self) -> TrackerConfig:
        await self._enter("get_config")
        return self.config.model_copy()

    async def update_config(self, fields: dict[str, Any]) -> TrackerConfig:
        await self._enter("update_config", dict(fields))
        self.config = self.config.model_copy(update=fields)
        return self.config.model_copy()
