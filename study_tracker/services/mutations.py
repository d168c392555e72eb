"""Mutation commands for the optimistic sync protocol.

Every user action that changes tracked state is expressed as a command with
four steps, driven by :class:`~study_tracker.services.sync_controller.SyncController`:

    prior = cmd.apply()            # mutate the cache, remember what was there
    response = await cmd.send(client)
    cmd.commit(response)           # success: server value wins
    cmd.rollback(prior)            # failure: put the prior value back

Commits and rollbacks only touch what the command itself changed, so two
commands in flight against different fields never undo each other.  Updates,
renames and deletes are cache-first; creates are request-first (``apply`` is
a no-op and ``commit`` inserts the entity the server built).

The cache can change between ``apply`` and ``commit`` / ``rollback`` (the
user keeps working while requests are in flight).  A subject whose delete is
still pending stays reachable, so chapter commands against it commit and
roll back into the object a failed delete restores.  If the target entity has
really disappeared by then the step is skipped and logged; if a newer local edit
has replaced the value this command applied, the late response still wins
and a warning is logged.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from study_tracker.exceptions import ChapterNotFoundError, SubjectNotFoundError
from study_tracker.models.chapter import Chapter
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import TrackerConfig
from study_tracker.services.local_cache import LocalCache, RemovedChapter, RemovedSubject
from study_tracker.services.rest_client import RemoteStore

logger = logging.getLogger(__name__)


class MutationState(str, Enum):
    """Lifecycle of one command: idle → applied → confirmed | rolled_back."""

    IDLE = "idle"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class Mutation(ABC):
    """Base command.  Subclasses implement the ``_apply`` / ``send`` /
    ``_commit`` / ``_rollback`` hooks; the public methods enforce the state
    machine.

    Attributes:
        subject_id: Subject affected, if any (drives aggregate recomputation).
        chapter_id: Chapter affected, if any.
        success_message: Notice text on confirmation, or ``None`` for silent
            confirmations (checkbox toggles, revision steps).
    """

    subject_id: str | None = None
    chapter_id: str | None = None
    success_message: str | None = None

    def __init__(self, cache: LocalCache) -> None:
        self.cache = cache
        self.state = MutationState.IDLE

    # ------------------------------------------------------------------
    # Public protocol
    # ------------------------------------------------------------------

    def apply(self) -> Any:
        """Apply the change to the cache and return the prior state."""
        self._require(MutationState.IDLE)
        prior = self._apply()
        self.state = MutationState.APPLIED
        return prior

    @abstractmethod
    async def send(self, client: RemoteStore) -> Any:
        """Issue the Remote Store request for this change."""

    def commit(self, response: Any) -> None:
        """Overwrite the optimistic value with the server's representation."""
        self._require(MutationState.APPLIED)
        try:
            self._commit(response)
        except (SubjectNotFoundError, ChapterNotFoundError) as exc:
            logger.warning("%s confirmed but target left the cache: %s", self.describe(), exc)
        self.state = MutationState.CONFIRMED

    def rollback(self, prior: Any) -> None:
        """Restore exactly what :meth:`apply` overwrote."""
        self._require(MutationState.APPLIED)
        try:
            self._rollback(prior)
        except (SubjectNotFoundError, ChapterNotFoundError) as exc:
            logger.warning("%s rollback skipped, target left the cache: %s", self.describe(), exc)
        self.state = MutationState.ROLLED_BACK

    def failure_message(self, error: Exception) -> str:
        return str(error) or "Failed to save. Please retry."

    def describe(self) -> str:
        return type(self).__name__

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _apply(self) -> Any:
        return None

    def _commit(self, response: Any) -> None:
        return None

    def _rollback(self, prior: Any) -> None:
        return None

    def _require(self, expected: MutationState) -> None:
        if self.state is not expected:
            raise RuntimeError(
                f"{self.describe()} is {self.state.value}, expected {expected.value}"
            )


# ---------------------------------------------------------------------------
# Chapter commands
# ---------------------------------------------------------------------------


class PatchChapter(Mutation):
    """Set one or more chapter fields (criteria, ``revision_count``, ``name``).

    Args:
        cache: Session cache.
        subject_id: Owning subject.
        chapter_id: Target chapter.
        fields: snake_case field → new value.
    """

    def __init__(
        self,
        cache: LocalCache,
        subject_id: str,
        chapter_id: str,
        fields: dict[str, Any],
        failure_text: str = "Failed to save. Please retry.",
        success_message: str | None = None,
    ) -> None:
        super().__init__(cache)
        self.subject_id = subject_id
        self.chapter_id = chapter_id
        self.fields = dict(fields)
        self.failure_text = failure_text
        self.success_message = success_message

    def _set(self, field: str, value: Any) -> Any:
        if field == "revision_count":
            return self.cache.patch_chapter_revision(self.subject_id, self.chapter_id, value)
        return self.cache.patch_chapter_field(self.subject_id, self.chapter_id, field, value)

    def _apply(self) -> dict[str, Any]:
        prior: dict[str, Any] = {}
        try:
            for field, value in self.fields.items():
                prior[field] = self._set(field, value)
        except Exception:
            # leave the cache as it was if a later field is rejected
            for field, value in prior.items():
                self._set(field, value)
            raise
        return prior

    async def send(self, client: RemoteStore) -> Chapter:
        return await client.update_chapter(self.subject_id, self.chapter_id, self.fields)

    def _commit(self, response: Chapter) -> None:
        for field, applied in self.fields.items():
            current = self._set(field, getattr(response, field))
            if current != applied:
                logger.warning(
                    "Late response for chapter %s field %s overwrites a newer local edit",
                    self.chapter_id,
                    field,
                )

    def _rollback(self, prior: dict[str, Any]) -> None:
        for field, value in prior.items():
            self._set(field, value)

    def failure_message(self, error: Exception) -> str:
        return self.failure_text

    def describe(self) -> str:
        return f"PatchChapter({self.chapter_id}: {', '.join(self.fields)})"


class AddChapter(Mutation):
    """Create a chapter; request-first, inserted only once the server answers."""

    def __init__(self, cache: LocalCache, subject_id: str, name: str) -> None:
        super().__init__(cache)
        self.subject_id = subject_id
        self.name = name
        self.success_message = f'Chapter "{name}" added.'

    async def send(self, client: RemoteStore) -> Chapter:
        return await client.add_chapter(self.subject_id, self.name)

    def _commit(self, response: Chapter) -> None:
        self.chapter_id = response.id
        self.cache.upsert_chapter(self.subject_id, response)


class DeleteChapter(Mutation):
    """Remove a chapter; re-inserted at its old position if the delete fails."""

    def __init__(self, cache: LocalCache, subject_id: str, chapter_id: str) -> None:
        super().__init__(cache)
        self.subject_id = subject_id
        self.chapter_id = chapter_id
        self.success_message = "Chapter deleted."

    def _apply(self) -> RemovedChapter:
        return self.cache.remove_chapter(self.subject_id, self.chapter_id)

    async def send(self, client: RemoteStore) -> None:
        await client.delete_chapter(self.subject_id, self.chapter_id)

    def _rollback(self, prior: RemovedChapter) -> None:
        self.cache.restore_chapter(prior)


# ---------------------------------------------------------------------------
# Subject commands
# ---------------------------------------------------------------------------


class AddSubject(Mutation):
    """Create a subject; request-first.  The new subject becomes active."""

    def __init__(self, cache: LocalCache, name: str) -> None:
        super().__init__(cache)
        self.name = name
        self.success_message = f'Subject "{name}" added.'

    async def send(self, client: RemoteStore) -> Subject:
        return await client.create_subject(self.name)

    def _commit(self, response: Subject) -> None:
        self.subject_id = response.id
        self.cache.upsert_subject(response)
        self.cache.select(response.id)


class RenameSubject(Mutation):
    def __init__(self, cache: LocalCache, subject_id: str, name: str) -> None:
        super().__init__(cache)
        self.subject_id = subject_id
        self.name = name
        self.success_message = "Subject name updated."

    def _apply(self) -> str:
        return self.cache.patch_subject_name(self.subject_id, self.name)

    async def send(self, client: RemoteStore) -> Subject:
        return await client.rename_subject(self.subject_id, self.name)

    def _commit(self, response: Subject) -> None:
        if self.cache.patch_subject_name(self.subject_id, response.name) != self.name:
            logger.warning(
                "Late rename response for subject %s overwrites a newer local edit",
                self.subject_id,
            )

    def _rollback(self, prior: str) -> None:
        self.cache.patch_subject_name(self.subject_id, prior)


class DeleteSubject(Mutation):
    """Remove a subject and, with it, every chapter it owns."""

    def __init__(self, cache: LocalCache, subject_id: str) -> None:
        super().__init__(cache)
        self.subject_id = subject_id
        self.success_message = "Subject deleted."

    def _apply(self) -> RemovedSubject:
        return self.cache.remove_subject(self.subject_id)

    async def send(self, client: RemoteStore) -> None:
        await client.delete_subject(self.subject_id)

    def _commit(self, response: None) -> None:
        self.cache.discard_removed(self.subject_id)

    def _rollback(self, prior: RemovedSubject) -> None:
        self.cache.restore_subject(prior)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class UpdateConfig(Mutation):
    """Change one or more config fields (dates, brand text)."""

    def __init__(self, cache: LocalCache, fields: dict[str, str]) -> None:
        super().__init__(cache)
        self.fields = dict(fields)
        self.success_message = "Settings saved."

    def _apply(self) -> dict[str, str]:
        return self.cache.patch_config(self.fields)

    async def send(self, client: RemoteStore) -> TrackerConfig:
        return await client.update_config(self.fields)

    def _commit(self, response: TrackerConfig) -> None:
        self.cache.patch_config({name: getattr(response, name) for name in self.fields})

    def _rollback(self, prior: dict[str, str]) -> None:
        self.cache.patch_config(prior)

    def failure_message(self, error: Exception) -> str:
        return f"Failed to save settings: {error}"
