"""Subject entity: a named, ordered container of chapters."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from study_tracker.models.base import TrackerModel
from study_tracker.models.chapter import Chapter, utcnow


class Subject(TrackerModel):
    """A subject and the chapters it owns.

    Chapters are embedded, so removing a subject removes its chapters with
    it; no chapter can outlive or be shared between subjects.

    Attributes:
        id: Opaque identifier assigned by the store at creation.
        name: Non-empty subject name.
        chapters: Chapters in insertion order.
        created_at: Creation timestamp (UTC).
    """

    id: str
    name: str = Field(..., min_length=1)
    chapters: list[Chapter] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def new(cls, name: str) -> Subject:
        """Build an empty subject with a generated id."""
        return cls(id=str(uuid.uuid4()), name=name, chapters=[], created_at=utcnow())

    def find_chapter(self, chapter_id: str) -> tuple[int, Chapter] | None:
        """Return ``(index, chapter)`` for *chapter_id*, or ``None``."""
        for index, chapter in enumerate(self.chapters):
            if chapter.id == chapter_id:
                return index, chapter
        return None

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name='{self.name}', chapters={len(self.chapters)})>"
