"""Request schemas for the chapter routes."""

from __future__ import annotations

from pydantic import Field

from study_tracker.models.base import TrackerModel


class ChapterCreate(TrackerModel):
    """Payload for ``POST /subjects/{subject_id}/chapters``."""

    name: str = Field(..., description="Chapter name")


class ChapterUpdate(TrackerModel):
    """Partial update for ``PUT /subjects/{subject_id}/chapters/{chapter_id}``.

    Only fields present in the request body are applied; use
    ``model_dump(exclude_unset=True)`` to recover them.
    """

    name: str | None = None
    concepts: bool | None = None
    illustrations: bool | None = None
    tyk: bool | None = None
    rtp: bool | None = None
    mtp: bool | None = None
    pyq: bool | None = None
    revision_count: int | None = Field(default=None, ge=0)
