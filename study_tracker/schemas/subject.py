"""Request/response schemas for the subject routes."""

from __future__ import annotations

from pydantic import Field

from study_tracker.models.base import TrackerModel


class SubjectCreate(TrackerModel):
    """Payload for ``POST /subjects``.

    The name is validated (non-blank) and trimmed by the store rather than
    here, so a blank name produces the same 400 response as on rename.
    """

    name: str = Field(..., description="Subject name")


class SubjectRename(TrackerModel):
    """Payload for ``PUT /subjects/{subject_id}``."""

    name: str = Field(..., description="New subject name")


class AckResponse(TrackerModel):
    """Acknowledgement returned by delete routes."""

    success: bool = True
