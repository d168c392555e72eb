"""Chapter entity: six boolean completion criteria plus a revision counter."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import Field

from study_tracker.models.base import TrackerModel

# Order matters only for display; aggregation counts them.
CRITERIA_FIELDS: tuple[str, ...] = (
    "concepts",
    "illustrations",
    "tyk",
    "rtp",
    "mtp",
    "pyq",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Chapter(TrackerModel):
    """Smallest tracked unit of study.

    Attributes:
        id: Opaque identifier assigned by the store at creation.
        name: Non-empty chapter name.
        concepts: Concepts studied.
        illustrations: Illustrations worked.
        tyk: "Test your knowledge" questions done.
        rtp: Revision test papers done.
        mtp: Mock test papers done.
        pyq: Past-year questions done.
        revision_count: Number of full revisions, never negative.
        created_at: Creation timestamp (UTC).
    """

    id: str
    name: str = Field(..., min_length=1)
    concepts: bool = False
    illustrations: bool = False
    tyk: bool = False
    rtp: bool = False
    mtp: bool = False
    pyq: bool = False
    revision_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def new(cls, name: str) -> Chapter:
        """Build a fresh chapter with a generated id and all criteria unset."""
        return cls(id=str(uuid.uuid4()), name=name, created_at=utcnow())

    def __repr__(self) -> str:
        return f"<Chapter(id={self.id}, name='{self.name}')>"
