"""Pydantic v2 request/response schemas for the study tracker API."""

from study_tracker.schemas.chapter import ChapterCreate, ChapterUpdate
from study_tracker.schemas.config import ConfigUpdate
from study_tracker.schemas.dashboard import (
    DashboardSnapshot,
    PaceBadge,
    SubjectSummary,
    TriageEntry,
    TriageState,
    TriageView,
)
from study_tracker.schemas.health import HealthResponse
from study_tracker.schemas.subject import AckResponse, SubjectCreate, SubjectRename

__all__ = [
    "AckResponse",
    "ChapterCreate",
    "ChapterUpdate",
    "ConfigUpdate",
    "DashboardSnapshot",
    "HealthResponse",
    "PaceBadge",
    "SubjectCreate",
    "SubjectRename",
    "SubjectSummary",
    "TriageEntry",
    "TriageState",
    "TriageView",
]
