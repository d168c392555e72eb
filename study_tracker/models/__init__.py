"""Pydantic entity models persisted by the study tracker."""

from study_tracker.models.base import TrackerModel
from study_tracker.models.chapter import CRITERIA_FIELDS, Chapter
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import CONFIG_FIELDS, StoreDocument, TrackerConfig

__all__ = [
    "TrackerModel",
    "Chapter",
    "CRITERIA_FIELDS",
    "Subject",
    "TrackerConfig",
    "CONFIG_FIELDS",
    "StoreDocument",
]
