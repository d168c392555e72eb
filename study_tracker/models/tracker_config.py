"""Process-wide tracker configuration and the persisted document layout."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import Field, field_validator

from study_tracker.models.base import TrackerModel
from study_tracker.models.subject import Subject

CONFIG_FIELDS: tuple[str, ...] = ("start_date", "target_date", "brand_title", "brand_subtitle")


def normalise_config_date(value: Any) -> str:
    """Return *value* as an ISO date string, or ``""`` when unset.

    Raises:
        ValueError: If a non-empty value is not a calendar date.
    """
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    value = str(value).strip()
    if value:
        date.fromisoformat(value)
    return value


class TrackerConfig(TrackerModel):
    """Singleton configuration persisted alongside the subjects.

    Dates are ISO ``YYYY-MM-DD`` strings; an empty string means unset.  Brand
    strings may be empty, in which case display code falls back to the
    defaults from :class:`~study_tracker.config.Settings`.
    """

    start_date: str = ""
    target_date: str = ""
    brand_title: str = ""
    brand_subtitle: str = ""

    @field_validator("start_date", "target_date", mode="before")
    @classmethod
    def _normalise_date(cls, value: Any) -> str:
        return normalise_config_date(value)

    @field_validator("brand_title", "brand_subtitle", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else value


class StoreDocument(TrackerModel):
    """Everything the JSON store persists: ``{config, subjects}``."""

    config: TrackerConfig = Field(default_factory=TrackerConfig)
    subjects: list[Subject] = Field(default_factory=list)
