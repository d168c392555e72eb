"""Request schema for ``PUT /config``."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from study_tracker.models.base import TrackerModel
from study_tracker.models.tracker_config import normalise_config_date


class ConfigUpdate(TrackerModel):
    """Partial config update; unset fields are left untouched."""

    start_date: str | None = None
    target_date: str | None = None
    brand_title: str | None = None
    brand_subtitle: str | None = None

    @field_validator("start_date", "target_date", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> str | None:
        if value is None:
            return None
        return normalise_config_date(value)
