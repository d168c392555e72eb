"""Schema for ``GET /health``."""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Service health: ``ok`` when the data file can be read."""

    status: str
    timestamp: str
    version: str
    storage: dict[str, str]
