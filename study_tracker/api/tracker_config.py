"""Tracker config routes.

Provides:
    GET /config  - Study window dates and brand text.
    PUT /config  - Partial update; omitted fields keep their value.
"""

import logging

from fastapi import APIRouter

from study_tracker.api.dependencies import StoreDep
from study_tracker.models.tracker_config import TrackerConfig
from study_tracker.schemas.config import ConfigUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", response_model=TrackerConfig, summary="Get tracker config")
def get_config(store: StoreDep) -> TrackerConfig:
    return store.get_config()


@router.put(
    "",
    response_model=TrackerConfig,
    summary="Update tracker config",
    responses={422: {"description": "Date is not YYYY-MM-DD"}},
)
def update_config(payload: ConfigUpdate, store: StoreDep) -> TrackerConfig:
    fields = payload.model_dump(exclude_unset=True)
    logger.info("Config update: %s", sorted(fields))
    return store.update_config(fields)
