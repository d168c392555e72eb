"""FastAPI dependency injection helpers.

Provides reusable ``Depends``-compatible callables for:
- ``get_store()``     → the JSON store (stored on app.state during startup)
- ``get_settings()``  → application settings
- ``get_today()``     → reference day for date-based aggregates
"""

import logging
from datetime import date
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from study_tracker.config import Settings
from study_tracker.config import get_settings as _get_settings_impl
from study_tracker.services.json_store import JSONStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


def get_store(request: Request) -> JSONStore:
    """Return the application-wide :class:`JSONStore` from ``app.state``.

    Raises:
        HTTPException: 503 if startup did not initialise the store.
    """
    store: JSONStore | None = getattr(request.app.state, "store", None)
    if store is None:
        logger.error("Store not initialised - app.state.store is None")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data store is not initialised. Check server logs for startup errors.",
        )
    return store


StoreDep = Annotated[JSONStore, Depends(get_store)]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    return _get_settings_impl()


SettingsDep = Annotated[Settings, Depends(get_settings)]


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


def get_today() -> date:
    return date.today()


TodayDep = Annotated[date, Depends(get_today)]
