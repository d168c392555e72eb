"""Study Tracker Remote Store: FastAPI application entry point.

Features:
- Lifespan context manager: creates the JSON data file on startup and
  stores the :class:`JSONStore` on ``app.state``
- Structured exception handlers for all domain exceptions
- Request/response logging middleware with request-ID tracing
- /health endpoint that reads the data file
"""

from __future__ import annotations

import datetime
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from study_tracker.config import get_settings
from study_tracker.exceptions import (
    ChapterNotFoundError,
    NameValidationError,
    StorageError,
    SubjectNotFoundError,
)

# ---------------------------------------------------------------------------
# Logging setup  (must happen before routers are imported)
# ---------------------------------------------------------------------------

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router and service imports
# ---------------------------------------------------------------------------

from study_tracker.api import chapters as _chapters_module  # noqa: E402
from study_tracker.api import dashboard as _dashboard_module  # noqa: E402
from study_tracker.api import subjects as _subjects_module  # noqa: E402
from study_tracker.api import tracker_config as _config_module  # noqa: E402
from study_tracker.api.dependencies import get_store  # noqa: E402
from study_tracker.schemas.health import HealthResponse  # noqa: E402
from study_tracker.services.json_store import JSONStore  # noqa: E402

# ---------------------------------------------------------------------------
# Lifespan context manager
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the data file if needed and publish the store on ``app.state``."""
    logger.info("Study Tracker API — starting up (v%s)", _settings.app_version)

    store = JSONStore(_settings.data_file)
    try:
        store.ensure_exists()
    except (OSError, StorageError) as exc:
        logger.critical("FATAL — cannot create data file %s: %s", store.path, exc)
        raise RuntimeError(f"Cannot start: data file unavailable: {exc}") from exc
    app.state.store = store
    logger.info("Data file: %s", store.path.resolve())

    logger.info("Startup complete — serving requests")
    yield

    logger.info("Study Tracker API — shutting down")
    app.state.store = None


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Study Tracker API",
    description=(
        "Subjects, chapters and study-window config for exam preparation"
        " tracking, persisted in a single JSON document."
    ),
    version=_settings.app_version,
    debug=_settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "Service health checks."},
        {"name": "subjects", "description": "Create, rename, delete and list subjects."},
        {"name": "chapters", "description": "Chapters nested under a subject."},
        {"name": "config", "description": "Study window dates and brand text."},
        {"name": "dashboard", "description": "Aggregated progress view."},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next: Any) -> Response:
    """Log every HTTP request with method, path, status, and duration.

    A short UUID-derived ``request_id`` is attached to each log line and
    returned as the ``X-Request-ID`` response header.
    """
    request_id = str(uuid.uuid4())[:8]
    t0 = time.monotonic()
    logger.info("[%s] → %s %s", request_id, request.method, request.url.path)

    try:
        response: Response = await call_next(request)
    except Exception as exc:
        elapsed = (time.monotonic() - t0) * 1000
        logger.error(
            "[%s] ✗ %s %s — unhandled after %.1f ms: %s",
            request_id,
            request.method,
            request.url.path,
            elapsed,
            exc,
        )
        raise

    elapsed = (time.monotonic() - t0) * 1000
    logger.info(
        "[%s] ← %s %s — %d (%.1f ms)",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Structured exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(NameValidationError)
async def name_validation_handler(request: Request, exc: NameValidationError) -> JSONResponse:
    """400 for blank subject / chapter names."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation_failed", "message": str(exc), "entity": exc.entity},
    )


@app.exception_handler(SubjectNotFoundError)
async def subject_not_found_handler(request: Request, exc: SubjectNotFoundError) -> JSONResponse:
    """404 for unknown subject ids."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "subject_not_found",
            "message": "Subject not found.",
            "subject_id": exc.subject_id,
        },
    )


@app.exception_handler(ChapterNotFoundError)
async def chapter_not_found_handler(request: Request, exc: ChapterNotFoundError) -> JSONResponse:
    """404 for unknown chapter ids."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "chapter_not_found",
            "message": "Chapter not found.",
            "subject_id": exc.subject_id,
            "chapter_id": exc.chapter_id,
        },
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """503 when the data file cannot be read or written."""
    logger.error("StorageError: %s  path=%s", exc, exc.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "storage_unavailable", "message": str(exc)},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render FastAPI HTTPExceptions as structured JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "status_code": exc.status_code,
            "message": str(exc.detail),
            "detail": exc.detail,
        },
    )


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------


@app.get("/", tags=["health"], summary="API root / service info")
async def root() -> dict[str, str]:
    return {
        "service": "Study Tracker API",
        "version": _settings.app_version,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    summary="System health check",
    description=(
        "Reads the data file. ``status: ok`` means it parsed; ``status:"
        " degraded`` means the API is up but the data file is unusable."
    ),
)
def health_check(request: Request) -> HealthResponse:
    try:
        store: JSONStore = get_store(request)
        document = store.read()
        storage = {"status": "ok", "subjects": str(len(document.subjects))}
    except (HTTPException, StorageError) as exc:
        logger.warning("Health check: storage degraded: %s", exc)
        storage = {"status": "error", "detail": str(exc)}

    return HealthResponse(
        status="ok" if storage["status"] == "ok" else "degraded",
        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        version=_settings.app_version,
        storage=storage,
    )


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------

app.include_router(_subjects_module.router)
app.include_router(_chapters_module.router)
app.include_router(_config_module.router)
app.include_router(_dashboard_module.router)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "study_tracker.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
