"""Async REST client for the Remote Store.

Implements the Remote Store contract on top of ``httpx.AsyncClient`` and
turns every non-success outcome into one of the ``RemoteStoreError``
subclasses, so the sync controller only has a single exception family to
roll back on:

    connection error / timeout  →  StoreUnavailableError
    404                         →  RemoteNotFoundError
    400 / 422                   →  RemoteValidationError
    any other non-2xx           →  RemoteStoreError

Usage::

    async with StoreClient() as client:
        subjects = await client.list_subjects()
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from study_tracker.config import get_settings
from study_tracker.exceptions import (
    RemoteNotFoundError,
    RemoteStoreError,
    RemoteValidationError,
    StoreUnavailableError,
)
from study_tracker.models.chapter import Chapter
from study_tracker.models.subject import Subject
from study_tracker.models.tracker_config import TrackerConfig
from study_tracker.schemas.chapter import ChapterUpdate
from study_tracker.schemas.config import ConfigUpdate

logger = logging.getLogger(__name__)

_SUBJECT_LIST = TypeAdapter(list[Subject])
_CHAPTER_LIST = TypeAdapter(list[Chapter])


class RemoteStore(Protocol):
    """What the sync controller needs from the authoritative store."""

    async def list_subjects(self) -> list[Subject]: ...

    async def create_subject(self, name: str) -> Subject: ...

    async def rename_subject(self, subject_id: str, name: str) -> Subject: ...

    async def delete_subject(self, subject_id: str) -> None: ...

    async def list_chapters(self, subject_id: str) -> list[Chapter]: ...

    async def add_chapter(self, subject_id: str, name: str) -> Chapter: ...

    async def update_chapter(
        self, subject_id: str, chapter_id: str, fields: dict[str, Any]
    ) -> Chapter: ...

    async def delete_chapter(self, subject_id: str, chapter_id: str) -> None: ...

    async def get_config(self) -> TrackerConfig: ...

    async def update_config(self, fields: dict[str, Any]) -> TrackerConfig: ...


def _error_message(body: Any) -> str | None:
    """Pull a human-readable message out of an error response body."""
    if not isinstance(body, dict):
        return None
    for key in ("message", "error"):
        if isinstance(body.get(key), str):
            return body[key]
    detail = body.get("detail")
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        # FastAPI request-validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict))
    return None


class StoreClient:
    """HTTP implementation of :class:`RemoteStore`.

    Args:
        base_url: Remote Store root URL.  Defaults to ``Settings.api_base_url``.
        timeout: Per-request timeout in seconds.  Defaults to
            ``Settings.request_timeout_seconds``.
        http_client: Pre-built ``httpx.AsyncClient`` (tests pass one bound to
            an ``ASGITransport`` or ``MockTransport``).  The caller keeps
            ownership of an injected client.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.request_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            StoreUnavailableError: The request never got a response.
            RemoteNotFoundError: 404.
            RemoteValidationError: 400 or 422.
            RemoteStoreError: Any other non-success status.
        """
        try:
            response = await self._http.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out: %s", method, path, exc)
            raise StoreUnavailableError(f"Request timed out: {method} {path}") from exc
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise StoreUnavailableError(f"Could not reach the store: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success:
            return body

        message = _error_message(body) or "Server error"
        status_code = response.status_code
        logger.info("%s %s → %d: %s", method, path, status_code, message)
        if status_code == 404:
            raise RemoteNotFoundError(message, status_code)
        if status_code in (400, 422):
            raise RemoteValidationError(message, status_code)
        raise RemoteStoreError(message, status_code)

    @staticmethod
    def _parse(parser: Any, body: Any) -> Any:
        try:
            return parser(body)
        except ValidationError as exc:
            raise RemoteStoreError(f"Malformed response from store: {exc}") from exc

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    async def list_subjects(self) -> list[Subject]:
        body = await self._request("GET", "/subjects")
        return self._parse(_SUBJECT_LIST.validate_python, body)

    async def create_subject(self, name: str) -> Subject:
        body = await self._request("POST", "/subjects", {"name": name})
        return self._parse(Subject.model_validate, body)

    async def rename_subject(self, subject_id: str, name: str) -> Subject:
        body = await self._request("PUT", f"/subjects/{subject_id}", {"name": name})
        return self._parse(Subject.model_validate, body)

    async def delete_subject(self, subject_id: str) -> None:
        await self._request("DELETE", f"/subjects/{subject_id}")

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    async def list_chapters(self, subject_id: str) -> list[Chapter]:
        body = await self._request("GET", f"/subjects/{subject_id}/chapters")
        return self._parse(_CHAPTER_LIST.validate_python, body)

    async def add_chapter(self, subject_id: str, name: str) -> Chapter:
        body = await self._request("POST", f"/subjects/{subject_id}/chapters", {"name": name})
        return self._parse(Chapter.model_validate, body)

    async def update_chapter(
        self, subject_id: str, chapter_id: str, fields: dict[str, Any]
    ) -> Chapter:
        """Send a partial chapter update (snake_case field names)."""
        payload = ChapterUpdate(**fields).model_dump(by_alias=True, exclude_unset=True)
        body = await self._request(
            "PUT", f"/subjects/{subject_id}/chapters/{chapter_id}", payload
        )
        return self._parse(Chapter.model_validate, body)

    async def delete_chapter(self, subject_id: str, chapter_id: str) -> None:
        await self._request("DELETE", f"/subjects/{subject_id}/chapters/{chapter_id}")

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    async def get_config(self) -> TrackerConfig:
        body = await self._request("GET", "/config")
        return self._parse(TrackerConfig.model_validate, body)

    async def update_config(self, fields: dict[str, Any]) -> TrackerConfig:
        payload = ConfigUpdate(**fields).model_dump(by_alias=True, exclude_unset=True)
        body = await self._request("PUT", "/config", payload)
        return self._parse(TrackerConfig.model_validate, body)
