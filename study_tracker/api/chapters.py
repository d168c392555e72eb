"""Chapter routes, nested under their subject.

Provides:
    GET    /subjects/{subject_id}/chapters               - Chapters of a subject.
    POST   /subjects/{subject_id}/chapters               - Add a chapter.
    PUT    /subjects/{subject_id}/chapters/{chapter_id}  - Partial update.
    DELETE /subjects/{subject_id}/chapters/{chapter_id}  - Delete a chapter.
"""

import logging

from fastapi import APIRouter, status

from study_tracker.api.dependencies import StoreDep
from study_tracker.models.chapter import Chapter
from study_tracker.schemas.chapter import ChapterCreate, ChapterUpdate
from study_tracker.schemas.subject import AckResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects/{subject_id}/chapters", tags=["chapters"])


@router.get(
    "",
    response_model=list[Chapter],
    summary="List the chapters of a subject",
    responses={404: {"description": "Subject not found"}},
)
def list_chapters(subject_id: str, store: StoreDep) -> list[Chapter]:
    return store.list_chapters(subject_id)


@router.post(
    "",
    response_model=Chapter,
    status_code=status.HTTP_201_CREATED,
    summary="Add a chapter",
    responses={400: {"description": "Blank name"}, 404: {"description": "Subject not found"}},
)
def add_chapter(subject_id: str, payload: ChapterCreate, store: StoreDep) -> Chapter:
    return store.add_chapter(subject_id, payload.name)


@router.put(
    "/{chapter_id}",
    response_model=Chapter,
    summary="Update chapter fields",
    description=(
        "Apply any subset of name, the six completion criteria and"
        " revisionCount. Fields missing from the body are left unchanged."
    ),
    responses={
        400: {"description": "Blank name"},
        404: {"description": "Subject or chapter not found"},
        422: {"description": "Invalid field value (e.g. negative revisionCount)"},
    },
)
def update_chapter(
    subject_id: str, chapter_id: str, payload: ChapterUpdate, store: StoreDep
) -> Chapter:
    fields = payload.model_dump(exclude_unset=True)
    logger.debug("Chapter %s update: %s", chapter_id, sorted(fields))
    return store.update_chapter(subject_id, chapter_id, fields)


@router.delete(
    "/{chapter_id}",
    response_model=AckResponse,
    summary="Delete a chapter",
    responses={404: {"description": "Subject or chapter not found"}},
)
def delete_chapter(subject_id: str, chapter_id: str, store: StoreDep) -> AckResponse:
    store.delete_chapter(subject_id, chapter_id)
    return AckResponse()
