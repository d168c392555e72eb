"""Subject routes.

Provides:
    GET    /subjects               - All subjects with their chapters.
    POST   /subjects               - Create a subject.
    PUT    /subjects/{subject_id}  - Rename a subject.
    DELETE /subjects/{subject_id}  - Delete a subject and all its chapters.

Blank names and unknown ids raise domain exceptions that the handlers in
``study_tracker.main`` turn into 400 / 404 responses.
"""

import logging

from fastapi import APIRouter, status

from study_tracker.api.dependencies import StoreDep
from study_tracker.models.subject import Subject
from study_tracker.schemas.subject import AckResponse, SubjectCreate, SubjectRename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects", tags=["subjects"])


@router.get("", response_model=list[Subject], summary="List subjects")
def list_subjects(store: StoreDep) -> list[Subject]:
    return store.list_subjects()


@router.post(
    "",
    response_model=Subject,
    status_code=status.HTTP_201_CREATED,
    summary="Create a subject",
    responses={400: {"description": "Blank name"}},
)
def create_subject(payload: SubjectCreate, store: StoreDep) -> Subject:
    return store.create_subject(payload.name)


@router.put(
    "/{subject_id}",
    response_model=Subject,
    summary="Rename a subject",
    responses={400: {"description": "Blank name"}, 404: {"description": "Subject not found"}},
)
def rename_subject(subject_id: str, payload: SubjectRename, store: StoreDep) -> Subject:
    return store.rename_subject(subject_id, payload.name)


@router.delete(
    "/{subject_id}",
    response_model=AckResponse,
    summary="Delete a subject and its chapters",
    responses={404: {"description": "Subject not found"}},
)
def delete_subject(subject_id: str, store: StoreDep) -> AckResponse:
    store.delete_subject(subject_id)
    return AckResponse()
