"""Custom exception classes for the study tracker.

Store-side errors (validation, not-found, storage) are converted to
structured HTTP responses by the FastAPI exception handlers in
``study_tracker.main``.  Client-side errors (``RemoteStoreError`` and its
subclasses) are raised by the REST client and trigger a rollback in the
sync controller.
"""


class NameValidationError(Exception):
    """Raised when a subject or chapter name is empty or whitespace-only.

    Args:
        entity: ``"subject"`` or ``"chapter"``.
    """

    def __init__(self, entity: str) -> None:
        super().__init__(f"{entity.capitalize()} name is required.")
        self.entity: str = entity


class SubjectNotFoundError(Exception):
    """Raised when a subject id does not exist.

    Args:
        subject_id: The id that was looked up.
    """

    def __init__(self, subject_id: str) -> None:
        super().__init__(f"Subject not found: {subject_id}")
        self.subject_id: str = subject_id


class ChapterNotFoundError(Exception):
    """Raised when a chapter id does not exist within its subject.

    Args:
        subject_id: The parent subject id.
        chapter_id: The chapter id that was looked up.
    """

    def __init__(self, subject_id: str, chapter_id: str) -> None:
        super().__init__(f"Chapter not found: {chapter_id} (subject {subject_id})")
        self.subject_id: str = subject_id
        self.chapter_id: str = chapter_id


class StorageError(Exception):
    """Raised when the JSON data file cannot be read or parsed.

    Args:
        message: Detail from the underlying I/O or decode error.
        path: Path of the data file.
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path: str = path


class RemoteStoreError(Exception):
    """Raised by the REST client when a request does not succeed.

    Args:
        message: Error text, taken from the response body when available.
        status_code: HTTP status, or ``None`` when no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code: int | None = status_code


class RemoteNotFoundError(RemoteStoreError):
    """The Remote Store answered 404 (stale id)."""


class RemoteValidationError(RemoteStoreError):
    """The Remote Store rejected the payload (400 / 422)."""


class StoreUnavailableError(RemoteStoreError):
    """The Remote Store could not be reached (connection error or timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None)
