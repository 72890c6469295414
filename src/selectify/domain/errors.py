"""Error taxonomy shared by services, adapters and the HTTP layer."""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error codes exposed to clients."""

    VALIDATION_FAILED = "validation_failed"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    STORE_UNAVAILABLE = "store_unavailable"
    PARTIAL_UPLOAD_FAILURE = "partial_upload_failure"
    SWEEP_IN_PROGRESS = "sweep_in_progress"


class SelectifyError(Exception):
    """Base class for application errors.

    ``message`` is safe to show to clients; internal details travel only on
    the chained ``__cause__``.
    """

    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SelectifyError):
    """Missing or malformed request fields."""

    code = ErrorCode.VALIDATION_FAILED
    default_message = "Invalid request"


class UnauthorizedError(SelectifyError):
    """Missing or invalid bearer token."""

    code = ErrorCode.UNAUTHORIZED
    default_message = "Authentication required"


class NotFoundError(SelectifyError):
    """Unknown or expired identifier."""

    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class ForbiddenError(SelectifyError):
    """Visit threshold exceeded."""

    code = ErrorCode.FORBIDDEN
    default_message = "Link has been visited too many times"


class StoreUnavailable(SelectifyError):
    """Blob or metadata store I/O failure, including timeouts."""

    code = ErrorCode.STORE_UNAVAILABLE
    default_message = "Storage is temporarily unavailable"


class PartialUploadFailure(SelectifyError):
    """Some files of an upload batch could not be stored."""

    code = ErrorCode.PARTIAL_UPLOAD_FAILURE
    default_message = "Some photos could not be uploaded"

    def __init__(self, failed_files: list[str]) -> None:
        super().__init__()
        self.failed_files = failed_files


class SweepInProgressError(SelectifyError):
    """A retention sweep is already running."""

    code = ErrorCode.SWEEP_IN_PROGRESS
    default_message = "A retention sweep is already running"
