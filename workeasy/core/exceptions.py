"""
Application errors.

Every handler-level failure is raised as a ``WorkeasyError`` subclass and
rendered into the JSON envelope by the exception handlers registered in
``workeasy.main``. ``message`` may be an i18n catalog key; the handler
translates it into the request locale.
"""

from enum import Enum
from typing import Any

from postgrest.exceptions import APIError

UNIQUE_VIOLATION = "23505"
NO_ROWS = "PGRST116"
UNKNOWN_FUNCTION = "PGRST202"


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


class WorkeasyError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code: int = 500
    error_type: ErrorType = ErrorType.INTERNAL

    def __init__(
        self,
        message: str,
        details: Any = None,
        code: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code
        self.params = params or {}

    def to_dict(self, message: str | None = None) -> dict[str, Any]:
        """Convert error to the response envelope."""
        body: dict[str, Any] = {"success": False, "error": message or self.message}
        if self.code:
            body["code"] = self.code
        if self.details is not None:
            body["details"] = self.details
        return body


class BadRequestError(WorkeasyError):
    status_code = 400
    error_type = ErrorType.VALIDATION


class AuthenticationError(WorkeasyError):
    status_code = 401
    error_type = ErrorType.AUTHENTICATION

    def __init__(self, message: str = "errors.authRequired", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class PermissionDeniedError(WorkeasyError):
    status_code = 403
    error_type = ErrorType.PERMISSION

    def __init__(
        self, message: str = "errors.insufficientPermissions", **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class NotFoundError(WorkeasyError):
    status_code = 404
    error_type = ErrorType.NOT_FOUND


class ConflictError(WorkeasyError):
    status_code = 409
    error_type = ErrorType.CONFLICT


class UpstreamError(WorkeasyError):
    """Raised when the hosted backend rejects or fails a call."""

    status_code = 500
    error_type = ErrorType.UPSTREAM


def from_api_error(exc: APIError, not_found: str = "errors.notFound") -> WorkeasyError:
    """Map a PostgREST error onto the matching application error."""
    if exc.code == UNIQUE_VIOLATION:
        return ConflictError("errors.duplicate", code=exc.code)
    if exc.code == NO_ROWS:
        return NotFoundError(not_found, code=exc.code)
    return UpstreamError(exc.message or "errors.internal", code=exc.code)
