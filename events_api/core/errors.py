"""Error taxonomy shared by services and the HTTP layer."""
import enum


class ErrorCode(str, enum.Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PAST_EVENT = "PAST_EVENT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    EVENT_FULL = "EVENT_FULL"
    INTERNAL = "INTERNAL"


class ServiceError(Exception):
    """Base error. ``message`` is safe to return to the caller."""

    code = ErrorCode.INTERNAL
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(ServiceError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class PastEvent(ValidationError):
    code = ErrorCode.PAST_EVENT


class Unauthenticated(ServiceError):
    code = ErrorCode.UNAUTHENTICATED
    status_code = 401


class Unauthorized(ServiceError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401


class InvalidToken(ServiceError):
    code = ErrorCode.INVALID_TOKEN
    status_code = 403


class NotFound(ServiceError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class Conflict(ServiceError):
    code = ErrorCode.CONFLICT
    status_code = 409


class DuplicateEmail(Conflict):
    code = ErrorCode.DUPLICATE_EMAIL


class AlreadyRegistered(Conflict):
    code = ErrorCode.ALREADY_REGISTERED


class EventFull(ValidationError):
    code = ErrorCode.EVENT_FULL


class InternalError(ServiceError):
    """Unexpected data-store failure. The detail is logged, never returned."""

    code = ErrorCode.INTERNAL
    status_code = 500
