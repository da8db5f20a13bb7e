"""Failure taxonomy shared by every pipeline stage."""

from enum import Enum


class FailureKind(Enum):
    """Closed set of request failures and the status each one maps to."""

    SECURITY_VIOLATION = (403, "Forbidden")
    BODY_TOO_LARGE = (413, "Request Entity Too Large")
    INVALID_UPLOAD = (400, "Bad Request")
    NOT_FOUND = (404, "Not Found")
    UNCLASSIFIED = (500, "Internal Server Error")

    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        self.reason = reason


class PipelineError(Exception):
    """Base class for failures raised by pipeline stages."""

    kind = FailureKind.UNCLASSIFIED

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.reason)
        self.message = message or self.kind.reason


class SecurityViolationError(PipelineError):
    """Raised when a request path escapes the served root."""

    kind = FailureKind.SECURITY_VIOLATION


class BodyTooLargeError(PipelineError):
    """Raised when a request body exceeds the configured ceiling."""

    kind = FailureKind.BODY_TOO_LARGE


class InvalidUploadError(PipelineError):
    """Raised when an upload lacks a usable multipart content type or boundary."""

    kind = FailureKind.INVALID_UPLOAD


class NotFoundError(PipelineError):
    """Raised when the requested filesystem entry does not exist."""

    kind = FailureKind.NOT_FOUND
