"""Application error kinds and the exception hierarchy used across services and routes."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error classification; the value is the `name` field of the error response."""

    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    UNPROCESSABLE_ENTITY = "UnprocessableEntity"
    TOO_MANY_REQUESTS = "TooManyRequests"
    INTERNAL_ERROR = "InternalError"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNPROCESSABLE_ENTITY: 422,
    ErrorKind.TOO_MANY_REQUESTS: 429,
    ErrorKind.INTERNAL_ERROR: 500,
}


class AppError(Exception):
    """
    Error with a known kind, a caller-facing message and optional details.

    details are diagnostic; for INTERNAL_ERROR they are logged but never sent to the caller.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: Any = None,
        kind: ErrorKind | None = None,
    ) -> None:
        if kind is not None:
            self.kind = kind
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @classmethod
    def bad_request(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.BAD_REQUEST)

    @classmethod
    def unauthorized(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.UNAUTHORIZED)

    @classmethod
    def forbidden(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.FORBIDDEN)

    @classmethod
    def not_found(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.NOT_FOUND)

    @classmethod
    def conflict(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.CONFLICT)

    @classmethod
    def unprocessable(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.UNPROCESSABLE_ENTITY)

    @classmethod
    def too_many_requests(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.TOO_MANY_REQUESTS)

    @classmethod
    def internal(cls, message: str, details: Any = None) -> AppError:
        return cls(message, details, ErrorKind.INTERNAL_ERROR)

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing error body: name, message and (except for internal errors) details."""
        body: dict[str, Any] = {"name": self.kind.value, "message": self.message}
        if self.details is not None and self.kind is not ErrorKind.INTERNAL_ERROR:
            body["details"] = self.details
        return body


class ConfigError(AppError):
    """Missing or invalid signing configuration or key material. Never caused by caller input."""

    kind = ErrorKind.INTERNAL_ERROR


class StoreError(AppError):
    """The credential or note store failed (connection, constraint, driver error)."""

    kind = ErrorKind.INTERNAL_ERROR


class TokenError(AppError):
    """A presented access token cannot be trusted."""

    kind = ErrorKind.UNAUTHORIZED


class InvalidTokenError(TokenError):
    """Malformed token, bad signature or unexpected algorithm."""


class ExpiredTokenError(TokenError):
    """The token's exp claim has elapsed."""


class NotYetValidError(TokenError):
    """The token's nbf claim is in the future."""


def as_app_error(exc: Exception, message: str) -> AppError:
    """Pass known errors through unchanged; wrap anything else as an internal error."""
    if isinstance(exc, AppError):
        return exc
    return AppError.internal(message, details=repr(exc))
