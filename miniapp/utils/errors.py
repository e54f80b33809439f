"""Custom exceptions for the Mini App backend."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Tagged failure vocabulary exposed to request handlers."""

    PROFILE_REQUIRED = "PROFILE_REQUIRED"
    PROFILE_NOT_ACTIVE = "PROFILE_NOT_ACTIVE"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    CANNOT_SWIPE_SELF = "CANNOT_SWIPE_SELF"
    CANNOT_REPORT_SELF = "CANNOT_REPORT_SELF"
    CANNOT_REPORT_OWN_LISTING = "CANNOT_REPORT_OWN_LISTING"
    CANNOT_PURCHASE_OWN_LISTING = "CANNOT_PURCHASE_OWN_LISTING"
    ALREADY_REPORTED = "ALREADY_REPORTED"
    LISTING_NOT_FOUND_OR_ARCHIVED = "LISTING_NOT_FOUND_OR_ARCHIVED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_REASON = "INVALID_REASON"
    INVALID_STATUS = "INVALID_STATUS"
    REQUIRED_FIELDS = "REQUIRED_FIELDS"
    PURPOSE_REQUIRED = "PURPOSE_REQUIRED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    LISTING_NOT_FOUND = "LISTING_NOT_FOUND"
    REPORT_NOT_FOUND = "REPORT_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"


class MiniAppError(Exception):
    """Base exception for all Mini App errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the error with a message, a failure code and optional details.

        Args:
            message (str): Error message describing what went wrong.
            code (ErrorCode): Tagged failure returned to the client.
            status_code (int): HTTP status code associated with the error (default 500).
            details (Optional[Dict[str, Any]]): Additional context or debug information.
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(MiniAppError):
    """Raised when there's an issue with the application configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorCode.INTERNAL_ERROR, 500, details)


class DatabaseError(MiniAppError):
    """Raised when a storage operation fails.

    Always surfaced to clients as an opaque ``INTERNAL_ERROR``.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorCode.INTERNAL_ERROR, 500, details)


class DuplicateRecordError(DatabaseError):
    """Raised when an insert or upsert violates a uniqueness constraint."""


class ValidationError(MiniAppError):
    """Raised when input or a domain precondition is rejected."""

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.INVALID_INPUT, details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, code, 400, details)


class AuthenticationError(MiniAppError):
    """Raised when the acting user cannot be resolved."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorCode.UNAUTHORIZED, 401, details)


class ForbiddenError(MiniAppError):
    """Raised when the acting user may not perform an action."""

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.FORBIDDEN, details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, code, 403, details)


class NotFoundError(MiniAppError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str, code: ErrorCode, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code, 404, details)


class ConflictError(MiniAppError):
    """Raised when an action collides with existing state (e.g. a duplicate report)."""

    def __init__(self, message: str, code: ErrorCode, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code, 409, details)
