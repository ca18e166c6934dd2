"""
Custom exception classes for PageVault.

Every exception raised by the content, session and user services maps to
one HTTP status code so the request layer can translate it without
knowing which service raised it.

Exception Hierarchy:
    PageVaultException (base, 500)
    ├── ValidationError (400)
    ├── AuthenticationError (401)
    ├── AuthorizationError (403)
    ├── ResourceNotFoundError (404)
    ├── ConflictError (409)
    ├── ContentTooLargeError (413)
    ├── RateLimitError (429)
    ├── UnsupportedOperationError (501)
    └── ServiceUnavailableError (503)
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine-readable identifiers for error conditions (used in logs)."""

    INTERNAL_ERROR = "INTERNAL_ERROR"

    # 400
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PAGE_ID = "INVALID_PAGE_ID"
    INVALID_ROLE = "INVALID_ROLE"
    INVALID_WORKFLOW_STATUS = "INVALID_WORKFLOW_STATUS"

    # 401
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_SESSION = "INVALID_SESSION"

    # 403
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # 404
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    REVISION_NOT_FOUND = "REVISION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # 409
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    # 413
    CONTENT_TOO_LARGE = "CONTENT_TOO_LARGE"

    # 429
    RATE_LIMITED = "RATE_LIMITED"

    # 501
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"

    # 503
    FEATURE_DISABLED = "FEATURE_DISABLED"


class PageVaultException(Exception):
    """
    Base exception class for all PageVault errors.

    Attributes:
        message: Human-readable error message returned to the caller.
        error_code: Machine-readable error code from ErrorCode enum.
        status_code: HTTP status code to return.
        details: Additional context for logging.
        internal_message: Detailed message for logging only.
    """

    status_code: int = 500
    default_error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Server error"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        self.internal_message = internal_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to the response body.

        Error responses carry a single ``error`` message field.
        """
        return {"error": self.message}

    def headers(self) -> Dict[str, str]:
        """Extra response headers for this error."""
        return {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code.value!r}, "
            f"status_code={self.status_code})"
        )


# =============================================================================
# Validation Errors (400 Bad Request)
# =============================================================================

class ValidationError(PageVaultException):
    """
    Raised when request data is malformed or missing.

    Always user-correctable; never retried automatically.
    """

    status_code = 400
    default_error_code = ErrorCode.VALIDATION_ERROR
    default_message = "Invalid request data"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            internal_message=internal_message,
        )


# =============================================================================
# Authentication Errors (401 Unauthorized)
# =============================================================================

class AuthenticationError(PageVaultException):
    """Raised for missing, invalid or expired sessions and bad credentials."""

    status_code = 401
    default_error_code = ErrorCode.AUTHENTICATION_REQUIRED
    default_message = "Login required"

    def headers(self) -> Dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


# =============================================================================
# Authorization Errors (403 Forbidden)
# =============================================================================

class AuthorizationError(PageVaultException):
    """Raised when the session's role does not permit the action."""

    status_code = 403
    default_error_code = ErrorCode.PERMISSION_DENIED
    default_message = "Permission denied"

    def __init__(
        self,
        message: Optional[str] = None,
        required_role: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        details = details or {}
        if required_role:
            details["required_role"] = required_role

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            internal_message=internal_message,
        )


# =============================================================================
# Resource Not Found Errors (404 Not Found)
# =============================================================================

class ResourceNotFoundError(PageVaultException):
    """Raised for unknown pages, revisions and users."""

    status_code = 404
    default_error_code = ErrorCode.RESOURCE_NOT_FOUND
    default_message = "Not found"

    def __init__(
        self,
        message: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        details = details or {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            internal_message=internal_message,
        )


# =============================================================================
# Conflict Errors (409 Conflict)
# =============================================================================

class ConflictError(PageVaultException):
    """Raised on duplicate creation of a page or user."""

    status_code = 409
    default_error_code = ErrorCode.RESOURCE_CONFLICT
    default_message = "Resource conflict"

    def __init__(
        self,
        message: Optional[str] = None,
        resource_type: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        details = details or {}
        if resource_type:
            details["resource_type"] = resource_type

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            internal_message=internal_message,
        )


# =============================================================================
# Unsupported Operations (501 Not Implemented)
# =============================================================================

class UnsupportedOperationError(PageVaultException):
    """Raised by operations the local service intentionally does not provide."""

    status_code = 501
    default_error_code = ErrorCode.UNSUPPORTED_OPERATION
    default_message = "Operation not supported"


# =============================================================================
# Payload Too Large (413)
# =============================================================================

class ContentTooLargeError(PageVaultException):
    """Raised when a saved document exceeds the size cap."""

    status_code = 413
    default_error_code = ErrorCode.CONTENT_TOO_LARGE
    default_message = "Content exceeds size limit"

    def __init__(
        self,
        message: Optional[str] = None,
        current: Optional[str] = None,
        maximum: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        details = {}
        if current:
            details["current"] = current
        if maximum:
            details["max"] = maximum
        if suggestion:
            details["suggestion"] = suggestion
        super().__init__(message=message, details=details)

    def to_dict(self) -> Dict[str, Any]:
        """Size errors also report the measured and allowed sizes."""
        return {"error": self.message, **self.details}


# =============================================================================
# Rate Limiting (429 Too Many Requests)
# =============================================================================

class RateLimitError(PageVaultException):
    """Raised when a client exceeds a per-window request cap."""

    status_code = 429
    default_error_code = ErrorCode.RATE_LIMITED
    default_message = "Too many requests. Try again later."

    def __init__(
        self,
        message: Optional[str] = None,
        retry_after: int = 60,
        limit: Optional[int] = None,
    ):
        self.retry_after = max(1, int(retry_after))
        self.limit = limit
        super().__init__(
            message=message,
            details={"retry_after": self.retry_after, "limit": limit},
        )

    def headers(self) -> Dict[str, str]:
        headers = {"Retry-After": str(self.retry_after)}
        if self.limit is not None:
            headers["X-RateLimit-Limit"] = str(self.limit)
            headers["X-RateLimit-Remaining"] = "0"
        return headers


# =============================================================================
# Service Unavailable (503)
# =============================================================================

class ServiceUnavailableError(PageVaultException):
    """Raised by features that are switched off by configuration."""

    status_code = 503
    default_error_code = ErrorCode.FEATURE_DISABLED
    default_message = "Service unavailable"
