"""
Shared error handling for the Catalog Access Layer.

Errors are grouped by how a caller should react to them:

- TransientError: upstream flakiness, worth retrying
- PermanentError: validation, not-found, conflict; retrying cannot help
- CacheInternalError: the cache misbehaved; bypass it and go to the source
- OperationCancelledError: the caller's deadline or cancellation fired
- RetryError: terminal outcome of a retried call, carrying the last error
"""

from enum import Enum
from typing import Dict, Any, Optional

from pydantic import BaseModel


class ErrorClassification(str, Enum):
    """Whether a failure is worth retrying."""
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Catalog Access Layer services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class TransientError(AccessLayerException):
    """Connectivity or timeout failure from the data source."""

    def __init__(self, message: str = "Data source temporarily unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSIENT_ERROR", message, details)


class PermanentError(AccessLayerException):
    """Failure that will not go away by retrying."""

    def __init__(self, message: str = "Request cannot be completed", details: Optional[Dict[str, Any]] = None,
                 code: str = "PERMANENT_ERROR"):
        super().__init__(code, message, details)


class ValidationError(PermanentError):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="VALIDATION_ERROR")


class NotFoundError(PermanentError):
    """Requested item does not exist."""

    def __init__(self, message: str = "Item not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="NOT_FOUND")


class ConflictError(PermanentError):
    """Operation conflicts with existing data."""

    def __init__(self, message: str = "Operation conflicts with existing data", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="CONFLICT")


class CacheInternalError(AccessLayerException):
    """Failure inside the cache or key registry."""

    def __init__(self, message: str = "Cache internal error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_INTERNAL_ERROR", message, details)


class OperationCancelledError(AccessLayerException):
    """The caller's deadline expired or the operation was cancelled."""

    def __init__(self, message: str = "Operation cancelled", attempts: int = 0, elapsed: float = 0.0,
                 details: Optional[Dict[str, Any]] = None):
        self.attempts = attempts
        self.elapsed = elapsed
        merged = {"attempts": attempts, "elapsed_seconds": round(elapsed, 3)}
        merged.update(details or {})
        super().__init__("OPERATION_CANCELLED", message, merged)


class RetryError(AccessLayerException):
    """Raised when a retried operation fails for good.

    ``classification`` tells the caller whether the last failure was transient
    (retries exhausted) or permanent (failed fast).
    """

    def __init__(self, message: str, last_exception: Exception, attempts: int, elapsed: float,
                 classification: ErrorClassification):
        self.last_exception = last_exception
        self.attempts = attempts
        self.elapsed = elapsed
        self.classification = classification
        details = {
            "attempts": attempts,
            "elapsed_seconds": round(elapsed, 3),
            "classification": classification.value,
            "last_error": str(last_exception),
            "last_error_type": type(last_exception).__name__,
        }
        if isinstance(last_exception, AccessLayerException):
            details["last_error_code"] = last_exception.code
        super().__init__("RETRY_FAILED", message, details)

    @property
    def retryable(self) -> bool:
        """True when the caller may reasonably try again later."""
        return self.classification is ErrorClassification.TRANSIENT
