"""
Custom exception classes for API, booking and fetch errors.
Provides specific error types instead of generic exceptions.
"""

from typing import Any, Dict, List, Optional

from utils.datetime_utils import utc_now


class EnliveError(Exception):
    """Base exception for the client core."""

    code = "UNKNOWN_ERROR"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.timestamp = utc_now().isoformat()


class BookingError(EnliveError):
    """Raised when the API rejects a booking operation."""

    def __init__(
        self,
        message: str,
        code: str = "BOOKING_ERROR",
        field: Optional[str] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.code = code
        self.field = field
        self.retryable = retryable


class NetworkError(EnliveError):
    """Raised when the API cannot be reached."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class ApiValidationError(EnliveError):
    """Raised when the API reports field-level validation errors."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @property
    def field_errors(self) -> Dict[str, str]:
        """Field -> message map, in the same shape as local validation."""
        return {
            str(e["field"]): str(e.get("message", ""))
            for e in self.errors
            if isinstance(e, dict) and e.get("field")
        }


class FetchFailedError(EnliveError):
    """Raised when a cached fetch fails after all retries."""

    code = "FETCH_FAILED"

    def __init__(self, key: str, attempts: int, cause: BaseException):
        super().__init__(f"Fetch for {key} failed after {attempts} attempt(s): {cause}")
        self.key = key
        self.attempts = attempts
        self.cause = cause
        self.retryable = getattr(cause, "retryable", False)
