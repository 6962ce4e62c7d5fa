"""
Error handling utilities: API error parsing, user-facing messages,
retry classification and a generic retry helper.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from utils.datetime_utils import utc_now
from utils.exceptions import (
    ApiValidationError,
    BookingError,
    EnliveError,
    FetchFailedError,
    NetworkError,
)
from utils.logging_config import get_logger

logger = get_logger(__name__, log_file="errors.log")

T = TypeVar("T")

_FRIENDLY_BOOKING_MESSAGES = {
    "BOOKING_CONFLICT": "This time slot is no longer available. Please choose a different time.",
    "STYLIST_UNAVAILABLE": "The selected stylist is not available. Please choose a different stylist or time.",
    "SERVICE_UNAVAILABLE": "This service is currently unavailable. Please try a different service.",
    "TIME_SLOT_UNAVAILABLE": "This time slot is not available. Please select a different time.",
    "RATE_LIMITED": "Please wait a moment before trying again.",
    "SERVER_ERROR": "Something went wrong on our end. Please try again in a few moments.",
}


def parse_transport_error(error: httpx.RequestError) -> NetworkError:
    """Convert an httpx transport failure into a NetworkError."""
    if isinstance(error, httpx.TimeoutException):
        return NetworkError("Request timed out. Please try again.")
    if isinstance(error, httpx.ConnectError):
        return NetworkError(
            "Network connection failed. Please check your internet connection."
        )
    return NetworkError(str(error) or "Network request failed")


def parse_api_error(status_code: int, payload: Optional[Dict[str, Any]]) -> EnliveError:
    """
    Map an API error response to a typed error.

    Args:
        status_code: HTTP status of the response
        payload: Decoded JSON body ({success, message, errors?}), if any

    Returns:
        The most specific EnliveError subclass for the response
    """
    payload = payload or {}
    message = str(payload.get("message") or "")
    errors = payload.get("errors")

    if isinstance(errors, list) and errors:
        return ApiValidationError(message or "Validation failed", errors)

    lowered = message.lower()

    if "already booked" in lowered or "conflict" in lowered:
        return BookingError(message, "BOOKING_CONFLICT")

    if "stylist is not available" in lowered:
        return BookingError(message, "STYLIST_UNAVAILABLE", field="stylistId")

    if "service is not available" in lowered:
        return BookingError(message, "SERVICE_UNAVAILABLE", field="serviceId")

    if "time slot" in lowered:
        return BookingError(
            message, "TIME_SLOT_UNAVAILABLE", field="timeSlot", retryable=True
        )

    if status_code == 429:
        return BookingError(
            "Too many requests. Please wait a moment and try again.",
            "RATE_LIMITED",
            retryable=True,
        )

    if status_code >= 500:
        return BookingError(
            "Server error. Please try again later.", "SERVER_ERROR", retryable=True
        )

    return BookingError(message or f"HTTP {status_code}: request failed")


def get_user_friendly_message(error: BaseException) -> str:
    """Get a message suitable for showing to a customer."""
    if isinstance(error, FetchFailedError):
        return get_user_friendly_message(error.cause)

    if isinstance(error, BookingError):
        return _FRIENDLY_BOOKING_MESSAGES.get(error.code, error.message)

    if isinstance(error, ApiValidationError):
        return "Please check your input and try again."

    if isinstance(error, NetworkError):
        return "Connection problem. Please check your internet connection and try again."

    return str(error) or "An unexpected error occurred. Please try again."


def is_retryable_error(error: BaseException) -> bool:
    """Check if an operation that raised ``error`` is worth retrying."""
    if isinstance(error, EnliveError):
        return error.retryable

    if isinstance(error, httpx.RequestError):
        return True

    text = str(error).lower()
    return "timeout" in text or "network" in text or "connection" in text


def get_error_details(error: BaseException) -> Dict[str, Any]:
    """Get a flat dictionary describing ``error`` for logging."""
    if isinstance(error, EnliveError):
        return {
            "message": error.message,
            "code": error.code,
            "field": getattr(error, "field", None),
            "timestamp": error.timestamp,
            "retryable": error.retryable,
        }

    return {
        "message": str(error),
        "code": "UNKNOWN_ERROR",
        "field": None,
        "timestamp": utc_now().isoformat(),
        "retryable": False,
    }


def log_error(error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error with its details and optional context."""
    details = get_error_details(error)
    logger.error(
        f"Error occurred: {details['code']} - {details['message']} "
        f"(context={context or {}})",
        exc_info=error,
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    retry_delay: float = 1.0,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` with linear backoff retries.

    Non-retryable errors are raised immediately. The delay before retry
    ``n`` is ``retry_delay * n``.

    Args:
        operation: Zero-argument coroutine factory
        max_retries: Retries after the first attempt
        retry_delay: Base delay in seconds
        on_retry: Called with (attempt, error) before each retry
        sleep: Awaitable sleep function

    Returns:
        Result of the first successful attempt
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable_error(e) or attempt >= max_retries:
                raise
            attempt += 1
            logger.warning(
                f"Operation failed (attempt {attempt}/{max_retries}): {e}. Retrying..."
            )
            if on_retry:
                on_retry(attempt, e)
            await sleep(retry_delay * attempt)
