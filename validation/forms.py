"""Validation for the contact/enquiry form."""

from typing import Any, Callable, Dict, Mapping, Optional

from utils.constants import MAX_ENQUIRY_MESSAGE_LENGTH, MAX_NAME_LENGTH
from utils.validation import sanitize_text, validate_email, validate_phone
from validation.engine import ValidationResult, ValidationRule, ValidationSchema, validate_object


def _limit(max_length: int, message: str) -> Callable[[Any, Mapping[str, Any]], Optional[str]]:
    def check(value: Any, data: Mapping[str, Any]) -> Optional[str]:
        if isinstance(value, str) and len(value) > max_length:
            return message
        return None

    return check


def _email(value: Any, data: Mapping[str, Any]) -> Optional[str]:
    if not validate_email(value):
        return "Please enter a valid email address"
    if len(value) > 100:
        return "Email cannot exceed 100 characters"
    return None


def _phone(value: Any, data: Mapping[str, Any]) -> Optional[str]:
    if not isinstance(value, str):
        return "Please enter a valid phone number"
    if len(value) > 20:
        return "Phone number cannot exceed 20 characters"
    if not validate_phone(value):
        return "Please enter a valid phone number"
    return None


ENQUIRY_VALIDATION_SCHEMA: ValidationSchema = {
    "name": ValidationRule(
        required=True,
        message="Name is required",
        custom=_limit(MAX_NAME_LENGTH, f"Name cannot exceed {MAX_NAME_LENGTH} characters"),
    ),
    "email": ValidationRule(required=True, message="Email is required", custom=_email),
    "phone": ValidationRule(required=True, message="Phone number is required", custom=_phone),
    "subject": ValidationRule(
        required=True,
        message="Subject is required",
        custom=_limit(200, "Subject cannot exceed 200 characters"),
    ),
    "message": ValidationRule(
        required=True,
        message="Message is required",
        custom=_limit(
            MAX_ENQUIRY_MESSAGE_LENGTH,
            f"Message cannot exceed {MAX_ENQUIRY_MESSAGE_LENGTH} characters",
        ),
    ),
}


def clean_enquiry_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Strip control characters and surrounding whitespace from text fields."""
    return {
        key: sanitize_text(value) if isinstance(value, str) else value
        for key, value in data.items()
    }


def validate_enquiry_data(data: Mapping[str, Any]) -> ValidationResult:
    """Validate an enquiry after sanitizing its text fields."""
    return validate_object(clean_enquiry_data(data), ENQUIRY_VALIDATION_SCHEMA)
