"""Form validation: rule engine, booking schema and enquiry schema."""

from .booking import (
    BOOKING_VALIDATION_SCHEMA,
    build_booking_schema,
    validate_booking_data,
    validate_field_realtime,
    validate_service_availability,
    validate_stylist_availability,
    validate_time_slot,
)
from .engine import (
    ValidationResult,
    ValidationRule,
    ValidationSchema,
    clear_field_error,
    get_field_error,
    get_validation_errors_string,
    has_field_error,
    resolve_path,
    validate_field,
    validate_object,
)
from .forms import ENQUIRY_VALIDATION_SCHEMA, validate_enquiry_data

__all__ = [
    "BOOKING_VALIDATION_SCHEMA",
    "ENQUIRY_VALIDATION_SCHEMA",
    "ValidationResult",
    "ValidationRule",
    "ValidationSchema",
    "build_booking_schema",
    "clear_field_error",
    "get_field_error",
    "get_validation_errors_string",
    "has_field_error",
    "resolve_path",
    "validate_booking_data",
    "validate_enquiry_data",
    "validate_field",
    "validate_field_realtime",
    "validate_object",
    "validate_service_availability",
    "validate_stylist_availability",
    "validate_time_slot",
]
