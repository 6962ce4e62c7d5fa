"""
Booking-specific validation schema and availability checks.
"""

import re
from datetime import date, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from config import settings
from models.booking import BookingRequest
from models.service import Service
from models.stylist import Stylist
from utils.constants import (
    BOOKING_LOCATIONS,
    LOCATION_HOME,
    LOCATION_SALON,
    MAX_NOTES_LENGTH,
    MAX_SPECIAL_INSTRUCTIONS_LENGTH,
    WEEKDAYS,
)
from utils.datetime_utils import local_today, to_booking_date
from utils.validation import validate_postal_code
from validation.engine import (
    ValidationResult,
    ValidationRule,
    ValidationSchema,
    is_blank,
    resolve_path,
    validate_field,
    validate_object,
)

TIME_SLOT_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"
_TIME_SLOT_RE = re.compile(TIME_SLOT_PATTERN)

# Address fields required for home appointments, with their display names
HOME_ADDRESS_FIELDS = {
    "street": "Street address",
    "city": "City",
    "state": "State",
    "zipCode": "ZIP code",
}

BookingData = Union[Mapping[str, Any], BookingRequest]


def _date_rule(
    today: Optional[date], max_days_ahead: int
) -> Callable[[Any, Mapping[str, Any]], Optional[str]]:
    def check(value: Any, data: Mapping[str, Any]) -> Optional[str]:
        try:
            selected = to_booking_date(value)
        except ValueError:
            return "Please select a valid date"

        reference = today or local_today()
        if selected <= reference:
            return "Appointment date must be in the future"
        if selected > reference + timedelta(days=max_days_ahead):
            return (
                f"Appointment date cannot be more than {max_days_ahead} days "
                f"in the future"
            )
        return None

    return check


def _location_rule(value: Any, data: Mapping[str, Any]) -> Optional[str]:
    if value not in BOOKING_LOCATIONS:
        return "Location must be either home or salon"
    return None


def _postal_code_rule(value: Any, data: Mapping[str, Any]) -> Optional[str]:
    if not validate_postal_code(value):
        return "ZIP code must be 5-6 digits"
    return None


def build_booking_schema(
    today: Optional[date] = None, max_days_ahead: Optional[int] = None
) -> ValidationSchema:
    """
    Build the booking validation schema.

    Args:
        today: Reference date for the date window (defaults to the
            salon's current date at validation time)
        max_days_ahead: Furthest bookable day (defaults to settings)
    """
    if max_days_ahead is None:
        max_days_ahead = settings.booking_max_days_ahead

    return {
        "serviceId": ValidationRule(required=True, message="Please select a service"),
        "date": ValidationRule(
            required=True,
            message="Please select a date",
            custom=_date_rule(today, max_days_ahead),
        ),
        "timeSlot": ValidationRule(
            required=True,
            pattern=TIME_SLOT_PATTERN,
            message="Please select a valid time slot",
        ),
        "location": ValidationRule(
            required=True, message="Please select a location", custom=_location_rule
        ),
        "address.zipCode": ValidationRule(custom=_postal_code_rule),
        "notes": ValidationRule(
            max_length=MAX_NOTES_LENGTH,
            message=f"Notes cannot exceed {MAX_NOTES_LENGTH} characters",
        ),
        "specialInstructions": ValidationRule(
            max_length=MAX_SPECIAL_INSTRUCTIONS_LENGTH,
            message=(
                f"Special instructions cannot exceed "
                f"{MAX_SPECIAL_INSTRUCTIONS_LENGTH} characters"
            ),
        ),
    }


BOOKING_VALIDATION_SCHEMA = build_booking_schema()


def _as_mapping(data: BookingData) -> Mapping[str, Any]:
    if isinstance(data, BookingRequest):
        return data.to_payload()
    return data


def validate_booking_data(
    data: BookingData, today: Optional[date] = None
) -> ValidationResult:
    """
    Validate a booking submission.

    Runs the booking schema, then requires a complete address when the
    appointment is at home. Errors for address fields are keyed
    ``address.<field>``.

    Args:
        data: Camel-cased booking payload or a BookingRequest
        today: Reference date (defaults to the salon's current date)
    """
    payload = _as_mapping(data)
    schema = BOOKING_VALIDATION_SCHEMA if today is None else build_booking_schema(today)
    result = validate_object(payload, schema)

    if payload.get("location") == LOCATION_HOME:
        for field_name, label in HOME_ADDRESS_FIELDS.items():
            path = f"address.{field_name}"
            if is_blank(resolve_path(payload, path)):
                result.errors[path] = f"{label} is required for home appointments"

    return result


def validate_field_realtime(
    field_path: str, value: Any, data: BookingData, today: Optional[date] = None
) -> Optional[str]:
    """
    Validate one booking field as the user types.

    Unknown fields are never reported.
    """
    schema = BOOKING_VALIDATION_SCHEMA if today is None else build_booking_schema(today)
    rule = schema.get(field_path)
    if rule is None:
        return None
    return validate_field(value, rule, _as_mapping(data))


def validate_time_slot(time_slot: Optional[str], available_slots: Sequence[str]) -> Optional[str]:
    """Check that a time slot is still on offer."""
    if not time_slot:
        return "Please select a time slot"

    if time_slot not in available_slots:
        return "This time slot is no longer available"

    return None


def _normalize_slot(time_slot: str) -> str:
    hours, _, minutes = time_slot.partition(":")
    return f"{int(hours):02d}:{minutes}"


def validate_stylist_availability(
    stylist_id: Optional[str],
    booking_date: Union[str, date],
    time_slot: str,
    available_stylists: Sequence[Stylist],
) -> Optional[str]:
    """
    Check that the chosen stylist can take the appointment.

    Choosing a stylist is optional, so an empty id always passes.
    """
    if not stylist_id:
        return None

    stylist = next((s for s in available_stylists if s.id == stylist_id), None)
    if stylist is None:
        return "Selected stylist is not available"

    if not stylist.is_active:
        return "Selected stylist is currently inactive"

    try:
        day_of_week = WEEKDAYS[to_booking_date(booking_date).weekday()]
    except ValueError:
        return "Please select a valid date"
    if day_of_week not in stylist.working_days:
        return "Stylist is not available on this day"

    if not isinstance(time_slot, str) or not _TIME_SLOT_RE.match(time_slot):
        return "Please select a valid time slot"

    slot = _normalize_slot(time_slot)
    if slot < stylist.working_hours.start or slot > stylist.working_hours.end:
        return "Time slot is outside stylist working hours"

    return None


def validate_service_availability(
    service_id: Optional[str], location: str, available_services: Sequence[Service]
) -> Optional[str]:
    """Check that the chosen service is offered at the chosen location."""
    if not service_id:
        return "Please select a service"

    service = next((s for s in available_services if s.id == service_id), None)
    if service is None:
        return "Selected service is not available"

    if not service.is_active:
        return "Selected service is currently inactive"

    if location == LOCATION_HOME and not service.available_at_home:
        return "This service is not available at home"

    if location == LOCATION_SALON and not service.available_at_salon:
        return "This service is not available at salon"

    return None
