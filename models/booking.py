"""Booking models for appointment submissions."""

from datetime import date as calendar_date
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class BookingLocation(str, Enum):
    """Where the appointment takes place."""

    HOME = "home"
    SALON = "salon"


class BookingStatus(str, Enum):
    """Appointment status as reported by the API."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class Address(BaseModel):
    """Address for home appointments."""

    model_config = ConfigDict(populate_by_name=True)

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    landmark: Optional[str] = None


class BookingRequest(BaseModel):
    """
    Booking form submission.

    Kept loose on purpose: values are checked by the validation engine
    (``validation.booking``) so every problem is reported per field
    instead of failing on the first one.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "serviceId": "64f1c2a9e4b0a1b2c3d4e5f6",
                "date": "2026-01-15",
                "timeSlot": "10:30",
                "location": "salon",
            }
        },
    )

    service_id: Optional[str] = Field(None, alias="serviceId")
    stylist_id: Optional[str] = Field(None, alias="stylistId")
    date: Optional[str] = None
    time_slot: Optional[str] = Field(None, alias="timeSlot")
    location: Optional[str] = None
    address: Optional[Address] = None
    notes: Optional[str] = None
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")

    def to_payload(self) -> Dict[str, Any]:
        """Camel-cased dictionary as sent to the API and validated."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Appointment(BaseModel):
    """Appointment record returned by the API."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str = Field(..., alias="_id")
    service_id: Optional[str] = Field(None, alias="serviceId")
    stylist_id: Optional[str] = Field(None, alias="stylistId")
    date: calendar_date
    time_slot: str = Field(..., alias="timeSlot")
    location: BookingLocation = BookingLocation.SALON
    status: BookingStatus = BookingStatus.PENDING
    total_amount: Optional[float] = Field(None, alias="totalAmount", ge=0)
    cancellation_reason: Optional[str] = Field(None, alias="cancellationReason")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
