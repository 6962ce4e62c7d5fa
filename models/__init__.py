"""Pydantic models for data validation and serialization."""

from .api import ApiResponse
from .booking import Address, Appointment, BookingLocation, BookingRequest, BookingStatus
from .service import Discount, Service
from .stylist import Stylist, WorkingHours

__all__ = [
    "Address",
    "ApiResponse",
    "Appointment",
    "BookingLocation",
    "BookingRequest",
    "BookingStatus",
    "Discount",
    "Service",
    "Stylist",
    "WorkingHours",
]
