"""Stylist models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkingHours(BaseModel):
    """Daily working window, as zero-padded HH:MM strings."""

    start: str = "09:00"
    end: str = "18:00"


class Stylist(BaseModel):
    """Stylist model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    specialties: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    is_active: bool = Field(True, alias="isActive")
    working_days: List[str] = Field(default_factory=list, alias="workingDays")
    working_hours: WorkingHours = Field(
        default_factory=WorkingHours, alias="workingHours"
    )
    photo: Optional[str] = None

    @field_validator("working_days")
    @classmethod
    def normalize_working_days(cls, v: List[str]) -> List[str]:
        """Store weekday names lower-cased."""
        return [day.strip().lower() for day in v]
