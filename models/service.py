"""Service models for the salon catalogue."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Discount(BaseModel):
    """Percentage discount attached to a service."""

    model_config = ConfigDict(populate_by_name=True)

    percentage: float = Field(..., ge=0, le=100)
    is_active: bool = Field(False, alias="isActive")
    valid_from: Optional[str] = Field(None, alias="validFrom")
    valid_until: Optional[str] = Field(None, alias="validUntil")


class Service(BaseModel):
    """Service model."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "64f1c2a9e4b0a1b2c3d4e5f6",
                "name": "Hair Spa",
                "description": "Deep conditioning treatment",
                "duration": 60,
                "price": 1200,
                "currency": "INR",
                "category": "hair",
                "subCategory": "treatment",
            }
        },
    )

    id: str = Field(..., alias="_id")
    name: str
    description: str = ""
    duration: int = Field(..., ge=0, description="Duration in minutes")
    price: float = Field(..., ge=0)
    currency: str = "INR"
    category: str = ""
    sub_category: str = Field("", alias="subCategory")
    icon: Optional[str] = None
    photo: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_featured: bool = Field(False, alias="isFeatured")
    is_active: bool = Field(True, alias="isActive")
    available_at_home: bool = Field(False, alias="availableAtHome")
    available_at_salon: bool = Field(True, alias="availableAtSalon")
    discount: Optional[Discount] = None

    @property
    def effective_price(self) -> float:
        """Price after an active discount."""
        if self.discount and self.discount.is_active:
            return self.price - self.price * self.discount.percentage / 100
        return self.price
