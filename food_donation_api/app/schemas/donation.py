"""
Pydantic models for food donations.

``DonationCreate`` and ``DonationUpdate`` share the same field rules:
the category must be one of ``DonationCategory``, the quantity is a
positive number of servings and the pickup time has to lie in the
future.  Timestamps without a timezone are interpreted as UTC.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from .common import APIModel, DonationCategory
from .restaurant import RestaurantSummary


def _future_pickup(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value <= datetime.now(timezone.utc):
        raise ValueError("Pickup time must be in the future")
    return value


class DonationCreate(APIModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category: DonationCategory = Field(..., examples=["vegetarian"])
    description: str = Field(..., min_length=1, examples=["Fresh vegetable pasta"])
    quantity: int = Field(..., gt=0, description="Number of servings", examples=[20])
    pickup_time: datetime = Field(..., examples=["2030-03-27T18:00:00Z"])

    @field_validator("pickup_time")
    @classmethod
    def pickup_in_future(cls, v: datetime) -> datetime:
        return _future_pickup(v)


class DonationUpdate(APIModel):
    """Schema for updating a donation.

    All fields are optional; only provided fields will be updated.
    Toggling ``isAvailable`` to ``false`` is how a restaurant marks a
    donation as collected.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    category: Optional[DonationCategory] = None
    description: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, gt=0)
    pickup_time: Optional[datetime] = None
    is_available: Optional[bool] = None

    @field_validator("pickup_time")
    @classmethod
    def pickup_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        return _future_pickup(v)


class DonationRead(APIModel):
    id: int
    category: DonationCategory
    description: str
    quantity: int
    pickup_time: datetime
    is_available: bool
    restaurant: RestaurantSummary
    created_at: datetime


class DonationResponse(APIModel):
    success: bool = True
    donation: DonationRead


class DonationListResponse(APIModel):
    success: bool = True
    count: int
    donations: List[DonationRead]
