"""
Shared schema building blocks.

All API models derive from ``APIModel`` so that JSON payloads use
camelCase keys (``pickupTime``, ``isAvailable``, ``userType``) while the
Python side keeps snake_case attribute names.  Input is accepted in
either form.
"""

from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserType(str, Enum):
    """Roles a user can register with."""

    RESTAURANT = "restaurant"
    NGO = "ngo"
    INDIVIDUAL = "individual"


class DonationCategory(str, Enum):
    VEGETARIAN = "vegetarian"
    NON_VEGETARIAN = "non-vegetarian"
    VEGAN = "vegan"
    BAKERY = "bakery"


class GeoPoint(APIModel):
    """GeoJSON point.  Coordinates are ``[longitude, latitude]``."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2, examples=[[-74.006, 40.7128]])

    @classmethod
    def from_lat_lng(cls, latitude: float, longitude: float) -> "GeoPoint":
        return cls(coordinates=[longitude, latitude])


class MessageResponse(APIModel):
    success: bool = True
    message: str
