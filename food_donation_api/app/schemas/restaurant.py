"""
Pydantic models for restaurants.

A restaurant's location is not part of the registration payload: it
is derived from ``address`` by the geocoding service and returned as
a GeoJSON point.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from .common import APIModel, GeoPoint


class RestaurantCreate(APIModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, examples=["Green Kitchen"])
    email: str = Field(..., min_length=3, examples=["contact@greenkitchen.com"])
    address: str = Field(..., min_length=1, examples=["123 Main St, New York, NY"])
    phone: str = Field(..., min_length=1, examples=["555-123-4567"])


class RestaurantSummary(APIModel):
    """Subset of restaurant fields attached to donations."""

    id: int
    name: str
    address: str
    location: GeoPoint


class RestaurantRead(RestaurantSummary):
    email: str
    phone: str
    # Id of the owning user.
    user: int
    created_at: datetime
    # Only filled in by nearby searches.
    distance_km: Optional[float] = None


class RestaurantResponse(APIModel):
    success: bool = True
    restaurant: RestaurantRead


class RestaurantListResponse(APIModel):
    success: bool = True
    count: int
    restaurants: List[RestaurantRead]
