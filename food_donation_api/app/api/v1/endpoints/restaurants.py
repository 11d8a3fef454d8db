"""
Restaurant endpoints for API v1.

Listing and lookup are public.  Registering a restaurant requires a
user of type ``restaurant``; the address is geocoded once at that
point.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from food_donation_api.app.core.security import require_roles
from food_donation_api.app.schemas.common import UserType
from food_donation_api.app.schemas.restaurant import (
    RestaurantCreate,
    RestaurantListResponse,
    RestaurantResponse,
)
from food_donation_api.app.schemas.user import UserRead
from food_donation_api.app.services.restaurant_service import RestaurantService


router = APIRouter()


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def register_restaurant(
    data: RestaurantCreate,
    current_user: UserRead = Depends(require_roles(UserType.RESTAURANT)),
) -> RestaurantResponse:
    """Register the current user's restaurant."""
    restaurant = await RestaurantService.register_restaurant(data, current_user.id)
    return RestaurantResponse(restaurant=restaurant)


@router.get("", response_model=RestaurantListResponse)
async def list_restaurants() -> RestaurantListResponse:
    restaurants = await RestaurantService.list_restaurants()
    return RestaurantListResponse(count=len(restaurants), restaurants=restaurants)


@router.get("/nearby", response_model=RestaurantListResponse)
async def nearby_restaurants(
    lat: Optional[float] = Query(None, description="Latitude of the search centre"),
    lng: Optional[float] = Query(None, description="Longitude of the search centre"),
    distance: Optional[float] = Query(None, description="Search radius in kilometres (default 10)"),
) -> RestaurantListResponse:
    """Restaurants within ``distance`` km of ``(lat, lng)``, nearest first.

    Both ``lat`` and ``lng`` are required; omitting either yields 400.
    """
    restaurants = await RestaurantService.get_nearby_restaurants(lat, lng, distance)
    return RestaurantListResponse(count=len(restaurants), restaurants=restaurants)


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(restaurant_id: int) -> RestaurantResponse:
    restaurant = await RestaurantService.get_restaurant(restaurant_id)
    return RestaurantResponse(restaurant=restaurant)
