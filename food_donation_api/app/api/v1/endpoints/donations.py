"""
Donation endpoints for API v1.

Browsing is public.  Posting, editing and removing donations requires
a ``restaurant`` user; editing and removing additionally require that
the user owns the donation's restaurant (checked in the service).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from food_donation_api.app.core.security import require_roles
from food_donation_api.app.schemas.common import DonationCategory, MessageResponse, UserType
from food_donation_api.app.schemas.donation import (
    DonationCreate,
    DonationListResponse,
    DonationResponse,
    DonationUpdate,
)
from food_donation_api.app.schemas.user import UserRead
from food_donation_api.app.services.donation_service import DonationService


router = APIRouter()

restaurant_only = require_roles(UserType.RESTAURANT)


@router.post("", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def create_donation(
    data: DonationCreate,
    current_user: UserRead = Depends(restaurant_only),
) -> DonationResponse:
    """Post a donation for the current user's restaurant.

    Returns 404 if the user has not registered a restaurant yet.
    """
    donation = await DonationService.create_donation(data, current_user.id)
    return DonationResponse(donation=donation)


@router.get("", response_model=DonationListResponse)
async def list_donations(
    category: Optional[DonationCategory] = Query(None),
    is_available: Optional[str] = Query(None, alias="isAvailable"),
) -> DonationListResponse:
    """List donations, newest first.

    - **category**: one of `vegetarian`, `non-vegetarian`, `vegan`, `bakery`.
    - **isAvailable**: `true` selects available donations and any other
      value unavailable ones; omitted or empty returns both.
    """
    available = is_available == "true" if is_available else None
    donations = await DonationService.list_donations(category=category, is_available=available)
    return DonationListResponse(count=len(donations), donations=donations)


@router.get("/nearby", response_model=DonationListResponse)
async def nearby_donations(
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    distance: Optional[float] = Query(None, description="Search radius in kilometres (default 10)"),
) -> DonationListResponse:
    """Available donations with a future pickup time near ``(lat, lng)``."""
    donations = await DonationService.get_nearby_donations(lat, lng, distance)
    return DonationListResponse(count=len(donations), donations=donations)


@router.get("/restaurant/{restaurant_id}", response_model=DonationListResponse)
async def restaurant_donations(restaurant_id: int) -> DonationListResponse:
    """Available donations of one restaurant, soonest pickup first."""
    donations = await DonationService.list_donations_by_restaurant(restaurant_id)
    return DonationListResponse(count=len(donations), donations=donations)


@router.put("/{donation_id}", response_model=DonationResponse)
async def update_donation(
    donation_id: int,
    patch: DonationUpdate,
    current_user: UserRead = Depends(restaurant_only),
) -> DonationResponse:
    """Partially update a donation owned by the current user."""
    donation = await DonationService.update_donation(donation_id, current_user.id, patch)
    return DonationResponse(donation=donation)


@router.delete("/{donation_id}", response_model=MessageResponse)
async def delete_donation(
    donation_id: int,
    current_user: UserRead = Depends(restaurant_only),
) -> MessageResponse:
    await DonationService.delete_donation(donation_id, current_user.id)
    return MessageResponse(message="Donation removed")
