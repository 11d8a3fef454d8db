"""
User endpoints for API v1.
"""

from fastapi import APIRouter, Depends

from food_donation_api.app.core.security import get_current_user
from food_donation_api.app.schemas.user import ProfileResponse, UserRead
from food_donation_api.app.services.restaurant_service import RestaurantService


router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: UserRead = Depends(get_current_user)) -> ProfileResponse:
    """Return the current user and the restaurant they own.

    ``restaurant`` is ``null`` for NGOs, individuals and restaurant
    users who have not registered their restaurant yet.
    """
    restaurant = await RestaurantService.get_restaurant_by_owner(current_user.id)
    return ProfileResponse(user=current_user, restaurant=restaurant)
