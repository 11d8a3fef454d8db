"""
Authentication endpoints for API v1.

Registration and login return a bearer token together with the user.
Clients send the token back as ``Authorization: Bearer <token>`` on
protected routes.
"""

from fastapi import APIRouter, Depends, status

from food_donation_api.app.core.security import get_current_user
from food_donation_api.app.schemas.user import AuthResponse, UserCreate, UserLogin, UserRead, UserResponse
from food_donation_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate) -> AuthResponse:
    """Register a restaurant, NGO or individual user.

    Duplicate e‑mails are rejected with 400.  The new user is logged in
    straight away, so the response already carries a token.
    """
    user = await UserService.register(data)
    return AuthResponse(token=UserService.issue_token(user), user=user)


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin) -> AuthResponse:
    """Exchange e‑mail and password for a bearer token."""
    token, user = await UserService.login(credentials.email, credentials.password)
    return AuthResponse(token=token, user=user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: UserRead = Depends(get_current_user)) -> UserResponse:
    return UserResponse(user=current_user)
