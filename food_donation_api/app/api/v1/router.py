"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers (auth, users, restaurants,
donations) under a unified prefix.  When new domains are introduced,
update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import auth, users, restaurants, donations

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(restaurants.router, prefix="/restaurants", tags=["restaurants"])
router.include_router(donations.router, prefix="/donations", tags=["donations"])
