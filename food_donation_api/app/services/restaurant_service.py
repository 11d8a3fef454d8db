"""
Business logic for restaurants.

Registration geocodes the restaurant's address once and stores the
resulting coordinates; there is no path that re-geocodes a restaurant
later.  Nearby searches run entirely in SQLite: an indexed bounding
box narrows the candidates and the ``distance_km`` SQL function filters
and orders them.
"""

import logging
import sqlite3
from typing import List, Optional

from food_donation_api.app.core.config import settings
from food_donation_api.app.core.db import get_connection, to_db_timestamp, utc_now
from food_donation_api.app.core.exceptions import NotFoundError, ValidationError
from food_donation_api.app.core.geo import bounding_box
from ..schemas.common import GeoPoint
from ..schemas.restaurant import RestaurantCreate, RestaurantRead
from .geocoding_service import GeocodingService

logger = logging.getLogger(__name__)

_RESTAURANT_COLUMNS = "id, name, email, address, phone, latitude, longitude, user_id, created_at"


def _row_to_restaurant(row: sqlite3.Row) -> RestaurantRead:
    keys = row.keys()
    return RestaurantRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        address=row["address"],
        phone=row["phone"],
        location=GeoPoint.from_lat_lng(row["latitude"], row["longitude"]),
        user=row["user_id"],
        created_at=row["created_at"],
        distance_km=row["distance_km"] if "distance_km" in keys else None,
    )


def require_coordinates(lat: Optional[float], lng: Optional[float]) -> None:
    """Raise ``ValidationError`` unless both coordinates are present and in range."""
    if lat is None or lng is None:
        raise ValidationError("Please provide latitude and longitude")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        raise ValidationError("Latitude must be within [-90, 90] and longitude within [-180, 180]")


def nearby_restaurant_query(columns: str) -> str:
    """SQL selecting ``columns`` of restaurants within a radius, nearest first.

    Parameters, in order: lat, lng, min_lat, max_lat, min_lng, max_lng,
    radius_km.
    """
    return (
        f"SELECT {columns}, distance_km(?1, ?2, latitude, longitude) AS distance_km "
        "FROM restaurants "
        "WHERE latitude BETWEEN ?3 AND ?4 AND longitude BETWEEN ?5 AND ?6 "
        "AND distance_km(?1, ?2, latitude, longitude) <= ?7 "
        "ORDER BY distance_km ASC, id ASC"
    )


class RestaurantService:
    """Service for restaurant registration and lookup."""

    @classmethod
    async def register_restaurant(cls, data: RestaurantCreate, owner_id: int) -> RestaurantRead:
        """Register a restaurant owned by ``owner_id``.

        Performs one geocoding lookup for ``data.address``; when the
        geocoder finds nothing the location falls back to (0, 0).  A
        user may own only one restaurant, a second registration raises
        ``ValidationError``.
        """
        if await cls.get_restaurant_by_owner(owner_id) is not None:
            raise ValidationError("You have already registered a restaurant")

        coords = await GeocodingService.geocode(data.address)
        latitude, longitude = coords if coords else (0.0, 0.0)

        conn = get_connection()
        try:
            cursor = conn.cursor()
            created_at = to_db_timestamp(utc_now())
            try:
                cursor.execute(
                    """
                    INSERT INTO restaurants (name, email, address, phone, latitude, longitude, user_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (data.name, data.email, data.address, data.phone, latitude, longitude, owner_id, created_at),
                )
            except sqlite3.IntegrityError as e:
                raise ValidationError("You have already registered a restaurant") from e
            restaurant_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        logger.info(
            "User %s registered restaurant %s '%s' at (%.5f, %.5f)",
            owner_id, restaurant_id, data.name, latitude, longitude,
        )
        return await cls.get_restaurant(restaurant_id)

    @classmethod
    async def list_restaurants(cls) -> List[RestaurantRead]:
        """Return every restaurant in registration order."""
        conn = get_connection()
        try:
            rows = conn.execute(f"SELECT {_RESTAURANT_COLUMNS} FROM restaurants ORDER BY id").fetchall()
            return [_row_to_restaurant(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_restaurant(cls, restaurant_id: int) -> RestaurantRead:
        """Retrieve a restaurant by ID, raising ``NotFoundError`` if absent."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_RESTAURANT_COLUMNS} FROM restaurants WHERE id = ?",
                (restaurant_id,),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Restaurant not found")
        return _row_to_restaurant(row)

    @classmethod
    async def get_restaurant_by_owner(cls, user_id: int) -> Optional[RestaurantRead]:
        """Return the restaurant owned by ``user_id`` or ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_RESTAURANT_COLUMNS} FROM restaurants WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            return _row_to_restaurant(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def get_nearby_restaurants(
        cls,
        lat: Optional[float],
        lng: Optional[float],
        distance_km: Optional[float] = None,
    ) -> List[RestaurantRead]:
        """Restaurants within ``distance_km`` of ``(lat, lng)``, nearest first.

        - ``lat``/``lng`` are required; a missing coordinate raises
          ``ValidationError`` before the database is touched.
        - ``distance_km`` defaults to ``settings.default_search_radius_km``
          and must be positive.
        """
        require_coordinates(lat, lng)
        if distance_km is None:
            distance_km = settings.default_search_radius_km
        if distance_km <= 0:
            raise ValidationError("Distance must be a positive number of kilometres")

        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, distance_km)
        conn = get_connection()
        try:
            rows = conn.execute(
                nearby_restaurant_query(_RESTAURANT_COLUMNS),
                (lat, lng, min_lat, max_lat, min_lng, max_lng, distance_km),
            ).fetchall()
            return [_row_to_restaurant(row) for row in rows]
        finally:
            conn.close()
