"""
Business logic for food donations.

Donations belong to exactly one restaurant and may only be changed or
removed by the user who owns that restaurant.  A donation stays
available until its owner marks it otherwise; there is no automatic
expiry once the pickup time has passed, although nearby searches
only return donations whose pickup time is still ahead.

Update and delete are a read, an ownership check and a write without
a surrounding transaction.  A concurrent modification between the
check and the write is possible and accepted.
"""

import logging
import sqlite3
from typing import List, Optional

from food_donation_api.app.core.config import settings
from food_donation_api.app.core.db import get_connection, to_db_timestamp, utc_now
from food_donation_api.app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from food_donation_api.app.core.geo import bounding_box
from ..schemas.common import DonationCategory, GeoPoint
from ..schemas.donation import DonationCreate, DonationRead, DonationUpdate
from ..schemas.restaurant import RestaurantSummary
from .restaurant_service import RestaurantService, nearby_restaurant_query, require_coordinates

logger = logging.getLogger(__name__)

# Donations joined with the restaurant summary attached to every
# response.
_DONATION_SELECT = """
    SELECT d.id, d.category, d.description, d.quantity, d.pickup_time,
           d.is_available, d.created_at,
           r.id AS restaurant_id, r.name AS restaurant_name,
           r.address AS restaurant_address,
           r.latitude AS restaurant_latitude, r.longitude AS restaurant_longitude
    FROM donations d
    JOIN restaurants r ON r.id = d.restaurant_id
"""


def _row_to_donation(row: sqlite3.Row) -> DonationRead:
    return DonationRead(
        id=row["id"],
        category=row["category"],
        description=row["description"],
        quantity=row["quantity"],
        pickup_time=row["pickup_time"],
        is_available=bool(row["is_available"]),
        created_at=row["created_at"],
        restaurant=RestaurantSummary(
            id=row["restaurant_id"],
            name=row["restaurant_name"],
            address=row["restaurant_address"],
            location=GeoPoint.from_lat_lng(row["restaurant_latitude"], row["restaurant_longitude"]),
        ),
    )


def _fetch_donation(cursor: sqlite3.Cursor, donation_id: int) -> Optional[DonationRead]:
    row = cursor.execute(_DONATION_SELECT + " WHERE d.id = ?", (donation_id,)).fetchone()
    return _row_to_donation(row) if row else None


class DonationService:
    """Create, filter and search donations; owner-only update and delete."""

    @classmethod
    async def create_donation(cls, data: DonationCreate, requester_id: int) -> DonationRead:
        """Create a donation for the restaurant owned by ``requester_id``.

        Raises ``NotFoundError`` if the requester has not registered a
        restaurant yet.  New donations are always available.
        """
        restaurant = await RestaurantService.get_restaurant_by_owner(requester_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found. Please register a restaurant first.")

        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO donations (category, description, quantity, pickup_time, is_available, restaurant_id, created_at)
                VALUES (?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    data.category.value,
                    data.description,
                    data.quantity,
                    to_db_timestamp(data.pickup_time),
                    restaurant.id,
                    to_db_timestamp(utc_now()),
                ),
            )
            donation_id = cursor.lastrowid
            conn.commit()
            logger.info(
                "Restaurant %s posted donation %s (%s, %s servings)",
                restaurant.id, donation_id, data.category.value, data.quantity,
            )
            return _fetch_donation(cursor, donation_id)
        finally:
            conn.close()

    @classmethod
    async def list_donations(
        cls,
        category: Optional[DonationCategory] = None,
        is_available: Optional[bool] = None,
    ) -> List[DonationRead]:
        """Return donations matching the optional filters, newest first."""
        query = _DONATION_SELECT
        params: list = []
        where_clauses: list[str] = []
        if category is not None:
            where_clauses.append("d.category = ?")
            params.append(category.value)
        if is_available is not None:
            where_clauses.append("d.is_available = ?")
            params.append(1 if is_available else 0)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY d.created_at DESC, d.id DESC"

        conn = get_connection()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_row_to_donation(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def list_donations_by_restaurant(cls, restaurant_id: int) -> List[DonationRead]:
        """Available donations of one restaurant, soonest pickup first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                _DONATION_SELECT
                + " WHERE d.restaurant_id = ? AND d.is_available = 1"
                " ORDER BY d.pickup_time ASC, d.id ASC",
                (restaurant_id,),
            ).fetchall()
            return [_row_to_donation(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_nearby_donations(
        cls,
        lat: Optional[float],
        lng: Optional[float],
        distance_km: Optional[float] = None,
    ) -> List[DonationRead]:
        """Available, not yet due donations from restaurants near ``(lat, lng)``.

        The lookup runs in two stages: first the restaurants within
        ``distance_km`` are found, then their available donations with
        a pickup time still in the future are returned, soonest pickup
        first.  Missing coordinates raise ``ValidationError`` before any
        query is made.
        """
        require_coordinates(lat, lng)
        if distance_km is None:
            distance_km = settings.default_search_radius_km
        if distance_km <= 0:
            raise ValidationError("Distance must be a positive number of kilometres")

        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, distance_km)
        conn = get_connection()
        try:
            restaurant_rows = conn.execute(
                nearby_restaurant_query("id"),
                (lat, lng, min_lat, max_lat, min_lng, max_lng, distance_km),
            ).fetchall()
            restaurant_ids = [row["id"] for row in restaurant_rows]
            if not restaurant_ids:
                return []
            placeholders = ", ".join("?" for _ in restaurant_ids)
            rows = conn.execute(
                _DONATION_SELECT
                + f" WHERE d.restaurant_id IN ({placeholders})"
                " AND d.is_available = 1 AND d.pickup_time > ?"
                " ORDER BY d.pickup_time ASC, d.id ASC",
                (*restaurant_ids, to_db_timestamp(utc_now())),
            ).fetchall()
            return [_row_to_donation(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    def _check_owner(cls, cursor: sqlite3.Cursor, donation_id: int, requester_id: int, action: str) -> None:
        """Raise unless ``requester_id`` owns the restaurant behind the donation."""
        donation = cursor.execute(
            "SELECT restaurant_id FROM donations WHERE id = ?", (donation_id,)
        ).fetchone()
        if not donation:
            raise NotFoundError("Donation not found")
        restaurant = cursor.execute(
            "SELECT user_id FROM restaurants WHERE id = ?", (donation["restaurant_id"],)
        ).fetchone()
        if not restaurant:
            raise NotFoundError("Restaurant not found")
        if restaurant["user_id"] != requester_id:
            logger.warning(
                "User %s attempted to %s donation %s without owning it", requester_id, action, donation_id
            )
            raise ForbiddenError(f"Not authorized to {action} this donation")

    @classmethod
    async def update_donation(cls, donation_id: int, requester_id: int, patch: DonationUpdate) -> DonationRead:
        """Apply ``patch`` to a donation owned by ``requester_id``.

        Only fields provided in the patch are changed.  Raises
        ``NotFoundError`` if the donation (or its restaurant) is missing
        and ``ForbiddenError`` if the requester is not the owner.
        """
        updates = {k: v for k, v in patch.model_dump().items() if v is not None}
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cls._check_owner(cursor, donation_id, requester_id, "update")
            if updates:
                fields = []
                values = []
                for key, value in updates.items():
                    fields.append(f"{key} = ?")
                    if isinstance(value, bool):
                        values.append(1 if value else 0)
                    elif isinstance(value, DonationCategory):
                        values.append(value.value)
                    elif key == "pickup_time":
                        values.append(to_db_timestamp(value))
                    else:
                        values.append(value)
                values.append(donation_id)
                cursor.execute(f"UPDATE donations SET {', '.join(fields)} WHERE id = ?", tuple(values))
                conn.commit()
                logger.info("User %s updated donation %s: %s", requester_id, donation_id, sorted(updates))
            return _fetch_donation(cursor, donation_id)
        finally:
            conn.close()

    @classmethod
    async def delete_donation(cls, donation_id: int, requester_id: int) -> None:
        """Delete a donation owned by ``requester_id``.

        Same ownership rules as ``update_donation``.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cls._check_owner(cursor, donation_id, requester_id, "delete")
            cursor.execute("DELETE FROM donations WHERE id = ?", (donation_id,))
            conn.commit()
            logger.info("User %s deleted donation %s", requester_id, donation_id)
        finally:
            conn.close()
