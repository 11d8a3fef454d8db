"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), applying migrations on application start
(``init_db``) and helpers for the timestamp format stored in the
database.  Every connection gets a ``distance_km`` SQL function so
that nearby searches can be filtered and ordered by the database
itself (see ``core.geo``).

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .config import settings
from .geo import distance_km

# Fixed-width UTC format so that stored timestamps compare and sort
# correctly as plain strings.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime for storage.

    Naive datetimes are taken to be UTC already; aware ones are
    converted to UTC first.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # food_donation_api/
    return str((base_dir / db_url).resolve())


def _distance_km(lat1: Optional[float], lng1: Optional[float], lat2: Optional[float], lng2: Optional[float]) -> Optional[float]:
    if None in (lat1, lng1, lat2, lng2):
        return None
    return distance_km(lat1, lng1, lat2, lng2)


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on per connection, since
    SQLite leaves it off by default.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.create_function("distance_km", 4, _distance_km, deterministic=True)
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    the ``migrations`` list.  If you add a new migration, append it
    with an incremented version number.
    """
    migrations: list[tuple[int, str]] = [
        # Migration 1: Initial schema
        (
            1,
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                password TEXT NOT NULL,
                user_type TEXT NOT NULL
                    CHECK (user_type IN ('restaurant', 'ngo', 'individual')),
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS restaurants (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                address TEXT NOT NULL,
                phone TEXT NOT NULL,
                latitude REAL NOT NULL DEFAULT 0,
                longitude REAL NOT NULL DEFAULT 0,
                user_id INTEGER NOT NULL UNIQUE,
                created_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id)
            );

            CREATE TABLE IF NOT EXISTS donations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                category TEXT NOT NULL
                    CHECK (category IN ('vegetarian', 'non-vegetarian', 'vegan', 'bakery')),
                description TEXT NOT NULL,
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                pickup_time TEXT NOT NULL,
                is_available INTEGER NOT NULL DEFAULT 1,
                restaurant_id INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(restaurant_id) REFERENCES restaurants(id)
            );
            """,
        ),
        # Migration 2: indices for nearby searches and donation listings
        (
            2,
            """
            CREATE INDEX IF NOT EXISTS idx_restaurants_location ON restaurants(latitude, longitude);
            CREATE INDEX IF NOT EXISTS idx_donations_restaurant_id ON donations(restaurant_id);
            CREATE INDEX IF NOT EXISTS idx_donations_available_pickup ON donations(is_available, pickup_time);
            CREATE INDEX IF NOT EXISTS idx_donations_created_at ON donations(created_at);
            """,
        ),
    ]

    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in migrations:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
