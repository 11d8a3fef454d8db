"""
Business logic for users and authentication.

``UserService`` registers users with a salted password hash, checks
credentials on login and resolves bearer tokens back to users.  Login
failures always produce the same ``AuthError`` message whether the
e‑mail is unknown or the password is wrong.
"""

import logging
import sqlite3
from typing import Optional, Tuple

from food_donation_api.app.core.db import get_connection, to_db_timestamp, utc_now
from food_donation_api.app.core.exceptions import AuthError, ValidationError
from food_donation_api.app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from ..schemas.user import UserCreate, UserRead

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"

# Verified against when the e‑mail is unknown so that both login
# failure paths cost one PBKDF2 computation.
_DUMMY_PASSWORD_HASH = hash_password("not-a-real-password")

_USER_COLUMNS = "id, name, email, user_type, created_at"


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        user_type=row["user_type"],
        created_at=row["created_at"],
    )


class UserService:
    """Service for user accounts."""

    @classmethod
    async def register(cls, data: UserCreate) -> UserRead:
        """Create a new user.

        The password is stored only as a PBKDF2 hash.  Raises
        ``ValidationError`` if the e‑mail is already registered.
        """
        logger.info("Registering %s user %s", data.user_type.value, data.email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = cursor.execute("SELECT id FROM users WHERE email = ?", (data.email,)).fetchone()
            if existing:
                raise ValidationError("User with this email already exists")
            created_at = to_db_timestamp(utc_now())
            try:
                cursor.execute(
                    "INSERT INTO users (name, email, password, user_type, created_at) VALUES (?, ?, ?, ?, ?)",
                    (data.name, data.email, hash_password(data.password), data.user_type.value, created_at),
                )
            except sqlite3.IntegrityError as e:
                # Lost a race against a concurrent registration.
                raise ValidationError("User with this email already exists") from e
            user_id = cursor.lastrowid
            conn.commit()
            return UserRead(
                id=user_id,
                name=data.name,
                email=data.email,
                user_type=data.user_type,
                created_at=created_at,
            )
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, email: str, password: str) -> UserRead:
        """Return the user matching ``email`` and ``password``.

        Raises ``AuthError`` with a generic message otherwise.
        """
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            verify_password(password, _DUMMY_PASSWORD_HASH)
            raise AuthError(INVALID_CREDENTIALS)
        if not verify_password(password, row["password"]):
            raise AuthError(INVALID_CREDENTIALS)
        return _row_to_user(row)

    @classmethod
    def issue_token(cls, user: UserRead) -> str:
        return create_access_token({"sub": str(user.id)})

    @classmethod
    async def login(cls, email: str, password: str) -> Tuple[str, UserRead]:
        """Verify credentials and issue a bearer token for the user."""
        user = await cls.authenticate(email, password)
        logger.info("User %s logged in", user.id)
        return cls.issue_token(user), user

    @classmethod
    async def get_profile(cls, token: str) -> UserRead:
        """Resolve a bearer token to its user.

        Raises ``AuthError`` if the token is malformed, has a bad
        signature, has expired or names a user that no longer exists.
        """
        payload = decode_access_token(token)
        if not payload:
            raise AuthError("Invalid or expired token")
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise AuthError("Invalid or expired token")
        user = await cls.get_user_by_id(user_id)
        if user is None:
            raise AuthError("User no longer exists")
        return user

    @classmethod
    async def get_user_by_id(cls, user_id: int) -> Optional[UserRead]:
        """Retrieve a user by ID."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
            return _row_to_user(row) if row else None
        finally:
            conn.close()
