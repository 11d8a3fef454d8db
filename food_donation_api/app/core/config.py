"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can be started locally without any setup.  In a production
deployment you should at least override ``SECRET_KEY`` and
``GEOCODER_USER_AGENT``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Food Donation API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    # Routes are mounted under this prefix (``/api/donations`` etc.).
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Path to the SQLite database.  Relative paths are resolved against
    # the package root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "food_donation.db")

    # Restaurant addresses are geocoded with a Nominatim instance; the
    # domain may include a port or path prefix for self-hosted servers.
    geocoder_domain: str = os.getenv("GEOCODER_DOMAIN", "nominatim.openstreetmap.org")
    geocoder_scheme: str = os.getenv("GEOCODER_SCHEME", "https")
    geocoder_user_agent: str = os.getenv("GEOCODER_USER_AGENT", "food-donation-api/1.0")
    geocoder_timeout: float = float(os.getenv("GEOCODER_TIMEOUT", "10"))

    default_search_radius_km: float = float(os.getenv("DEFAULT_SEARCH_RADIUS_KM", "10"))

    # Comma-separated list of allowed CORS origins, ``*`` for any.
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
