"""
Address geocoding through OpenStreetMap Nominatim.

Restaurants are geocoded exactly once, when they register.  A lookup
that finds nothing is not an error: the caller falls back to
``(0, 0)``.  Transport failures (timeouts, HTTP errors, unparsable
responses) surface as ``geopy.exc.GeocoderServiceError`` and are
propagated so the request fails with a 500.
"""

import logging
from typing import Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from geopy.adapters import RequestsAdapter
from geopy.geocoders import Nominatim

from food_donation_api.app.core.config import settings

logger = logging.getLogger(__name__)


class GeocodingService:
    """Resolve free-text addresses to ``(latitude, longitude)`` pairs."""

    _geocoder: Optional[Nominatim] = None

    @classmethod
    def _get_geocoder(cls) -> Nominatim:
        if cls._geocoder is None:
            # Nominatim's usage policy requires an identifying User-Agent.
            cls._geocoder = Nominatim(
                domain=settings.geocoder_domain,
                scheme=settings.geocoder_scheme,
                user_agent=settings.geocoder_user_agent,
                timeout=settings.geocoder_timeout,
                adapter_factory=RequestsAdapter,
            )
        return cls._geocoder

    @classmethod
    def lookup(cls, address: str) -> Optional[Tuple[float, float]]:
        """Blocking lookup of the best match for ``address``.

        Returns ``None`` when the geocoder has no result.
        """
        location = cls._get_geocoder().geocode(address, exactly_one=True)
        if location is None:
            logger.warning("No geocoding result for address %r", address)
            return None
        return location.latitude, location.longitude

    @classmethod
    async def geocode(cls, address: str) -> Optional[Tuple[float, float]]:
        """Geocode ``address`` without blocking the event loop."""
        return await run_in_threadpool(cls.lookup, address)
