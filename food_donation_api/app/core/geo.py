"""
Geospatial helpers for "near point" queries.

SQLite has no native geography type, so restaurant coordinates are
stored as two REAL columns with a composite index.  A radius query is
answered in two steps that both run inside the database:

1. a bounding box on ``latitude``/``longitude`` narrows the candidate
   rows using the index;
2. the ``distance_km`` SQL function (registered on every connection by
   ``core.db.get_connection``) computes the great-circle distance for the
   remaining rows, which are then filtered and ordered by it.

Distances are computed with ``geopy`` on a spherical earth, which is
what document stores use for their ``2dsphere`` style indexes.
"""

import math
from typing import Tuple

from geopy.distance import great_circle

# Mean earth radius used by geopy's great_circle.
EARTH_RADIUS_KM = 6371.009


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    return great_circle((lat1, lng1), (lat2, lng2)).km


def bounding_box(lat: float, lng: float, radius_km: float) -> Tuple[float, float, float, float]:
    """Return ``(min_lat, max_lat, min_lng, max_lng)`` enclosing a circle.

    The box only has to contain every point within ``radius_km``; exact
    filtering happens with ``distance_km``.  The longitude half-width is
    the widest point of the circle, ``asin(sin(r / R) / cos(lat))``,
    which lies poleward of the centre.  When the circle reaches a pole
    or the box would wrap around the antimeridian, the full longitude
    range is returned.
    """
    angular_radius = radius_km / EARTH_RADIUS_KM
    delta_lat = math.degrees(angular_radius)
    min_lat = max(lat - delta_lat, -90.0)
    max_lat = min(lat + delta_lat, 90.0)

    if min_lat <= -90.0 or max_lat >= 90.0:
        return min_lat, max_lat, -180.0, 180.0

    ratio = math.sin(angular_radius) / math.cos(math.radians(lat))
    if ratio >= 1.0:
        return min_lat, max_lat, -180.0, 180.0

    delta_lng = math.degrees(math.asin(ratio))
    min_lng = lng - delta_lng
    max_lng = lng + delta_lng
    if min_lng < -180.0 or max_lng > 180.0:
        return min_lat, max_lat, -180.0, 180.0
    return min_lat, max_lat, min_lng, max_lng
