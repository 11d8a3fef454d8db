import asyncio

import pytest
from geopy.adapters import RequestsAdapter
from geopy.exc import GeocoderTimedOut
from geopy.location import Location

from food_donation_api.app.core.config import settings
from food_donation_api.app.services.geocoding_service import GeocodingService

# Captured before the autouse fixture replaces it with the fake geocoder.
real_lookup = GeocodingService.lookup


class FakeNominatim:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.queries = []

    def geocode(self, query, exactly_one=True):
        self.queries.append((query, exactly_one))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def nominatim(monkeypatch):
    def install(**kwargs):
        fake = FakeNominatim(**kwargs)
        monkeypatch.setattr(GeocodingService, "_get_geocoder", classmethod(lambda cls: fake))
        return fake

    return install


def test_geocoder_is_configured_from_settings(monkeypatch):
    monkeypatch.setattr(GeocodingService, "_geocoder", None)
    monkeypatch.setattr(settings, "geocoder_domain", "geo.internal:8080")
    monkeypatch.setattr(settings, "geocoder_scheme", "http")
    monkeypatch.setattr(settings, "geocoder_user_agent", "donations-test/1.0")
    geocoder = GeocodingService._get_geocoder()
    assert geocoder.domain == "geo.internal:8080"
    assert geocoder.scheme == "http"
    assert geocoder.headers["User-Agent"] == "donations-test/1.0"
    assert isinstance(geocoder.adapter, RequestsAdapter)
    assert GeocodingService._get_geocoder() is geocoder


def test_lookup_returns_best_match(nominatim):
    fake = nominatim(result=Location("New York", (40.7128, -74.006), {}))
    assert real_lookup("123 Main St, New York, NY") == (40.7128, -74.006)
    assert fake.queries == [("123 Main St, New York, NY", True)]


def test_lookup_without_result_is_none(nominatim):
    nominatim(result=None)
    assert real_lookup("Nowhere In Particular") is None


def test_geocoder_errors_propagate(nominatim):
    nominatim(error=GeocoderTimedOut("Service timed out"))
    with pytest.raises(GeocoderTimedOut):
        real_lookup("123 Main St, New York, NY")
