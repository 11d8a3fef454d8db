"""Shared fixtures: a throwaway SQLite database and a fake geocoder."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from food_donation_api.app.core.config import settings
from food_donation_api.app.core.db import init_db
from food_donation_api.app.main import app
from food_donation_api.app.services.geocoding_service import GeocodingService

NYC = (40.7128, -74.0060)
# About 1.2 km from NYC.
BROOKLYN_BRIDGE = (40.7061, -73.9969)
LOS_ANGELES = (34.0522, -118.2437)

KNOWN_ADDRESSES = {
    "123 Main St, New York, NY": NYC,
    "Brooklyn Bridge, New York, NY": BROOKLYN_BRIDGE,
    "456 Oak Ave, Los Angeles, CA": LOS_ANGELES,
}


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    init_db()
    yield


@pytest.fixture(autouse=True)
def geocoder(monkeypatch):
    calls = []

    def lookup(address):
        calls.append(address)
        return KNOWN_ADDRESSES.get(address)

    monkeypatch.setattr(GeocodingService, "lookup", staticmethod(lookup))
    return calls


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def in_hours(hours: float) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_user(client, email, user_type="restaurant", password="password123", name="Test User"):
    resp = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, "userType": user_type},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["token"], body["user"]


def register_restaurant(client, token, address="123 Main St, New York, NY", name="Green Kitchen"):
    resp = client.post(
        "/api/restaurants",
        json={"name": name, "email": "contact@example.com", "address": address, "phone": "555-123-4567"},
        headers=auth(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["restaurant"]


def post_donation(client, token, category="vegetarian", description="Fresh vegetable pasta", quantity=20, pickup=None):
    pickup = pickup or in_hours(24)
    return client.post(
        "/api/donations",
        json={
            "category": category,
            "description": description,
            "quantity": quantity,
            "pickupTime": pickup.isoformat(),
        },
        headers=auth(token),
    )
