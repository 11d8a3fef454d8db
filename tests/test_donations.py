import asyncio
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from food_donation_api.app.core.config import settings
from food_donation_api.app.core.db import get_connection, to_db_timestamp, utc_now
from food_donation_api.app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from food_donation_api.app.main import app, create_app
from food_donation_api.app.schemas.donation import DonationCreate, DonationUpdate
from food_donation_api.app.services import donation_service, restaurant_service
from food_donation_api.app.services.donation_service import DonationService

from conftest import (
    NYC,
    auth,
    in_hours,
    parse_ts,
    post_donation,
    register_restaurant,
    register_user,
)


@pytest.fixture
def owner(client):
    token, user = register_user(client, "owner@example.com")
    restaurant = register_restaurant(client, token)
    return token, user, restaurant


@pytest.fixture
def rival(client):
    token, user = register_user(client, "rival@example.com")
    restaurant = register_restaurant(client, token, address="456 Oak Ave, Los Angeles, CA", name="Fresh Bites")
    return token, user, restaurant


def insert_past_donation(restaurant_id):
    conn = get_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO donations (category, description, quantity, pickup_time, is_available, restaurant_id, created_at)"
            " VALUES ('bakery', 'Yesterday bread', 5, ?, 1, ?, ?)",
            (to_db_timestamp(utc_now() - timedelta(hours=2)), restaurant_id, to_db_timestamp(utc_now())),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def test_create_donation(client, owner):
    token, _, restaurant = owner
    pickup = in_hours(6)
    resp = post_donation(client, token, pickup=pickup)
    assert resp.status_code == 201
    donation = resp.json()["donation"]
    assert donation["isAvailable"] is True
    assert donation["category"] == "vegetarian"
    assert donation["quantity"] == 20
    assert parse_ts(donation["pickupTime"]) == pickup
    assert donation["restaurant"]["id"] == restaurant["id"]
    assert donation["restaurant"]["name"] == "Green Kitchen"


def test_create_without_restaurant_is_404(client):
    token, user = register_user(client, "fresh@example.com")
    resp = post_donation(client, token)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Restaurant not found. Please register a restaurant first."

    data = DonationCreate(category="vegan", description="Salad", quantity=3, pickup_time=in_hours(2))
    with pytest.raises(NotFoundError):
        asyncio.run(DonationService.create_donation(data, user["id"]))


def test_only_restaurant_users_can_post(client):
    token, _ = register_user(client, "ngo@example.com", user_type="ngo")
    assert post_donation(client, token).status_code == 403


@pytest.mark.parametrize(
    "overrides",
    [
        {"category": "dessert"},
        {"quantity": 0},
        {"quantity": -4},
        {"quantity": 2.5},
        {"description": "   "},
        {"pickupTime": "2001-01-01T10:00:00Z"},
        {"pickupTime": "tomorrow"},
    ],
)
def test_invalid_donation_fields_are_400(client, owner, overrides):
    token = owner[0]
    body = {
        "category": "vegan",
        "description": "Salad",
        "quantity": 3,
        "pickupTime": in_hours(3).isoformat(),
    }
    body.update(overrides)
    resp = client.post("/api/donations", json=body, headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_list_donations_filters_and_order(client, owner):
    token = owner[0]
    first = post_donation(client, token, category="bakery", description="Bread").json()["donation"]
    second = post_donation(client, token, category="vegan", description="Salad").json()["donation"]
    third = post_donation(client, token, category="bakery", description="Croissants").json()["donation"]
    client.put(f"/api/donations/{third['id']}", json={"isAvailable": False}, headers=auth(token))

    everything = client.get("/api/donations").json()
    assert everything["count"] == 3
    assert [d["id"] for d in everything["donations"]] == [third["id"], second["id"], first["id"]]
    assert everything["donations"][0]["restaurant"]["address"] == "123 Main St, New York, NY"

    available = client.get("/api/donations", params={"isAvailable": "true"}).json()["donations"]
    assert {d["id"] for d in available} == {first["id"], second["id"]}
    assert all(d["isAvailable"] for d in available)

    unavailable = client.get("/api/donations", params={"isAvailable": "false"}).json()["donations"]
    assert [d["id"] for d in unavailable] == [third["id"]]

    empty = client.get("/api/donations", params={"isAvailable": ""})
    assert empty.status_code == 200
    assert empty.json()["count"] == 3
    for value in ("yes", "1", "True"):
        only_true_is_true = client.get("/api/donations", params={"isAvailable": value}).json()["donations"]
        assert [d["id"] for d in only_true_is_true] == [third["id"]]

    bakery = client.get("/api/donations", params={"category": "bakery"}).json()["donations"]
    assert [d["id"] for d in bakery] == [third["id"], first["id"]]

    assert client.get("/api/donations", params={"category": "dessert"}).status_code == 400


def test_donations_by_restaurant_round_trip(client, owner, rival):
    token, _, restaurant = owner
    later = in_hours(48)
    sooner = in_hours(2)
    created = post_donation(
        client, token, category="non-vegetarian", description="Grilled chicken", quantity=15, pickup=later
    ).json()["donation"]
    post_donation(client, token, description="Soup", pickup=sooner)
    hidden = post_donation(client, token, description="Gone", pickup=in_hours(1)).json()["donation"]
    client.put(f"/api/donations/{hidden['id']}", json={"isAvailable": False}, headers=auth(token))
    post_donation(client, rival[0], description="Elsewhere")

    resp = client.get(f"/api/donations/restaurant/{restaurant['id']}")
    assert resp.status_code == 200
    donations = resp.json()["donations"]
    assert [d["description"] for d in donations] == ["Soup", "Grilled chicken"]

    fetched = donations[1]
    assert fetched["id"] == created["id"]
    assert fetched["category"] == "non-vegetarian"
    assert fetched["description"] == "Grilled chicken"
    assert fetched["quantity"] == 15
    assert parse_ts(fetched["pickupTime"]) == later


def test_nearby_donations(client, owner, rival):
    token, _, restaurant = owner
    near = post_donation(client, token, description="Near").json()["donation"]
    post_donation(client, rival[0], description="Far away")
    insert_past_donation(restaurant["id"])
    taken = post_donation(client, token, description="Taken").json()["donation"]
    client.put(f"/api/donations/{taken['id']}", json={"isAvailable": False}, headers=auth(token))

    resp = client.get("/api/donations/nearby", params={"lat": NYC[0], "lng": NYC[1], "distance": 10})
    assert resp.status_code == 200
    body = resp.json()
    assert [d["id"] for d in body["donations"]] == [near["id"]]
    for donation in body["donations"]:
        assert parse_ts(donation["pickupTime"]) > utc_now()
        assert donation["isAvailable"] is True


def test_nearby_donations_sorted_by_pickup(client, owner):
    token = owner[0]
    post_donation(client, token, description="Late", pickup=in_hours(10))
    post_donation(client, token, description="Early", pickup=in_hours(1))
    resp = client.get("/api/donations/nearby", params={"lat": NYC[0], "lng": NYC[1]})
    assert [d["description"] for d in resp.json()["donations"]] == ["Early", "Late"]


def test_nearby_donations_with_no_restaurants_in_range(client, owner):
    post_donation(client, owner[0])
    resp = client.get("/api/donations/nearby", params={"lat": -33.86, "lng": 151.2})
    assert resp.json() == {"success": True, "count": 0, "donations": []}


@pytest.mark.parametrize("params", [{"lat": 40.7}, {"lng": -74.0}, {}])
def test_nearby_donations_without_coordinates(client, monkeypatch, params):
    def no_db():
        raise AssertionError("database must not be queried")

    monkeypatch.setattr(donation_service, "get_connection", no_db)
    monkeypatch.setattr(restaurant_service, "get_connection", no_db)
    resp = client.get("/api/donations/nearby", params=params)
    assert resp.status_code == 400
    with pytest.raises(ValidationError):
        asyncio.run(DonationService.get_nearby_donations(params.get("lat"), params.get("lng")))


def test_owner_can_update(client, owner):
    token = owner[0]
    donation = post_donation(client, token).json()["donation"]
    new_pickup = in_hours(30)
    resp = client.put(
        f"/api/donations/{donation['id']}",
        json={"quantity": 12, "category": "vegan", "pickupTime": new_pickup.isoformat(), "isAvailable": False},
        headers=auth(token),
    )
    assert resp.status_code == 200
    updated = resp.json()["donation"]
    assert updated["quantity"] == 12
    assert updated["category"] == "vegan"
    assert updated["isAvailable"] is False
    assert updated["description"] == donation["description"]
    assert parse_ts(updated["pickupTime"]) == new_pickup


@pytest.mark.parametrize(
    "patch",
    [{"quantity": 0}, {"category": "dessert"}, {"pickupTime": "2001-01-01T00:00:00Z"}],
)
def test_update_applies_creation_rules(client, owner, patch):
    token = owner[0]
    donation = post_donation(client, token).json()["donation"]
    resp = client.put(f"/api/donations/{donation['id']}", json=patch, headers=auth(token))
    assert resp.status_code == 400


def test_non_owner_cannot_update_or_delete(client, owner, rival):
    token, _, restaurant = owner
    donation = post_donation(client, token).json()["donation"]

    resp = client.put(f"/api/donations/{donation['id']}", json={"quantity": 1}, headers=auth(rival[0]))
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "message": "Not authorized to update this donation"}

    resp = client.delete(f"/api/donations/{donation['id']}", headers=auth(rival[0]))
    assert resp.status_code == 403

    with pytest.raises(ForbiddenError):
        asyncio.run(DonationService.update_donation(donation["id"], rival[1]["id"], DonationUpdate(quantity=1)))
    with pytest.raises(ForbiddenError):
        asyncio.run(DonationService.delete_donation(donation["id"], rival[1]["id"]))

    unchanged = client.get(f"/api/donations/restaurant/{restaurant['id']}").json()["donations"]
    assert len(unchanged) == 1
    assert unchanged[0]["quantity"] == donation["quantity"]


def test_non_restaurant_user_cannot_update(client, owner):
    donation = post_donation(client, owner[0]).json()["donation"]
    ngo_token, _ = register_user(client, "ngo@example.com", user_type="ngo")
    resp = client.put(f"/api/donations/{donation['id']}", json={"quantity": 1}, headers=auth(ngo_token))
    assert resp.status_code == 403


def test_owner_can_delete(client, owner):
    token, _, restaurant = owner
    donation = post_donation(client, token).json()["donation"]
    resp = client.delete(f"/api/donations/{donation['id']}", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Donation removed"}
    assert client.get(f"/api/donations/restaurant/{restaurant['id']}").json()["count"] == 0

    again = client.delete(f"/api/donations/{donation['id']}", headers=auth(token))
    assert again.status_code == 404
    assert again.json()["message"] == "Donation not found"


def test_update_missing_donation_is_404(client, owner):
    resp = client.put("/api/donations/9999", json={"quantity": 1}, headers=auth(owner[0]))
    assert resp.status_code == 404


def test_mutations_require_token(client, owner):
    donation = post_donation(client, owner[0]).json()["donation"]
    assert client.put(f"/api/donations/{donation['id']}", json={"quantity": 1}).status_code == 401
    assert client.delete(f"/api/donations/{donation['id']}").status_code == 401


def test_unhandled_errors_become_500(client, monkeypatch):
    async def boom(cls, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(DonationService, "list_donations", classmethod(boom))
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/api/donations")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "database is locked"}


def test_debug_mode_keeps_the_error_envelope(monkeypatch):
    async def boom(cls, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(settings, "debug", True)
    monkeypatch.setattr(DonationService, "list_donations", classmethod(boom))
    with TestClient(create_app(), raise_server_exceptions=False) as c:
        resp = c.get("/api/donations")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "database is locked"}
