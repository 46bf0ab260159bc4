import threading
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from garage_sales import config, schemas, services
from garage_sales.db import Base, engine
from garage_sales.main import app

OWNER = {"X-User-Id": "owner-1"}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    Base.metadata.drop_all(bind=engine)
    services.reset_snapshot()


@pytest.fixture
def sale_body():
    def factory(**overrides):
        body = {
            "title": "Moving Sale",
            "description": "Furniture and winter gear",
            "address": "50 Street, Yellowknife, NT",
            "latitude": 62.4540,
            "longitude": -114.3718,
            "sale_date": (date.today() + timedelta(days=2)).isoformat(),
            "start_time": "09:00",
            "end_time": "17:00",
            "tags": ["furniture", "winter gear"],
            "cash_only": True,
            "early_birds_welcome": False,
        }
        body.update(overrides)
        return body
    return factory


def post_sale(client, body, headers=OWNER):
    r = client.post("/listings", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_listing_lifecycle(client, sale_body):
    sale = post_sale(client, sale_body())
    assert sale["status"] == "active"
    assert sale["user_id"] == "owner-1"

    r = client.patch(f"/listings/{sale['id']}", json={"title": "Big Moving Sale"}, headers=OWNER)
    assert r.status_code == 200
    assert r.json()["title"] == "Big Moving Sale"

    r = client.patch(f"/listings/{sale['id']}", json={"title": "Hijacked"}, headers={"X-User-Id": "other"})
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "not_owner"

    r = client.delete(f"/listings/{sale['id']}", headers=OWNER)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    r = client.get(f"/listings/{sale['id']}")
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"


def test_listing_validation(client, sale_body):
    r = client.post("/listings", json=sale_body(latitude=91), headers=OWNER)
    assert r.status_code == 422
    r = client.post("/listings", json=sale_body(start_time="12:00", end_time="11:00"), headers=OWNER)
    assert r.status_code == 422
    r = client.post("/listings", json=sale_body(tags=["ok", " "]), headers=OWNER)
    assert r.status_code == 422
    r = client.post("/listings", json=sale_body())
    assert r.status_code == 422


def test_patch_with_invalid_merged_hours(client, sale_body):
    sale = post_sale(client, sale_body(start_time="09:00", end_time="12:00"))
    r = client.patch(f"/listings/{sale['id']}", json={"start_time": "13:00"}, headers=OWNER)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "invalid_request"


def test_patch_cannot_null_a_required_field(client, sale_body):
    sale = post_sale(client, sale_body())
    r = client.patch(f"/listings/{sale['id']}", json={"status": None}, headers=OWNER)
    assert r.status_code == 422
    body = r.json()
    assert body["error"]["code"] == "invalid_request"
    assert "status" in body["error"]["message"]
    assert client.get(f"/listings/{sale['id']}").json()["status"] == "active"


def test_unknown_listing(client):
    r = client.get("/listings/does-not-exist")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "listing_not_found"


def test_list_upcoming(client, sale_body):
    post_sale(client, sale_body(sale_date=(date.today() - timedelta(days=1)).isoformat()))
    upcoming = post_sale(client, sale_body())
    r = client.get("/listings", params={"upcoming": "true"})
    assert [s["id"] for s in r.json()] == [upcoming["id"]]
    assert len(client.get("/listings").json()) == 2


def test_filter_endpoint(client, sale_body):
    tools = post_sale(client, sale_body(title="Tool sale", tags=["tools", "outdoor"], latitude=62.455))
    post_sale(client, sale_body(title="Toy sale", tags=["toys"], cash_only=False, latitude=62.50))

    r = client.post("/filter", json={"criteria": {"tags": ["outdoor"], "cash_only": True}})
    assert r.status_code == 200
    data = r.json()
    assert data["degraded"] is False
    assert [s["id"] for s in data["items"]] == [tools["id"]]

    r = client.post("/filter", json={
        "criteria": {"max_distance_km": 50},
        "origin": {"latitude": 62.454, "longitude": -114.3718},
    })
    items = r.json()["items"]
    assert [s["title"] for s in items] == ["Tool sale", "Toy sale"]
    assert items[0]["distance_km"] <= items[1]["distance_km"]


def test_filter_radius_without_origin(client):
    r = client.post("/filter", json={"criteria": {"max_distance_km": 5}})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "invalid_filter"


def test_filter_reversed_dates(client):
    r = client.post("/filter", json={"criteria": {"date_from": "2025-07-01", "date_to": "2025-06-01"}})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "invalid_filter"


def test_route_with_inline_stops(client):
    body = {
        "start": {"latitude": 0, "longitude": 0},
        "stops": [
            {"id": "B", "latitude": 0, "longitude": 1},
            {"id": "C", "latitude": 1, "longitude": 0},
        ],
        "start_time": "09:00",
    }
    r = client.post("/route", json=body)
    assert r.status_code == 200, r.text
    data = r.json()
    itinerary = data["itinerary"]
    assert itinerary["sale_ids"] == ["B", "C"]
    assert [w["order"] for w in itinerary["waypoints"]] == [1, 2]
    assert itinerary["waypoints"][0]["estimated_arrival_time"] == "09:00"
    assert itinerary["total_distance_km"] == round(itinerary["total_distance_km"], 2)
    assert itinerary["end_location"] == {"latitude": 1.0, "longitude": 0.0}
    assert data["superseded"] is False


def test_route_by_listing_ids(client, sale_body):
    a = post_sale(client, sale_body(latitude=62.46))
    b = post_sale(client, sale_body(latitude=62.455))
    r = client.post("/route", json={"listing_ids": [a["id"], b["id"]]}, headers={"X-Client-Key": "tab-1"})
    assert r.status_code == 200, r.text
    assert r.json()["itinerary"]["sale_ids"] == [b["id"], a["id"]]


def test_route_insufficient_stops(client):
    r = client.post("/route", json={"stops": [{"id": "only", "latitude": 0, "longitude": 0}]})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "insufficient_stops"


def test_route_needs_exactly_one_stop_source(client):
    r = client.post("/route", json={})
    assert r.status_code == 422


def test_favorites(client, sale_body):
    sale = post_sale(client, sale_body())
    fan = {"X-User-Id": "fan"}
    r = client.post(f"/listings/{sale['id']}/favorite", headers=fan)
    assert r.json() == {"listing_id": sale["id"], "favorited": True}
    assert client.get("/users/fan/favorites").json() == [sale["id"]]
    r = client.post(f"/listings/{sale['id']}/favorite", headers=fan)
    assert r.json()["favorited"] is False
    assert client.get("/users/fan/favorites").json() == []


def test_filter_times_out(client, monkeypatch):
    release = threading.Event()

    def slow_filter(db, criteria, origin=None):
        release.wait(2)
        return schemas.FilterResponse(items=[])

    monkeypatch.setattr(services, "filter_sales", slow_filter)
    monkeypatch.setattr(config, "REQUEST_TIMEOUT_SECONDS", 0.05)
    try:
        r = client.post("/filter", json={"criteria": {}})
    finally:
        release.set()
    assert r.status_code == 504
    assert r.json()["error"]["code"] == "request_timeout"
