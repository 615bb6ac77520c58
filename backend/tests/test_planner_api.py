from __future__ import annotations

from planzy.services.vacation_planner_service import (
    MSG_CITY_NOT_FOUND,
    MSG_CREATED,
    MSG_DESCRIBE_VACATION,
)


def _create(client, text: str, user_id: str = "user-1"):
    return client.post(
        "/api/planner/vacations", json={"user_id": user_id, "text": text}
    )


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "ok"}


def test_create_vacation_from_text(client):
    resp = _create(client, "Trip to Rome for 3 days")
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    assert body["msg"] == MSG_CREATED
    # 1 hotel + 6 restaurants + 6 attractions from the offline provider
    assert body["data"]["places_added"] == 13
    vacation = body["data"]["vacation"]
    assert vacation["title"] == "Trip to Rome"
    assert vacation["user_id"] == "user-1"
    assert vacation["places_count"] == 13


def test_list_and_detail_round_trip(client):
    created = _create(client, "Trip to Rome for 1 day").json()["data"]["vacation"]
    _create(client, "Trip to Rome for 1 day", user_id="someone-else")

    listed = client.get("/api/vacations", params={"user_id": "user-1"}).json()
    assert [item["id"] for item in listed["data"]] == [created["id"]]
    assert listed["data"][0]["places_count"] == created["places_count"]

    detail = client.get(f"/api/vacations/{created['id']}").json()["data"]
    assert detail["title"] == "Trip to Rome"
    assert [link["order_index"] for link in detail["places"]] == list(
        range(created["places_count"])
    )
    assert detail["places"][0]["place_id"] == "hotels-0"
    assert detail["places"][0]["place"]["photo_url"].endswith("/large.jpg")


def test_blank_text_is_bad_request(client):
    resp = _create(client, "   ")
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == 14102
    assert body["msg"] == MSG_DESCRIBE_VACATION


def test_unknown_destination_is_bad_request(client, monkeypatch):
    from planzy.services.place_provider import MockPlaceProvider

    async def _nothing(self, query, lat_long=None, radius=None):
        return []

    monkeypatch.setattr(MockPlaceProvider, "search_by_text", _nothing)
    resp = _create(client, "Trip to Nowhereland")
    assert resp.status_code == 400
    assert resp.json()["msg"] == MSG_CITY_NOT_FOUND


def test_missing_vacation_is_not_found(client):
    resp = client.get("/api/vacations/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["code"] == 14140


def test_list_requires_user_id(client):
    resp = client.get("/api/vacations")
    assert resp.status_code == 422


def test_planner_metrics_count_runs(client):
    _create(client, "Trip to Rome for 1 day")
    _create(client, "")

    data = client.get("/api/planner/metrics").json()["data"]
    assert data["calls"] == 1
    assert data["failures"] == 0
    assert data["top_destinations"] == [{"destination": "Rome", "count": 1}]
