# tests/test_api.py
"""
HTTP surface, in-process through TestClient with an in-memory store.
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services.storage import MemoryStorage, StorageError

SETTINGS = Settings(env_name="test", storage_backend="memory")

RICE_MEAT = {
    "name": "Rice with meat",
    "mealType": "dinner",
    "ingredients": [
        {"name": "rice", "quantity": "300", "unit": "g"},
        {"name": "meat", "quantity": "400", "unit": "g"},
    ],
}


@pytest.fixture
def client():
    app = create_app(SETTINGS, storage=MemoryStorage())
    with TestClient(app) as c:
        yield c


def _schedule(client, dish_id, start, end=None, meal_type="dinner"):
    r = client.post(
        "/api/meal-events",
        json={"dishId": dish_id, "startDate": start, "endDate": end or start, "mealType": meal_type},
    )
    assert r.status_code == 201, r.text
    return r.json()


# ── meta ────────────────────────────────────────────────────────────
def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "env": "test", "storage": "memory"}


# ── dishes ──────────────────────────────────────────────────────────
def test_dish_lifecycle(client):
    r = client.post("/api/dishes", json=RICE_MEAT)
    assert r.status_code == 201
    dish = r.json()
    assert dish["mealType"] == "dinner"
    assert dish["description"] is None
    assert dish["ingredients"][0] == {"name": "rice", "quantity": "300", "unit": "g"}

    assert client.get(f"/api/dishes/{dish['id']}").json()["name"] == "Rice with meat"
    assert [d["id"] for d in client.get("/api/dishes").json()] == [dish["id"]]

    r = client.patch(f"/api/dishes/{dish['id']}", json={"description": "quick"})
    assert r.status_code == 200
    assert r.json()["description"] == "quick"
    assert len(r.json()["ingredients"]) == 2

    r = client.delete(f"/api/dishes/{dish['id']}")
    assert r.status_code == 204
    assert r.content == b""
    assert client.get(f"/api/dishes/{dish['id']}").status_code == 404


def test_dish_not_found(client):
    for method, url in (
        ("get", "/api/dishes/nope"),
        ("delete", "/api/dishes/nope"),
    ):
        r = getattr(client, method)(url)
        assert r.status_code == 404
        assert r.json() == {"message": "Dish not found"}
    r = client.patch("/api/dishes/nope", json={"name": "x"})
    assert r.status_code == 404


def test_numeric_quantity_is_stored_as_text(client):
    body = {**RICE_MEAT, "ingredients": [{"name": "rice", "quantity": 300, "unit": "g"}]}
    r = client.post("/api/dishes", json=body)
    assert r.status_code == 201
    assert r.json()["ingredients"][0]["quantity"] == "300"


def test_ingredient_text_is_stored_as_sent(client):
    body = {**RICE_MEAT, "ingredients": [{"name": " rice", "quantity": "300 ", "unit": "g"}]}
    r = client.post("/api/dishes", json=body)
    assert r.status_code == 201
    assert r.json()["ingredients"][0] == {"name": " rice", "quantity": "300 ", "unit": "g"}


@pytest.mark.parametrize(
    "body",
    [
        {"mealType": "dinner"},                                  # no name
        {"name": "Soup", "mealType": "brunch"},                  # unknown meal type
        {"name": "Soup", "mealType": "lunch",
         "ingredients": [{"name": "", "quantity": "1", "unit": "l"}]},
        {"name": "Soup", "mealType": "lunch",
         "ingredients": [{"name": "water", "quantity": "1"}]},
    ],
)
def test_invalid_dish_is_400(client, body):
    r = client.post("/api/dishes", json=body)
    assert r.status_code == 400
    payload = r.json()
    assert payload["message"] == "Invalid data"
    assert payload["errors"]


def test_patch_rejects_null_name(client):
    dish = client.post("/api/dishes", json=RICE_MEAT).json()
    r = client.patch(f"/api/dishes/{dish['id']}", json={"name": None})
    assert r.status_code == 400


# ── meal events ─────────────────────────────────────────────────────
def test_meal_event_range_query(client):
    ev = _schedule(client, "d1", "2024-01-10", "2024-01-12")

    hit = client.get("/api/meal-events", params={"startDate": "2024-01-11", "endDate": "2024-01-20"})
    miss = client.get("/api/meal-events", params={"startDate": "2024-01-01", "endDate": "2024-01-09"})
    only_one = client.get("/api/meal-events", params={"startDate": "2024-01-01"})

    assert [e["id"] for e in hit.json()] == [ev["id"]]
    assert miss.json() == []
    assert [e["id"] for e in only_one.json()] == [ev["id"]]


def test_meal_event_lifecycle(client):
    ev = _schedule(client, "d1", "2024-01-10")
    assert ev["startDate"] == "2024-01-10"
    assert ev["dishId"] == "d1"

    r = client.patch(f"/api/meal-events/{ev['id']}", json={"endDate": "2024-01-11"})
    assert r.status_code == 200
    assert r.json()["endDate"] == "2024-01-11"
    assert client.get(f"/api/meal-events/{ev['id']}").json()["endDate"] == "2024-01-11"

    assert client.delete(f"/api/meal-events/{ev['id']}").status_code == 204
    r = client.get(f"/api/meal-events/{ev['id']}")
    assert r.status_code == 404
    assert r.json() == {"message": "Meal event not found"}


def test_meal_event_bad_date_is_400(client):
    r = client.post(
        "/api/meal-events",
        json={"dishId": "d1", "startDate": "10/01/2024", "endDate": "2024-01-10", "mealType": "lunch"},
    )
    assert r.status_code == 400


# ── shopping list ───────────────────────────────────────────────────
def test_shopping_item_lifecycle(client):
    r = client.post("/api/shopping-list", json={"name": "milk", "quantity": "1", "unit": "l"})
    assert r.status_code == 201
    item = r.json()
    assert item["isCompleted"] is False
    assert item["dishName"] is None

    # legacy string booleans are still understood
    r = client.patch(f"/api/shopping-list/{item['id']}", json={"isCompleted": "true"})
    assert r.status_code == 200
    assert r.json()["isCompleted"] is True

    assert client.delete(f"/api/shopping-list/{item['id']}").status_code == 204
    assert client.delete(f"/api/shopping-list/{item['id']}").status_code == 404


def test_clear_shopping_list(client):
    client.post("/api/shopping-list", json={"name": "milk", "quantity": "1", "unit": "l"})
    client.post("/api/shopping-list", json={"name": "eggs", "quantity": "10", "unit": "pcs"})
    r = client.delete("/api/shopping-list")
    assert r.status_code == 204
    assert client.get("/api/shopping-list").json() == []


# ── generation ──────────────────────────────────────────────────────
def test_generate_example_week(client):
    dish = client.post("/api/dishes", json=RICE_MEAT).json()
    _schedule(client, dish["id"], "2024-01-01")
    _schedule(client, dish["id"], "2024-01-03")
    _schedule(client, "no-such-dish", "2024-01-02")
    client.post("/api/shopping-list", json={"name": "bread", "quantity": "1", "unit": "pcs"})

    r = client.post("/api/shopping-list/generate", json={"startDate": "2024-01-01", "endDate": "2024-01-07"})
    assert r.status_code == 200
    generated = r.json()
    assert [(i["name"], i["quantity"], i["unit"]) for i in generated] == [
        ("rice", "600", "g"),
        ("meat", "800", "g"),
    ]
    assert {i["plannedDate"] for i in generated} == {"2024-01-01"}
    assert {i["dishName"] for i in generated} == {"Rice with meat"}
    assert all(i["isCompleted"] is False for i in generated)

    # full replace: the hand-added bread is gone
    assert client.get("/api/shopping-list").json() == generated


def test_generate_requires_both_dates(client):
    r = client.post("/api/shopping-list/generate", json={"startDate": "2024-01-01"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid data"


def test_generate_rejects_reversed_range(client):
    r = client.post("/api/shopping-list/generate", json={"startDate": "2024-01-07", "endDate": "2024-01-01"})
    assert r.status_code == 400


# ── server errors ───────────────────────────────────────────────────
class _BrokenStorage(MemoryStorage):
    async def list_dishes(self):
        raise StorageError("connection reset")


def test_storage_failure_is_500_without_details():
    app = create_app(SETTINGS, storage=_BrokenStorage())
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/api/dishes")
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
    assert "connection reset" not in r.text


class _CrashingStorage(MemoryStorage):
    async def list_meal_events(self):
        raise RuntimeError("boom at 0xdeadbeef")


def test_unexpected_error_is_500_without_details():
    app = create_app(SETTINGS, storage=_CrashingStorage())
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/api/meal-events")
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
    assert "boom" not in r.text
