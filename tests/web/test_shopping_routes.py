"""
Tests for the shopping list endpoints and the in-memory data source.
"""

import asyncio
import json

import pytest

from mealwise.shopping.models import ShoppingListItem
from mealwise_web.db.memory import InMemoryDataSource
from mealwise_web.db.sources import DataSource


def _items_by_name(body):
    return {item["name"]: item for item in body["items"]}


class TestGetShoppingList:
    """Test GET /api/plans/{id}/shopping-list."""

    def test_requires_session(self, client, store):
        assert client.get("/api/plans/plan-1/shopping-list").status_code == 401
        assert not store.fetched("get_shopping_list")

    def test_existing_list_with_estimate(self, client, login):
        login()
        body = client.get("/api/plans/plan-1/shopping-list").json()
        assert body["plan_id"] == "plan-1"
        assert [i["name"] for i in body["items"]] == ["Carrot", "Chicken breast", "Milk", "Rice", "Olive oil"]
        assert body["estimate"]["locked"] is False
        assert body["estimate"]["total"] == pytest.approx(8.86)
        assert body["estimate"]["confidence"] == "high"
        assert body["cheapest_store"] == "ValueGrocer"
        assert len(body["stores"]) == 3
        assert body["disclaimer"]

    def test_locked_estimate_hides_stores(self, client, login):
        login(email="sam@example.com")
        body = client.get("/api/plans/plan-2/shopping-list").json()
        assert body["estimate"]["locked"] is True
        assert body["estimate"]["total"] is None
        assert body["estimate"]["confidence"] is None
        assert body["estimate"]["missing_item_count"] is None
        assert body["stores"] == []
        assert body["cheapest_store"] is None

    def test_builds_list_on_first_access(self, client, store, login):
        login()
        body = client.get("/api/plans/plan-3/shopping-list").json()
        items = _items_by_name(body)
        assert items["Carrot"]["quantity"] == 5
        assert items["Carrot"]["unit"] == "pcs"
        assert all(item["id"] for item in body["items"])
        assert body["estimate"]["confidence"] == "medium"
        assert body["estimate"]["missing_item_count"] == 1
        assert store.fetched("save_shopping_list")

        store.calls.clear()
        again = client.get("/api/plans/plan-3/shopping-list").json()
        assert not store.fetched("save_shopping_list")
        assert [i["id"] for i in again["items"]] == [i["id"] for i in body["items"]]

    def test_unknown_plan(self, client, login):
        login()
        response = client.get("/api/plans/plan-999/shopping-list")
        assert response.status_code == 404
        assert response.json() == {"error": "Meal plan not found"}

    def test_mode_query(self, client, login):
        login()
        body = client.get("/api/plans/plan-1/shopping-list", params={"mode": "premium"}).json()
        assert body["estimate"]["mode"] == "premium"


class TestRebuildShoppingList:
    """Test POST /api/plans/{id}/shopping-list/rebuild."""

    def test_keeps_checked_state(self, client, login):
        login()
        body = client.post("/api/plans/plan-1/shopping-list/rebuild").json()
        items = _items_by_name(body)
        assert items["Rice"]["checked"] is True
        assert items["Rice"]["id"] == "item-2"
        assert items["Carrot"]["quantity"] == 5
        assert items["Carrot"]["unit"] == "pcs"

    def test_subtracts_pantry(self, client, login):
        login()
        body = client.post(
            "/api/plans/plan-1/shopping-list/rebuild",
            json={"pantry": [{"name": "olive oil"}, {"name": "Milk", "quantity": 100, "unit": "ml"}]},
        ).json()
        items = _items_by_name(body)
        assert "Olive oil" not in items
        assert items["Milk"]["quantity"] == 150

    def test_persists_rebuilt_list(self, client, store, login):
        login()
        client.post("/api/plans/plan-1/shopping-list/rebuild", json={"pantry": [{"name": "rice"}]})
        stored = [row["name"] for row in store.shopping_lists["plan-1"]["items"]]
        assert "Rice" not in stored
        assert store.shopping_lists["plan-1"]["budget_estimate"] is None

    def test_other_users_plan(self, client, login):
        login()
        assert client.post("/api/plans/plan-2/shopping-list/rebuild").status_code == 404


class TestCheckedState:
    """Test item toggles and category checks."""

    def test_toggle_item(self, client, store, login):
        login()
        response = client.post("/api/shopping-list/items/item-1/toggle")
        assert response.status_code == 200
        assert response.json()["item"]["checked"] is True
        assert store.shopping_lists["plan-1"]["items"][0]["checked"] is True

        again = client.post("/api/shopping-list/items/item-1/toggle").json()
        assert again["item"]["checked"] is False

    def test_toggle_other_users_item(self, client, login):
        login()
        response = client.post("/api/shopping-list/items/u2-item-1/toggle")
        assert response.status_code == 404
        assert response.json() == {"error": "Shopping list item not found"}

    def test_toggle_malformed_id(self, client, login):
        login()
        response = client.post("/api/shopping-list/items/a.b/toggle")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid item id"}

    def test_check_category(self, client, store, login):
        login()
        response = client.post("/api/plans/plan-1/shopping-list/categories/Grains", json={"checked": False})
        assert response.json() == {"category": "grains", "checked": False, "updated": 1}
        rice = next(row for row in store.shopping_lists["plan-1"]["items"] if row["name"] == "Rice")
        assert rice["checked"] is False

    def test_unknown_category(self, client, login):
        login()
        response = client.post("/api/plans/plan-1/shopping-list/categories/spices", json={"checked": True})
        assert response.status_code == 400
        assert response.json() == {"error": "Unknown category"}

    def test_category_without_list(self, client, login):
        login()
        response = client.post("/api/plans/plan-3/shopping-list/categories/pantry", json={"checked": True})
        assert response.status_code == 404

    def test_category_missing_body(self, client, login):
        login()
        response = client.post("/api/plans/plan-1/shopping-list/categories/pantry")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request"}


class TestInMemoryDataSource:
    """Test the in-memory DataSource directly."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryDataSource(), DataSource)

    async def _save(self, store):
        return await store.save_shopping_list("plan-x", "user-1", [
            ShoppingListItem(name="Rice", quantity=1, unit="kg", category="grains"),
            ShoppingListItem(name="Milk", quantity=1, unit="l", category="dairy", id="keep"),
        ])

    def test_save_assigns_ids(self):
        store = InMemoryDataSource()
        saved = asyncio.run(self._save(store))
        assert saved[0].id
        assert saved[1].id == "keep"
        assert store.shopping_lists["plan-x"]["user_id"] == "user-1"

    def test_returns_copies(self, store):
        plan = asyncio.run(store.get_plan("plan-1", "user-1"))
        plan["days"] = 99
        assert store.plans["plan-1"]["days"] == 2

    def test_price_baselines_filtered(self, store):
        rows = asyncio.run(store.list_price_baselines(["grains"], ["Chicken Breast"]))
        assert {row["store"] for row in rows} == {"FreshMart", "ValueGrocer", "GreenLeaf"}
        assert any(row["ingredient_name"] == "chicken breast" for row in rows)
        assert all(row["ingredient_category"] in ("grains", "protein") for row in rows)
        assert len(rows) == 4

    def test_from_file(self, tmp_path, users):
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"users": users}))
        store = InMemoryDataSource.from_file(path)
        assert "jane@example.com" in store.users
