"""
Tests for the Supabase data source against a recorded query builder and a
PostgREST client on a mock transport.
"""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest
from postgrest import AsyncPostgrestClient

from mealwise.shopping.models import ShoppingListItem
from mealwise_web.config import WebSettings
from mealwise_web.db import get_data_source
from mealwise_web.db.memory import InMemoryDataSource
from mealwise_web.db.supabase_store import SupabaseDataSource


class FakeQuery:
    """Chainable PostgREST builder stand-in; records every call."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.ops = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return record

    async def execute(self):
        self.client.executed.append((self.table, self.ops))
        result = self.client.results.pop(0)
        if result is None:
            return None
        return SimpleNamespace(data=result)


class FakeClient:
    def __init__(self, *results):
        self.results = list(results)
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def _ops(executed_entry):
    return [name for name, _, _ in executed_entry[1]]


class TestSupabaseDataSource:
    """Test query construction and row mapping."""

    def test_get_plan_scoped_to_user(self):
        client = FakeClient({"id": "plan-1", "user_id": "user-1"})
        plan = asyncio.run(SupabaseDataSource(client).get_plan("plan-1", "user-1"))
        assert plan["id"] == "plan-1"
        table, ops = client.executed[0]
        assert table == "meal_plans"
        assert ("eq", ("user_id", "user-1"), {}) in ops

    def test_get_plan_no_row(self):
        client = FakeClient(None)
        assert asyncio.run(SupabaseDataSource(client).get_plan("plan-1", "user-1")) is None

    def test_save_shopping_list(self):
        client = FakeClient(
            [{"id": "list-1"}],
            [],
            [{"id": "new-1", "name": "Rice", "quantity": 400, "unit": "g", "category": "grains", "checked": False}],
        )
        saved = asyncio.run(SupabaseDataSource(client).save_shopping_list(
            "plan-1", "user-1", [ShoppingListItem(name="Rice", quantity=400, unit="g", category="grains")],
        ))
        assert saved[0].id == "new-1"
        assert [t for t, _ in client.executed] == ["shopping_lists", "shopping_list_items", "shopping_list_items"]
        assert _ops(client.executed[1]) == ["select", "eq"]
        name, args, kwargs = client.executed[2][1][0]
        assert name == "insert"
        assert kwargs == {"default_to_null": False}
        assert args[0] == [{
            "shopping_list_id": "list-1",
            "name": "Rice",
            "quantity": 400,
            "unit": "g",
            "category": "grains",
            "checked": False,
        }]

    def test_save_keeps_stored_rows_until_written(self):
        client = FakeClient(
            [{"id": "list-1"}],
            [{"id": "keep-1"}, {"id": "old-2"}],
            [{"id": "keep-1", "name": "Carrot", "quantity": 5, "unit": "pcs", "category": "vegetables", "checked": True}],
            [{"id": "new-1", "name": "Rice", "quantity": 400, "unit": "g", "category": "grains", "checked": False}],
            [],
        )
        saved = asyncio.run(SupabaseDataSource(client).save_shopping_list("plan-1", "user-1", [
            ShoppingListItem(name="Carrot", quantity=5, unit="pcs", category="vegetables", checked=True, id="keep-1"),
            ShoppingListItem(name="Rice", quantity=400, unit="g", category="grains"),
        ]))
        assert [item.id for item in saved] == ["keep-1", "new-1"]
        assert [_ops(entry)[0] for entry in client.executed] == ["upsert", "select", "upsert", "insert", "delete"]
        assert client.executed[-1][1][1] == ("in_", ("id", ["old-2"]), {})

    def test_toggle_flips_stored_value(self):
        client = FakeClient(
            {"id": "item-1", "checked": True},
            [{"id": "item-1", "name": "Rice", "quantity": 1, "unit": "g", "category": "grains", "checked": False}],
        )
        item = asyncio.run(SupabaseDataSource(client).set_item_checked("item-1", "user-1"))
        assert item.checked is False
        update_ops = client.executed[1][1]
        assert update_ops[0] == ("update", ({"checked": False},), {})

    def test_toggle_foreign_item(self):
        client = FakeClient(None)
        assert asyncio.run(SupabaseDataSource(client).set_item_checked("item-1", "user-2")) is None
        assert len(client.executed) == 1

    def test_category_without_list(self):
        client = FakeClient(None)
        result = asyncio.run(SupabaseDataSource(client).set_category_checked("plan-1", "user-1", "dairy", True))
        assert result is None

    def test_price_baselines_two_queries(self):
        client = FakeClient([{"store": "A"}], [{"store": "B"}])
        rows = asyncio.run(SupabaseDataSource(client).list_price_baselines(["dairy"], ["milk"]))
        assert rows == [{"store": "A"}, {"store": "B"}]

    def test_user_lookup_lowercases(self):
        client = FakeClient([])
        assert asyncio.run(SupabaseDataSource(client).get_user_by_email(" Jane@Example.com ")) is None
        assert ("eq", ("email", "jane@example.com"), {}) in client.executed[0][1]


class TestSaveShoppingListRequests:
    """Test the HTTP requests a rebuild sends to PostgREST."""

    @pytest.fixture
    def sent(self):
        return []

    @pytest.fixture
    def source(self, sent):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content) if request.content else None
            sent.append((request.method, request.url.path.rsplit("/", 1)[-1], request.url.params, request.headers, body))
            if request.url.path.endswith("/shopping_lists"):
                return httpx.Response(201, json=[{"id": "list-1", "plan_id": "plan-1"}])
            if request.method == "GET":
                return httpx.Response(200, json=[{"id": "keep-1"}, {"id": "old-2"}])
            if request.method == "DELETE":
                return httpx.Response(200, json=[])
            if "on_conflict" in request.url.params:
                return httpx.Response(201, json=body)
            return httpx.Response(201, json=[{**row, "id": f"new-{n}"} for n, row in enumerate(body, 1)])

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SupabaseDataSource(AsyncPostgrestClient("http://db.test/rest/v1", http_client=http_client))

    @pytest.fixture
    def saved(self, source):
        return asyncio.run(source.save_shopping_list("plan-1", "user-1", [
            ShoppingListItem(name="Carrot", quantity=5, unit="pcs", category="vegetables", checked=True, id="keep-1"),
            ShoppingListItem(name="Rice", quantity=400, unit="g", category="grains"),
        ]))

    def test_request_order(self, saved, sent):
        assert [(method, table) for method, table, *_ in sent] == [
            ("POST", "shopping_lists"),
            ("GET", "shopping_list_items"),
            ("POST", "shopping_list_items"),
            ("POST", "shopping_list_items"),
            ("DELETE", "shopping_list_items"),
        ]

    def test_kept_rows_upserted_by_id(self, saved, sent):
        _, _, params, headers, body = sent[2]
        assert params["on_conflict"] == "id"
        assert "resolution=merge-duplicates" in headers["prefer"]
        assert [row["id"] for row in body] == ["keep-1"]
        assert body[0]["checked"] is True

    def test_new_rows_use_column_defaults(self, saved, sent):
        _, _, params, headers, body = sent[3]
        assert "on_conflict" not in params
        assert "missing=default" in headers["prefer"]
        assert '"id"' not in params["columns"]
        assert all("id" not in row for row in body)

    def test_only_stale_rows_deleted(self, saved, sent):
        _, _, params, _, _ = sent[4]
        assert params["id"] == "in.(old-2)"
        assert "shopping_list_id" not in params

    def test_returned_items(self, saved):
        assert [(item.name, item.id) for item in saved] == [("Carrot", "keep-1"), ("Rice", "new-1")]


class TestGetDataSource:
    """Test backend selection."""

    def test_memory_default(self):
        store = get_data_source(WebSettings(_env_file=None, mealwise_store="memory"))
        assert isinstance(store, InMemoryDataSource)
        assert store.plans == {}

    def test_memory_seeded(self, tmp_path):
        path = tmp_path / "seed.json"
        path.write_text('{"plans": [{"id": "p", "user_id": "u", "days": 1, "items": []}]}')
        store = get_data_source(WebSettings(_env_file=None, mealwise_seed_path=path))
        assert "p" in store.plans
