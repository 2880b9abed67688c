"""
Pytest configuration and fixtures for Mealwise tests.
"""

import os
from datetime import datetime, timezone

import bcrypt
import pytest

# Set test environment before importing mealwise modules
os.environ["MEALWISE_ENV"] = "development"
os.environ["MEALWISE_AUDIT_LOG"] = "false"
os.environ["MEALWISE_STORE"] = "memory"

# Low cost factor keeps login tests fast
PASSWORD = "correct horse"
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()

GENERATED_AT = datetime(2024, 3, 4, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def generated_at():
    """Fixed estimate/export timestamp."""
    return GENERATED_AT


@pytest.fixture
def sample_plan():
    """Two-day plan: breakfast + dinner on day 1, lunch on day 2."""
    return {
        "id": "plan-1",
        "user_id": "user-1",
        "start_date": "2024-03-04",
        "days": 2,
        "items": [
            {
                "id": "pi-1",
                "day_index": 0,
                "meal_type": "dinner",
                "servings": 4,
                "recipe": {
                    "id": "r-1",
                    "title": "Chicken Rice Bowl",
                    "servings_default": 2,
                    "prep_time_minutes": 10,
                    "cook_time_minutes": 20,
                    "calories": 550,
                    "ingredients": [
                        {"name": "Chicken breast", "category": "protein", "quantity": 300, "unit": "g"},
                        {"name": "Rice", "category": "grains", "quantity": 200, "unit": "g"},
                        {"name": "Carrot", "category": "vegetables", "quantity": 1, "unit": "pc"},
                    ],
                    "instructions_md": "1. Cook rice\n2. Grill chicken\n3. Serve",
                },
            },
            {
                "id": "pi-2",
                "day_index": 0,
                "meal_type": "breakfast",
                "servings": 2,
                "recipe": {
                    "id": "r-2",
                    "title": "Carrot Pancakes",
                    "servings_default": 2,
                    "total_time_minutes": 25,
                    "ingredients": [
                        {"ingredient": {"name": "Carrot", "category": "vegetables"}, "quantity": 2, "unit": "pc"},
                        {"name": "Milk", "category": "dairy", "quantity": 250, "unit": "ml"},
                    ],
                    "steps": [
                        {"step_number": 2, "instruction": "Fry"},
                        {"step_number": 1, "instruction": "Mix batter"},
                    ],
                    "diet_tags": [{"name": "vegetarian"}],
                },
            },
            {
                "id": "pi-3",
                "day_index": 1,
                "meal_type": "lunch",
                "servings": None,
                "recipe": {
                    "id": "r-3",
                    "title": "Olive Oil Salad",
                    "prep_time_minutes": 10,
                    "ingredients": [
                        {"name": "Olive oil", "category": "pantry", "quantity": 2, "unit": "tbsp"},
                        {"name": "Carrot", "category": "vegetables", "quantity": 1, "unit": "pc"},
                    ],
                },
            },
        ],
    }


@pytest.fixture
def sample_shopping_list():
    """Stored shopping list for plan-1; every item is priceable."""
    return {
        "id": "list-1",
        "plan_id": "plan-1",
        "user_id": "user-1",
        "budget_estimate": None,
        "items": [
            {"id": "item-1", "name": "Carrot", "quantity": 500, "unit": "g", "category": "vegetables", "checked": False},
            {"id": "item-2", "name": "Rice", "quantity": 400, "unit": "g", "category": "grains", "checked": True},
            {"id": "item-3", "name": "Chicken breast", "quantity": 600, "unit": "g", "category": "protein", "checked": False},
            {"id": "item-4", "name": "Olive oil", "quantity": 2, "unit": "tbsp", "category": "pantry", "checked": False},
            {"id": "item-5", "name": "Milk", "quantity": 250, "unit": "ml", "category": "dairy", "checked": False},
        ],
    }


@pytest.fixture
def price_baselines():
    """Category baselines at three stores plus one name-specific chicken price."""
    rows = []
    prices = {
        ("vegetables", "g"): (0.003, 0.004, 0.005),
        ("grains", "g"): (0.002, 0.002, 0.003),
        ("protein", "g"): (0.01, 0.012, 0.015),
        ("pantry", "ml"): (0.01, 0.012, 0.02),
        ("dairy", "ml"): (0.001, 0.0012, 0.0015),
    }
    for (category, unit), store_prices in prices.items():
        for store, price in zip(("FreshMart", "ValueGrocer", "GreenLeaf"), store_prices):
            rows.append({
                "store": store,
                "unit": unit,
                "price_per_unit": price,
                "ingredient_category": category,
                "ingredient_name": None,
                "updated_at": "2024-01-01T00:00:00Z",
            })
    rows.append({
        "store": "FreshMart",
        "unit": "g",
        "price_per_unit": 0.009,
        "ingredient_category": "protein",
        "ingredient_name": "chicken breast",
        "updated_at": "2024-02-01T00:00:00Z",
    })
    return rows


@pytest.fixture
def users():
    return [
        {
            "id": "user-1",
            "email": "jane@example.com",
            "password_hash": PASSWORD_HASH,
            "display_name": "Jane Doe",
            "role": "premium",
        },
        {
            "id": "user-2",
            "email": "sam@example.com",
            "password_hash": PASSWORD_HASH,
            "display_name": "Sam",
            "role": "free",
        },
    ]


@pytest.fixture
def store(users, sample_plan, sample_shopping_list, price_baselines):
    """In-memory store: plan-1 with a list and plan-3 without one (user-1), plan-2 (user-2)."""
    from mealwise_web.db.memory import InMemoryDataSource

    plan_2 = {**sample_plan, "id": "plan-2", "user_id": "user-2"}
    plan_3 = {**sample_plan, "id": "plan-3"}
    list_2 = {**sample_shopping_list, "id": "list-2", "plan_id": "plan-2", "user_id": "user-2"}
    list_2["items"] = [{**item, "id": f"u2-{item['id']}"} for item in sample_shopping_list["items"]]

    return InMemoryDataSource(
        users=users,
        plans=[sample_plan, plan_2, plan_3],
        shopping_lists=[sample_shopping_list, list_2],
        price_baselines=price_baselines,
    )


@pytest.fixture
def web_settings():
    from mealwise_web.config import WebSettings

    return WebSettings(_env_file=None, estimate_requires_premium=True, mealwise_audit_log=False)


@pytest.fixture
def app(web_settings, store):
    from mealwise_web.web.app import create_app

    return create_app(settings=web_settings, store=store)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def login(client):
    """Log the test client in; the session cookie stays on the client."""

    def _login(email: str = "jane@example.com", password: str = PASSWORD):
        response = client.post("/api/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response

    return _login
