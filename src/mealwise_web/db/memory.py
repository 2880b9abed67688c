"""
In-memory data source.

Per-process dicts, used for development and tests. Can be seeded from a JSON
bundle:

    {
        "users": [{"id", "email", "password_hash", "display_name", "role"}],
        "plans": [{"id", "user_id", "start_date", "days", "items": [...]}],
        "shopping_lists": [{"plan_id", "user_id", "items": [...], "budget_estimate": {...}}],
        "price_baselines": [{"store", "unit", "price_per_unit", ...}]
    }

Every call is recorded in `calls` so tests can assert what was fetched.
"""

import copy
import json
import logging
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from mealwise.shopping.aggregator import set_category_checked, toggle_item_checked
from mealwise.shopping.models import ShoppingListItem
from mealwise.tools.normalize import normalize_name

logger = logging.getLogger(__name__)


class InMemoryDataSource:
    """DataSource backed by dicts."""

    def __init__(
        self,
        users: Iterable[dict] = (),
        plans: Iterable[dict] = (),
        shopping_lists: Iterable[dict] = (),
        price_baselines: Iterable[dict] = (),
    ):
        self.users = {u["email"].casefold(): dict(u) for u in users}
        self.plans = {str(p["id"]): copy.deepcopy(p) for p in plans}
        self.shopping_lists = {str(s["plan_id"]): copy.deepcopy(s) for s in shopping_lists}
        self.price_baselines = [dict(b) for b in price_baselines]
        self.calls: list[tuple[str, Any]] = []

    @classmethod
    def from_bundle(cls, data: dict) -> "InMemoryDataSource":
        return cls(
            users=data.get("users") or [],
            plans=data.get("plans") or [],
            shopping_lists=data.get("shopping_lists") or [],
            price_baselines=data.get("price_baselines") or [],
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "InMemoryDataSource":
        """Load a seed bundle from disk."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Seeded in-memory store from {path}")
        return cls.from_bundle(data)

    # =========================================================================
    # Plans
    # =========================================================================

    async def get_plan(self, plan_id: str, user_id: str) -> dict[str, Any] | None:
        self.calls.append(("get_plan", plan_id))
        plan = self.plans.get(plan_id)
        if plan is None or plan.get("user_id") != user_id:
            return None
        return copy.deepcopy(plan)

    # =========================================================================
    # Shopping lists
    # =========================================================================

    def _owned_list(self, plan_id: str, user_id: str) -> dict | None:
        shopping_list = self.shopping_lists.get(plan_id)
        if shopping_list is None or shopping_list.get("user_id") != user_id:
            return None
        return shopping_list

    async def get_shopping_list(self, plan_id: str, user_id: str) -> dict[str, Any] | None:
        self.calls.append(("get_shopping_list", plan_id))
        shopping_list = self._owned_list(plan_id, user_id)
        return copy.deepcopy(shopping_list) if shopping_list is not None else None

    async def save_shopping_list(
        self,
        plan_id: str,
        user_id: str,
        items: Iterable[ShoppingListItem],
    ) -> list[ShoppingListItem]:
        self.calls.append(("save_shopping_list", plan_id))
        saved = [
            item if item.id else item.model_copy(update={"id": uuid.uuid4().hex})
            for item in items
        ]
        previous = self.shopping_lists.get(plan_id) or {}
        self.shopping_lists[plan_id] = {
            "id": previous.get("id") or uuid.uuid4().hex,
            "plan_id": plan_id,
            "user_id": user_id,
            "items": [item.to_dict() for item in saved],
            # Stored estimates are not carried over
            "budget_estimate": None,
        }
        return saved

    async def set_item_checked(
        self,
        item_id: str,
        user_id: str,
        checked: bool | None = None,
    ) -> ShoppingListItem | None:
        self.calls.append(("set_item_checked", item_id))
        for shopping_list in self.shopping_lists.values():
            if shopping_list.get("user_id") != user_id:
                continue
            items = [ShoppingListItem.model_validate(row) for row in shopping_list["items"]]
            if not any(item.id == item_id for item in items):
                continue

            if checked is None:
                items = toggle_item_checked(items, item_id)
            else:
                items = [
                    item.model_copy(update={"checked": checked}) if item.id == item_id else item
                    for item in items
                ]
            shopping_list["items"] = [item.to_dict() for item in items]
            return next(item for item in items if item.id == item_id)
        return None

    async def set_category_checked(
        self,
        plan_id: str,
        user_id: str,
        category: str,
        checked: bool,
    ) -> int | None:
        self.calls.append(("set_category_checked", plan_id))
        shopping_list = self._owned_list(plan_id, user_id)
        if shopping_list is None:
            return None

        items = [ShoppingListItem.model_validate(row) for row in shopping_list["items"]]
        updated = set_category_checked(items, category, checked)
        shopping_list["items"] = [item.to_dict() for item in updated]
        return sum(1 for item in updated if item.category.value == category)

    # =========================================================================
    # Price baselines and users
    # =========================================================================

    async def list_price_baselines(
        self,
        categories: Iterable[str],
        names: Iterable[str],
    ) -> list[dict[str, Any]]:
        self.calls.append(("list_price_baselines", None))
        wanted_categories = set(categories)
        wanted_names = {normalize_name(n) for n in names}

        rows = []
        for row in self.price_baselines:
            name = row.get("ingredient_name")
            if name:
                if normalize_name(name) in wanted_names:
                    rows.append(dict(row))
            elif (row.get("ingredient_category") or row.get("category")) in wanted_categories:
                rows.append(dict(row))
        return rows

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        self.calls.append(("get_user_by_email", email))
        user = self.users.get(email.strip().casefold())
        return dict(user) if user is not None else None

    def fetched(self, method: str) -> bool:
        """Whether a method was called at all."""
        return any(name == method for name, _ in self.calls)
