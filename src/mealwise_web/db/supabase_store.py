"""
Supabase data source.

Tables:
    meal_plans            id, user_id, start_date, days
    meal_plan_items       id, meal_plan_id, day_index, meal_type, servings, recipe_id
    recipes               id, title, calories, servings_default, prep/cook/total_time_minutes,
                          instructions_md
    recipe_ingredients    recipe_id, ingredient_id, quantity, unit
    ingredients           id, name, category
    recipe_steps          recipe_id, step_number, instruction
    shopping_lists        id, plan_id, user_id, budget_estimate (jsonb)
    shopping_list_items   id, shopping_list_id, name, quantity, unit, category, checked
    price_baselines       store, unit, price_per_unit, ingredient_category, ingredient_name, updated_at
    users                 id, email, password_hash, display_name, role
"""

import logging
from collections.abc import Iterable
from typing import Any

from supabase import AsyncClient

from mealwise.shopping.models import ShoppingListItem
from mealwise_web.db.client import get_client

logger = logging.getLogger(__name__)

PLAN_SELECT = (
    "id, user_id, start_date, days, "
    "items:meal_plan_items(id, day_index, meal_type, servings, "
    "recipe:recipes(id, title, calories, servings_default, prep_time_minutes, cook_time_minutes, "
    "total_time_minutes, instructions_md, "
    "ingredients:recipe_ingredients(quantity, unit, ingredient:ingredients(name, category)), "
    "steps:recipe_steps(step_number, instruction)))"
)

SHOPPING_LIST_SELECT = (
    "id, plan_id, user_id, budget_estimate, "
    "items:shopping_list_items(id, name, quantity, unit, category, checked)"
)

BASELINE_SELECT = "store, unit, price_per_unit, ingredient_category, ingredient_name, updated_at"


def _single(response) -> dict[str, Any] | None:
    # maybe_single() returns None instead of a response when no row matches
    if response is None:
        return None
    return response.data


class SupabaseDataSource:
    """DataSource backed by Supabase (PostgREST) through the async client."""

    def __init__(self, client: AsyncClient | None = None):
        self.client = client

    async def _get_client(self) -> AsyncClient:
        if self.client is None:
            self.client = await get_client()
        return self.client

    # =========================================================================
    # Plans
    # =========================================================================

    async def get_plan(self, plan_id: str, user_id: str) -> dict[str, Any] | None:
        client = await self._get_client()
        response = await (
            client.table("meal_plans")
            .select(PLAN_SELECT)
            .eq("id", plan_id)
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        return _single(response)

    # =========================================================================
    # Shopping lists
    # =========================================================================

    async def get_shopping_list(self, plan_id: str, user_id: str) -> dict[str, Any] | None:
        client = await self._get_client()
        response = await (
            client.table("shopping_lists")
            .select(SHOPPING_LIST_SELECT)
            .eq("plan_id", plan_id)
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        return _single(response)

    async def save_shopping_list(
        self,
        plan_id: str,
        user_id: str,
        items: Iterable[ShoppingListItem],
    ) -> list[ShoppingListItem]:
        client = await self._get_client()
        items = list(items)
        list_resp = await (
            client.table("shopping_lists")
            .upsert(
                {"plan_id": plan_id, "user_id": user_id, "budget_estimate": None},
                on_conflict="plan_id",
            )
            .execute()
        )
        list_id = list_resp.data[0]["id"]

        stored = await (
            client.table("shopping_list_items")
            .select("id")
            .eq("shopping_list_id", list_id)
            .execute()
        )
        stored_ids = {str(row["id"]) for row in stored.data}

        kept_rows = []
        new_rows = []
        for item in items:
            row = {"shopping_list_id": list_id, **item.to_dict()}
            if item.id is not None and item.id in stored_ids:
                kept_rows.append(row)
            else:
                del row["id"]
                new_rows.append(row)

        # Stale rows are deleted only after the new state is written
        saved: dict[str, ShoppingListItem] = {}
        if kept_rows:
            response = await (
                client.table("shopping_list_items")
                .upsert(kept_rows, on_conflict="id")
                .execute()
            )
            for row in response.data:
                saved[str(row["id"])] = ShoppingListItem.model_validate(row)

        inserted: list[ShoppingListItem] = []
        if new_rows:
            # Rows carry no id; missing columns take their database defaults
            response = await (
                client.table("shopping_list_items")
                .insert(new_rows, default_to_null=False)
                .execute()
            )
            inserted = [ShoppingListItem.model_validate(row) for row in response.data]

        stale = sorted(stored_ids - saved.keys())
        if stale:
            await client.table("shopping_list_items").delete().in_("id", stale).execute()

        logger.info(
            f"Saved shopping list for plan {plan_id}: {len(saved)} kept, "
            f"{len(inserted)} added, {len(stale)} removed"
        )

        new_items = iter(inserted)
        return [
            saved[item.id] if item.id in saved else next(new_items)
            for item in items
        ]

    async def _owned_list_id(self, plan_id: str, user_id: str) -> str | None:
        client = await self._get_client()
        response = await (
            client.table("shopping_lists")
            .select("id")
            .eq("plan_id", plan_id)
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )
        row = _single(response)
        return row["id"] if row else None

    async def set_item_checked(
        self,
        item_id: str,
        user_id: str,
        checked: bool | None = None,
    ) -> ShoppingListItem | None:
        client = await self._get_client()
        # Security: the inner join restricts the lookup to the user's own lists
        response = await (
            client.table("shopping_list_items")
            .select("id, checked, shopping_list:shopping_lists!inner(user_id)")
            .eq("id", item_id)
            .eq("shopping_list.user_id", user_id)
            .maybe_single()
            .execute()
        )
        row = _single(response)
        if row is None:
            return None

        new_value = (not row.get("checked")) if checked is None else checked
        updated = await (
            client.table("shopping_list_items")
            .update({"checked": new_value})
            .eq("id", item_id)
            .execute()
        )
        return ShoppingListItem.model_validate(updated.data[0])

    async def set_category_checked(
        self,
        plan_id: str,
        user_id: str,
        category: str,
        checked: bool,
    ) -> int | None:
        client = await self._get_client()
        list_id = await self._owned_list_id(plan_id, user_id)
        if list_id is None:
            return None

        response = await (
            client.table("shopping_list_items")
            .update({"checked": checked})
            .eq("shopping_list_id", list_id)
            .eq("category", category)
            .execute()
        )
        return len(response.data)

    # =========================================================================
    # Price baselines and users
    # =========================================================================

    async def list_price_baselines(
        self,
        categories: Iterable[str],
        names: Iterable[str],
    ) -> list[dict[str, Any]]:
        client = await self._get_client()
        categories = list(categories)
        names = list(names)
        rows: list[dict[str, Any]] = []

        if categories:
            response = await (
                client.table("price_baselines")
                .select(BASELINE_SELECT)
                .in_("ingredient_category", categories)
                .is_("ingredient_name", "null")
                .execute()
            )
            rows.extend(response.data)

        if names:
            response = await (
                client.table("price_baselines")
                .select(BASELINE_SELECT)
                .in_("ingredient_name", names)
                .execute()
            )
            rows.extend(response.data)

        return rows

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        client = await self._get_client()
        response = await (
            client.table("users")
            .select("id, email, password_hash, display_name, role")
            .eq("email", email.strip().lower())
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None
