"""
Data Source Protocol.

Defines the upstream collaborators the HTTP service fetches from: plans,
shopping lists, price baselines and users. Every method is awaited once per
request; implementations own retries and connection handling.

Rows are plain dicts shaped like the Supabase tables:

    plan:           {id, user_id, start_date, days, items: [{id, day_index, meal_type, servings, recipe}]}
    shopping list:  {id, plan_id, user_id, items: [{id, name, quantity, unit, category, checked}],
                     budget_estimate: {locked, ...} | None}
    price baseline: {store, unit, price_per_unit, ingredient_category, ingredient_name, updated_at}
    user:           {id, email, password_hash, display_name, role}
"""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from mealwise.shopping.models import ShoppingListItem


@runtime_checkable
class DataSource(Protocol):
    """Storage backend for the HTTP service. All lookups are scoped to the owning user."""

    async def get_plan(self, plan_id: str, user_id: str) -> dict[str, Any] | None:
        """Plan with items and recipes, or None when missing or owned by someone else."""
        ...

    async def get_shopping_list(self, plan_id: str, user_id: str) -> dict[str, Any] | None:
        ...

    async def save_shopping_list(
        self,
        plan_id: str,
        user_id: str,
        items: Iterable[ShoppingListItem],
    ) -> list[ShoppingListItem]:
        """Replace the plan's shopping list. Returns the items with ids assigned."""
        ...

    async def set_item_checked(
        self,
        item_id: str,
        user_id: str,
        checked: bool | None = None,
    ) -> ShoppingListItem | None:
        """Set (or flip, when checked is None) one item. None when the item is not the user's."""
        ...

    async def set_category_checked(
        self,
        plan_id: str,
        user_id: str,
        category: str,
        checked: bool,
    ) -> int | None:
        """Set checked on a category. Returns the number of items touched, None without a list."""
        ...

    async def list_price_baselines(
        self,
        categories: Iterable[str],
        names: Iterable[str],
    ) -> list[dict[str, Any]]:
        """Category-level baselines for the categories plus name-specific ones for the names."""
        ...

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        ...
