"""Mealwise shopping: list aggregation and checked-state updates."""

from mealwise.shopping.aggregator import (
    aggregate_ingredient_lines,
    aggregate_plan_items,
    group_by_category,
    set_category_checked,
    sort_for_display,
    subtract_pantry,
    toggle_item_checked,
)
from mealwise.shopping.models import ShoppingListItem

__all__ = [
    "ShoppingListItem",
    "aggregate_ingredient_lines",
    "aggregate_plan_items",
    "group_by_category",
    "set_category_checked",
    "sort_for_display",
    "subtract_pantry",
    "toggle_item_checked",
]
