"""
Mealwise - Shopping List Aggregator.

Merges recipe ingredient lines from a meal plan into a deduplicated,
category-grouped shopping list.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from mealwise.core.categories import CATEGORY_ORDER, Category, category_rank, coerce_category
from mealwise.errors import NotFoundError, ValidationFailedError
from mealwise.shopping.models import ShoppingListItem
from mealwise.tools.normalize import clean_unit, normalize_name
from mealwise.tools.units import CONVERSION_RULES, base_unit_for, convert_to_base_unit

logger = logging.getLogger(__name__)


@dataclass
class _Group:
    """Lines sharing a name, category and unit dimension."""

    name: str
    category: Category
    parts: list[tuple[float, str]] = field(default_factory=list)

    def resolve(self) -> tuple[float, str]:
        units = {unit for _, unit in self.parts}
        if len(units) == 1:
            return sum(q for q, _ in self.parts), units.pop()

        # Mixed units of one dimension: sum in the base unit
        total = 0.0
        base = ""
        for quantity, unit in self.parts:
            converted = convert_to_base_unit(quantity, unit)
            total += converted.value
            base = converted.unit
        return total, base


def _line_quantity(line: Mapping[str, Any]) -> float:
    quantity = line.get("quantity")
    if quantity is None:
        return 0.0
    if isinstance(quantity, bool):
        raise ValidationFailedError("Invalid ingredient quantity", detail=f"quantity={quantity!r}")
    try:
        value = float(quantity)
    except (TypeError, ValueError):
        raise ValidationFailedError("Invalid ingredient quantity", detail=f"quantity={quantity!r}")
    if not math.isfinite(value):
        raise ValidationFailedError("Invalid ingredient quantity", detail=f"quantity={quantity!r}")
    return value


def aggregate_ingredient_lines(
    lines: Iterable[Mapping[str, Any]],
    existing: Iterable[ShoppingListItem] | None = None,
) -> list[ShoppingListItem]:
    """
    Group raw ingredient lines into shopping list items.

    Lines are keyed by normalized name, category and unit dimension;
    quantities are summed and the first occurrence fixes display order and
    name. Items already present in `existing` with the same name, category
    and unit dimension keep their checked state and id.

    Args:
        lines: Mappings with name, quantity, unit, category
        existing: Previously persisted items (merge-by-identity)

    Returns:
        New list of ShoppingListItem in first-occurrence order
    """
    groups: dict[tuple[str, Category, str], _Group] = {}

    for line in lines:
        name = str(line.get("name") or "").strip()
        if not name:
            logger.debug(f"Skipping ingredient line without a name: {dict(line)}")
            continue

        quantity = _line_quantity(line)
        unit = clean_unit(line.get("unit"))
        category = coerce_category(line.get("category"))
        dimension = base_unit_for(unit) or unit

        key = (normalize_name(name), category, dimension)
        group = groups.get(key)
        if group is None:
            group = groups[key] = _Group(name=name, category=category)
        group.parts.append((quantity, unit))

    previous = {item.merge_key: item for item in existing or []}

    items = []
    for group in groups.values():
        quantity, unit = group.resolve()
        item = ShoppingListItem(
            name=group.name,
            quantity=round(quantity, 2),
            unit=unit,
            category=group.category,
        )
        earlier = previous.get(item.merge_key)
        if earlier is not None:
            item.checked = earlier.checked
            item.id = earlier.id
        items.append(item)

    return items


def _servings_multiplier(servings: Any, servings_default: Any) -> float:
    if not servings or not servings_default:
        return 1.0
    return float(servings) / float(servings_default)


def collect_plan_ingredient_lines(plan_items: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Flatten plan items into ingredient lines scaled to each item's servings."""
    lines = []
    for item in plan_items:
        recipe = item.get("recipe") or {}
        multiplier = _servings_multiplier(item.get("servings"), recipe.get("servings_default"))

        for line in recipe.get("ingredients") or []:
            ingredient = line.get("ingredient") or {}
            quantity = line.get("quantity")
            lines.append({
                "name": line.get("name") or ingredient.get("name"),
                "category": line.get("category") or ingredient.get("category"),
                "unit": line.get("unit"),
                "quantity": None if quantity is None else _line_quantity(line) * multiplier,
            })
    return lines


def aggregate_plan_items(
    plan_items: Iterable[Mapping[str, Any]],
    existing: Iterable[ShoppingListItem] | None = None,
) -> list[ShoppingListItem]:
    """Build a shopping list from meal plan items (each wrapping a recipe)."""
    return aggregate_ingredient_lines(collect_plan_ingredient_lines(plan_items), existing)


# =============================================================================
# Pantry and checked state
# =============================================================================


def subtract_pantry(
    items: Iterable[ShoppingListItem],
    pantry: Iterable[Mapping[str, Any]],
) -> list[ShoppingListItem]:
    """
    Remove what the pantry already covers.

    Pantry entries match by name and unit dimension. Items fully covered are
    dropped; partially covered items keep the remainder in their own unit.
    An entry without a quantity covers the item whatever the amount.
    """
    stock: dict[tuple[str, str], float] = {}
    unlimited: set[str] = set()
    for entry in pantry:
        name = normalize_name(str(entry.get("name") or ""))
        if entry.get("quantity") is None:
            unlimited.add(name)
            continue
        unit = clean_unit(entry.get("unit"))
        quantity = _line_quantity(entry)
        converted = convert_to_base_unit(quantity, unit)
        if converted is not None:
            key, amount = (name, converted.unit), converted.value
        else:
            key, amount = (name, unit), quantity
        stock[key] = stock.get(key, 0.0) + amount

    remaining = []
    for item in items:
        if normalize_name(item.name) in unlimited:
            continue
        unit = clean_unit(item.unit)
        rule = CONVERSION_RULES.get(unit)
        dimension = rule.base_unit if rule else unit
        multiplier = rule.multiplier if rule else 1.0

        available = stock.get((normalize_name(item.name), dimension), 0.0)
        needed = item.quantity * multiplier
        if available <= 0:
            remaining.append(item)
            continue
        if available >= needed:
            continue
        remaining.append(item.model_copy(update={"quantity": round((needed - available) / multiplier, 2)}))
    return remaining


def toggle_item_checked(items: Iterable[ShoppingListItem], item_id: str) -> list[ShoppingListItem]:
    """Flip checked on one item. Raises NotFoundError for an unknown id."""
    result = []
    found = False
    for item in items:
        if item.id == item_id:
            item = item.model_copy(update={"checked": not item.checked})
            found = True
        result.append(item)
    if not found:
        raise NotFoundError("Shopping list item not found", detail=f"item_id={item_id}")
    return result


def set_category_checked(
    items: Iterable[ShoppingListItem],
    category: Category | str,
    checked: bool,
) -> list[ShoppingListItem]:
    """Set checked on every item of a category."""
    target = coerce_category(category)
    return [item.model_copy(update={"checked": checked}) if item.category is target else item for item in items]


# =============================================================================
# Display ordering
# =============================================================================


def sort_for_display(items: Iterable[ShoppingListItem]) -> list[ShoppingListItem]:
    """Fixed category order, then case-insensitive name."""
    return sorted(items, key=lambda item: (category_rank(item.category), item.name.casefold()))


def group_by_category(items: Iterable[ShoppingListItem]) -> dict[Category, list[ShoppingListItem]]:
    """Items grouped by category in display order; empty categories omitted."""
    grouped: dict[Category, list[ShoppingListItem]] = {category: [] for category in CATEGORY_ORDER}
    for item in sort_for_display(items):
        grouped[item.category].append(item)
    return {category: members for category, members in grouped.items() if members}
