"""
Mealwise - Plan Normalizer.

Fills derived recipe fields before any export or estimate consumes a plan,
and converts raw plan mappings (as returned by the data sources) into the
typed export shape.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from mealwise.errors import ValidationFailedError

MEAL_TYPE_ORDER = {
    "breakfast": 0,
    "lunch": 1,
    "dinner": 2,
    "snack": 3,
}

MEAL_TYPE_LABELS = {
    "breakfast": "Breakfast",
    "lunch": "Lunch",
    "dinner": "Dinner",
    "snack": "Snack",
}

_UNKNOWN_MEAL_RANK = 99

# Fixed English labels; strftime("%b") follows the process locale
_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


# =============================================================================
# Recipe time normalization
# =============================================================================


def resolve_total_time_minutes(recipe: Mapping[str, Any]) -> int | None:
    """
    Total recipe time in minutes.

    Stored total wins; otherwise prep + cook with a missing part counted as 0;
    None when neither prep nor cook time is known.
    """
    total = recipe.get("total_time_minutes")
    if total is not None:
        return total

    prep = recipe.get("prep_time_minutes")
    cook = recipe.get("cook_time_minutes")
    if prep is not None or cook is not None:
        return (prep or 0) + (cook or 0)

    return None


def _normalize_recipe_total_time(recipe: Mapping[str, Any]) -> Mapping[str, Any]:
    if recipe.get("total_time_minutes") is not None:
        return recipe

    resolved = resolve_total_time_minutes(recipe)
    if resolved is None:
        return recipe

    return {**recipe, "total_time_minutes": resolved}


def normalize_plan_recipe_times(plan: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """
    Resolve total_time_minutes on every recipe of a plan.

    Never mutates the input. Items whose recipe needs no change are reused by
    identity so callers can detect no-op normalization with `is`.
    """
    if plan is None:
        return None

    items = []
    for item in plan.get("items") or []:
        recipe = item.get("recipe")
        if recipe is None:
            items.append(item)
            continue
        normalized_recipe = _normalize_recipe_total_time(recipe)
        if normalized_recipe is recipe:
            items.append(item)
        else:
            items.append({**item, "recipe": normalized_recipe})

    return {**plan, "items": items}


# =============================================================================
# Export shape
# =============================================================================


@dataclass
class ExportIngredient:
    name: str
    category: str
    quantity: float | None
    unit: str


@dataclass
class ExportRecipe:
    id: str
    title: str
    calories: int | None = None
    servings_default: int | None = None
    prep_time_minutes: int | None = None
    cook_time_minutes: int | None = None
    total_time_minutes: int | None = None
    ingredients: list[ExportIngredient] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    diet_tags: list[str] = field(default_factory=list)


@dataclass
class ExportPlanItem:
    id: str
    day_index: int
    meal_type: str
    servings: int | None
    recipe: ExportRecipe


@dataclass
class ExportMealPlan:
    """Normalized plan, safe for direct consumption by exporters."""

    id: str
    start_date: date
    days: int
    items: list[ExportPlanItem] = field(default_factory=list)


@dataclass
class ExportPlanDay:
    day_index: int
    date: date
    items: list[ExportPlanItem]


def parse_plan_date(value: date | datetime | str | None) -> date:
    """Coerce a plan start date to a calendar date (time component dropped)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationFailedError("Invalid plan start date", detail=f"start_date={value!r}")


def _parse_instructions(markdown: str) -> list[str]:
    """Split markdown instructions into steps, dropping bullets and numbering."""
    steps = []
    for line in markdown.splitlines():
        line = line.strip()
        if not line:
            continue
        line = re.sub(r"^[-*]\s+", "", line)
        line = re.sub(r"^\d+[.)]\s+", "", line)
        steps.append(line)
    return steps


def _recipe_steps(recipe: Mapping[str, Any]) -> list[str]:
    structured = recipe.get("steps") or []
    if structured:
        ordered = sorted(
            (s for s in structured if isinstance(s, Mapping)),
            key=lambda s: s.get("step_number") or 0,
        )
        texts = [str(s.get("instruction", "")).strip() for s in ordered]
        texts += [s.strip() for s in structured if isinstance(s, str)]
        return [t for t in texts if t]
    return _parse_instructions(recipe.get("instructions_md") or "")


def _recipe_diet_tags(recipe: Mapping[str, Any]) -> list[str]:
    tags = recipe.get("diet_tags")
    if tags is not None:
        names = []
        for tag in tags:
            if isinstance(tag, Mapping):
                tag = (tag.get("diet_tag") or tag).get("name")
            if tag:
                names.append(str(tag))
        return names

    # Legacy boolean flags
    names = []
    if recipe.get("is_vegetarian"):
        names.append("vegetarian")
    if recipe.get("is_dairy_free"):
        names.append("dairy-free")
    return names


def _export_ingredient(line: Mapping[str, Any]) -> ExportIngredient:
    nested = line.get("ingredient") or {}
    return ExportIngredient(
        name=str(line.get("name") or nested.get("name") or "").strip(),
        category=str(line.get("category") or nested.get("category") or "other"),
        quantity=line.get("quantity"),
        unit=str(line.get("unit") or ""),
    )


def _export_recipe(recipe: Mapping[str, Any]) -> ExportRecipe:
    return ExportRecipe(
        id=str(recipe.get("id", "")),
        title=str(recipe.get("title") or recipe.get("name") or "Untitled recipe"),
        calories=recipe.get("calories"),
        servings_default=recipe.get("servings_default"),
        prep_time_minutes=recipe.get("prep_time_minutes"),
        cook_time_minutes=recipe.get("cook_time_minutes"),
        total_time_minutes=recipe.get("total_time_minutes"),
        ingredients=[_export_ingredient(line) for line in recipe.get("ingredients") or []],
        steps=_recipe_steps(recipe),
        diet_tags=_recipe_diet_tags(recipe),
    )


def normalize_plan_for_export(raw_plan: Mapping[str, Any]) -> ExportMealPlan:
    """
    Normalize a plan fetched from a data source into the export shape.

    Raises:
        ValidationFailedError: Missing id, non-positive day count, bad start date
    """
    if not raw_plan or not raw_plan.get("id"):
        raise ValidationFailedError("Plan is missing an id")

    days = raw_plan.get("days")
    if not isinstance(days, int) or isinstance(days, bool) or days < 1:
        raise ValidationFailedError("Plan must span at least one day", detail=f"days={days!r}")

    plan = normalize_plan_recipe_times(raw_plan)

    items = []
    for index, item in enumerate(plan["items"]):
        recipe = item.get("recipe")
        if recipe is None:
            raise ValidationFailedError("Plan item has no recipe", detail=f"item index {index}")
        items.append(
            ExportPlanItem(
                id=str(item.get("id", index)),
                day_index=int(item.get("day_index", 0)),
                meal_type=str(item.get("meal_type") or "dinner").lower(),
                servings=item.get("servings"),
                recipe=_export_recipe(recipe),
            )
        )

    return ExportMealPlan(
        id=str(plan["id"]),
        start_date=parse_plan_date(plan.get("start_date")),
        days=days,
        items=items,
    )


# =============================================================================
# Day grouping and labels
# =============================================================================


def _meal_rank(item: ExportPlanItem) -> int:
    return MEAL_TYPE_ORDER.get(item.meal_type, _UNKNOWN_MEAL_RANK)


def group_plan_by_day(plan: ExportMealPlan) -> list[ExportPlanDay]:
    """One entry per plan day, meals ordered breakfast -> lunch -> dinner -> snack."""
    days = []
    for index in range(plan.days):
        items = sorted((i for i in plan.items if i.day_index == index), key=_meal_rank)
        days.append(
            ExportPlanDay(
                day_index=index,
                date=plan.start_date + timedelta(days=index),
                items=items,
            )
        )
    return days


def _short_date(value: date) -> str:
    return f"{_MONTH_ABBR[value.month - 1]} {value.day}"


def plan_date_label(start_date: date, days: int) -> str:
    """
    Friendly date range for a plan.

    Examples:
        plan_date_label(date(2024, 3, 4), 7) -> "Mar 4 - Mar 10"
        plan_date_label(date(2024, 3, 4), 1) -> "Mar 4"
    """
    if days <= 1:
        return _short_date(start_date)
    end_date = start_date + timedelta(days=days - 1)
    return f"{_short_date(start_date)} - {_short_date(end_date)}"


def day_heading(day: ExportPlanDay) -> str:
    """Section heading for a plan day, e.g. "Day 1 - Monday, March 4"."""
    weekday = _WEEKDAYS[day.date.weekday()]
    month = _MONTHS[day.date.month - 1]
    return f"Day {day.day_index + 1} - {weekday}, {month} {day.date.day}"


def meal_type_label(meal_type: str) -> str:
    """Human label for a meal type; unknown types are title-cased."""
    normalized = meal_type.lower()
    return MEAL_TYPE_LABELS.get(normalized) or normalized.title()


def summarize_instructions(steps: list[str], max_steps: int = 6) -> list[str]:
    """First max_steps non-empty steps."""
    return [s for s in steps if s.strip()][:max_steps]
