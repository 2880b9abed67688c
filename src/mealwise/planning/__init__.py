"""Mealwise planning: plan normalization for estimates and exports."""

from mealwise.planning.normalizer import (
    ExportMealPlan,
    ExportPlanDay,
    ExportPlanItem,
    ExportRecipe,
    group_plan_by_day,
    normalize_plan_for_export,
    normalize_plan_recipe_times,
    resolve_total_time_minutes,
)

__all__ = [
    "ExportMealPlan",
    "ExportPlanDay",
    "ExportPlanItem",
    "ExportRecipe",
    "group_plan_by_day",
    "normalize_plan_for_export",
    "normalize_plan_recipe_times",
    "resolve_total_time_minutes",
]
