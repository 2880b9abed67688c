"""Mealwise core registries: estimate modes and shopping categories."""

from mealwise.core.categories import CATEGORY_ORDER, Category, coerce_category
from mealwise.core.modes import DEFAULT_ESTIMATE_MODE, MODE_CONFIG, EstimateMode, resolve_mode

__all__ = [
    "CATEGORY_ORDER",
    "Category",
    "coerce_category",
    "DEFAULT_ESTIMATE_MODE",
    "MODE_CONFIG",
    "EstimateMode",
    "resolve_mode",
]
