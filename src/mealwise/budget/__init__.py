"""Mealwise budget: price baselines and shopping list estimates."""

from mealwise.budget.estimator import (
    DEFAULT_CONFIG,
    EstimatorConfig,
    compare_store_prices,
    estimate_budget,
    with_upstream_lock,
)
from mealwise.budget.models import (
    BudgetEstimate,
    Confidence,
    EstimateView,
    PriceBaseline,
    StorePrice,
)

__all__ = [
    "DEFAULT_CONFIG",
    "BudgetEstimate",
    "Confidence",
    "EstimateView",
    "EstimatorConfig",
    "PriceBaseline",
    "StorePrice",
    "compare_store_prices",
    "estimate_budget",
    "with_upstream_lock",
]
