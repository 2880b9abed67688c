"""
Mealwise - Estimate Mode Registry.

An estimate mode is a named pricing strategy applied to the per-store prices
found for a shopping list item:
- CHEAP: lowest store price
- STANDARD: median store price (default)
- PREMIUM: highest store price

Mode Selection:
1. Primary: explicit mode on the request (query param, CLI --mode)
2. Fallback: configured default (ESTIMATE_DEFAULT_MODE)
"""

from enum import Enum


class EstimateMode(str, Enum):
    """Supported budget estimate modes."""

    CHEAP = "cheap"
    STANDARD = "standard"
    PREMIUM = "premium"


DEFAULT_ESTIMATE_MODE = EstimateMode.STANDARD

# Mode behavior configuration
MODE_CONFIG = {
    EstimateMode.CHEAP: {
        "label": "Cheap",
        "price_strategy": "min",
    },
    EstimateMode.STANDARD: {
        "label": "Standard",
        "price_strategy": "median",
    },
    EstimateMode.PREMIUM: {
        "label": "Premium",
        "price_strategy": "max",
    },
}


def resolve_mode(
    value: "EstimateMode | str | None",
    default: EstimateMode = DEFAULT_ESTIMATE_MODE,
) -> EstimateMode:
    """
    Parse a mode from user input. Falls back to default for empty or unknown values.

    Examples:
        resolve_mode("premium") -> EstimateMode.PREMIUM
        resolve_mode(" Cheap ") -> EstimateMode.CHEAP
        resolve_mode("luxury") -> EstimateMode.STANDARD
    """
    if isinstance(value, EstimateMode):
        return value
    if not value:
        return default
    try:
        return EstimateMode(str(value).strip().lower())
    except ValueError:
        return default


def mode_label(mode: EstimateMode) -> str:
    return MODE_CONFIG[mode]["label"]


def price_strategy(mode: EstimateMode) -> str:
    return MODE_CONFIG[mode]["price_strategy"]
