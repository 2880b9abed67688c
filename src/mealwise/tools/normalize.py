"""
Mealwise - Name and unit normalization.

Utilities for normalizing ingredient input so identical items match.
"""

import unicodedata

# Common unit aliases - map to standard form
UNIT_ALIASES = {
    "pounds": "lb",
    "pound": "lb",
    "lbs": "lb",
    "ounces": "oz",
    "ounce": "oz",
    "grams": "g",
    "gram": "g",
    "gr": "g",
    "kilograms": "kg",
    "kilogram": "kg",
    "kgs": "kg",
    "liters": "l",
    "liter": "l",
    "litres": "l",
    "litre": "l",
    "milliliters": "ml",
    "milliliter": "ml",
    "millilitres": "ml",
    "millilitre": "ml",
    "cups": "cup",
    "tablespoons": "tbsp",
    "tablespoon": "tbsp",
    "teaspoons": "tsp",
    "teaspoon": "tsp",
    "fluid ounce": "fl oz",
    "fluid ounces": "fl oz",
    "pc": "pcs",
    "piece": "pcs",
    "pieces": "pcs",
    "item": "pcs",
    "items": "pcs",
}


def normalize_name(name: str) -> str:
    """
    Normalize a name for consistent matching.

    Operations:
    - Unicode NFKC folding
    - Lowercase
    - Strip leading/trailing whitespace
    - Collapse multiple spaces to single space

    Examples:
        normalize_name("  Chicken Thighs  ") -> "chicken thighs"
        normalize_name("TOMATO") -> "tomato"
        normalize_name("green   pepper") -> "green pepper"
    """
    return " ".join(unicodedata.normalize("NFKC", name).lower().strip().split())


def clean_unit(unit: str | None) -> str:
    """
    Clean and normalize a unit string.

    Args:
        unit: Raw unit input (e.g., "LBS", "Pounds", "pc")

    Returns:
        Normalized unit (lowercase, canonical alias); empty string for no unit
    """
    if not unit:
        return ""
    unit = " ".join(unit.lower().strip().split())
    return UNIT_ALIASES.get(unit, unit)
