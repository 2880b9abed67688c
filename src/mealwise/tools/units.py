"""
Mealwise - Unit Handling.

Converts recipe measurements to base units (g, ml, pcs) so quantities can be
summed across recipes and priced against per-unit baselines.
"""

import math
from dataclasses import dataclass

from mealwise.tools.normalize import clean_unit

BASE_UNITS = ("g", "ml", "pcs")


@dataclass(frozen=True)
class ConversionRule:
    """Multiplier from a unit into its base unit."""

    base_unit: str
    multiplier: float


CONVERSION_RULES = {
    # Weight to grams
    "g": ConversionRule("g", 1),
    "kg": ConversionRule("g", 1000),
    "oz": ConversionRule("g", 28.35),
    "lb": ConversionRule("g", 453.592),
    # Volume to milliliters
    "ml": ConversionRule("ml", 1),
    "l": ConversionRule("ml", 1000),
    "tsp": ConversionRule("ml", 5),
    "tbsp": ConversionRule("ml", 15),
    "cup": ConversionRule("ml", 240),
    "fl oz": ConversionRule("ml", 29.5735),
    # Count
    "pcs": ConversionRule("pcs", 1),
    "count": ConversionRule("pcs", 1),
    "whole": ConversionRule("pcs", 1),
}


@dataclass(frozen=True)
class BaseQuantity:
    """A quantity expressed in a base unit."""

    value: float
    unit: str


def base_unit_for(unit: str | None) -> str | None:
    """Base unit a unit converts to, or None when the unit is unknown."""
    rule = CONVERSION_RULES.get(clean_unit(unit))
    return rule.base_unit if rule else None


def convert_to_base_unit(quantity: float, unit: str | None) -> BaseQuantity | None:
    """
    Convert a quantity to its base unit.

    Returns None for units with no conversion rule (e.g. "pinch") so callers
    can count the line as unpriceable instead of failing.

    Examples:
        convert_to_base_unit(1, "kg") -> BaseQuantity(1000, "g")
        convert_to_base_unit(2, "tbsp") -> BaseQuantity(30, "ml")
        convert_to_base_unit(1, "pinch") -> None
    """
    rule = CONVERSION_RULES.get(clean_unit(unit))
    if rule is None:
        return None
    return BaseQuantity(value=quantity * rule.multiplier, unit=rule.base_unit)


def format_quantity(value: float, unit: str) -> str:
    """
    Format a base-unit quantity for display.

    Returns strings like "500g", "1.5kg", "250ml", "2 pcs".
    """
    rounded = round(value, 1)
    if unit == "pcs":
        return f"{round(value)} pcs"
    if unit == "g" and value >= 1000:
        return f"{rounded / 1000:.1f}kg"
    if unit == "ml" and value >= 1000:
        return f"{rounded / 1000:.1f}L"
    return f"{format_quantity_value(rounded)}{unit}"


def format_quantity_value(value: float | None) -> str:
    """
    Format a number for exports.

    Integers render without a decimal point; fractions keep up to 2 decimals
    with trailing zeros trimmed. Non-finite values render as "N/A".

    Examples:
        format_quantity_value(3.0) -> "3"
        format_quantity_value(2.333) -> "2.33"
        format_quantity_value(0.5) -> "0.5"
    """
    if value is None or not math.isfinite(value):
        return "N/A"
    rounded = round(value, 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.2f}".rstrip("0").rstrip(".")


def format_ingredient_line(quantity: float | None, unit: str | None, name: str) -> str:
    """Readable ingredient line, converted to base units where possible."""
    if quantity is None:
        return name
    converted = convert_to_base_unit(quantity, unit)
    if converted is not None:
        return f"{format_quantity(converted.value, converted.unit)} {name}"
    return f"{format_quantity_value(quantity)} {unit or ''} {name}".replace("  ", " ").strip()
