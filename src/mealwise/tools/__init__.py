"""Mealwise tools: name and unit normalization, unit conversion."""

from mealwise.tools.normalize import clean_unit, normalize_name
from mealwise.tools.units import (
    BaseQuantity,
    base_unit_for,
    convert_to_base_unit,
    format_quantity,
    format_quantity_value,
)

__all__ = [
    "clean_unit",
    "normalize_name",
    "BaseQuantity",
    "base_unit_for",
    "convert_to_base_unit",
    "format_quantity",
    "format_quantity_value",
]
