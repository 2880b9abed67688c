"""
Tests for name/unit normalization and unit conversion.
"""

import pytest

from mealwise.tools.normalize import clean_unit, normalize_name
from mealwise.tools.units import (
    base_unit_for,
    convert_to_base_unit,
    format_ingredient_line,
    format_quantity,
    format_quantity_value,
)


class TestNormalize:
    """Test name and unit cleanup."""

    def test_normalize_name(self):
        assert normalize_name("  Chicken   Thighs ") == "chicken thighs"
        assert normalize_name("TOMATO") == "tomato"

    def test_normalize_name_folds_unicode_width(self):
        assert normalize_name("Ｔofu") == "tofu"

    @pytest.mark.parametrize("raw,expected", [
        ("LBS", "lb"),
        ("Pounds", "lb"),
        ("pc", "pcs"),
        ("Tablespoons", "tbsp"),
        ("fluid  ounces", "fl oz"),
        ("g", "g"),
        (None, ""),
        ("", ""),
    ])
    def test_clean_unit(self, raw, expected):
        assert clean_unit(raw) == expected


class TestConversion:
    """Test conversion to base units."""

    def test_weight(self):
        converted = convert_to_base_unit(1, "kg")
        assert converted.value == 1000
        assert converted.unit == "g"

    def test_volume(self):
        converted = convert_to_base_unit(2, "tbsp")
        assert converted.value == 30
        assert converted.unit == "ml"

    def test_alias_count(self):
        converted = convert_to_base_unit(3, "pieces")
        assert converted.value == 3
        assert converted.unit == "pcs"

    def test_unknown_unit_returns_none(self):
        assert convert_to_base_unit(1, "pinch") is None
        assert convert_to_base_unit(1, "") is None

    def test_base_unit_for(self):
        assert base_unit_for("lb") == "g"
        assert base_unit_for("cups") == "ml"
        assert base_unit_for("pinch") is None


class TestFormatting:
    """Test quantity display formatting."""

    @pytest.mark.parametrize("value,expected", [
        (3.0, "3"),
        (2.333, "2.33"),
        (0.5, "0.5"),
        (1.10, "1.1"),
        (None, "N/A"),
        (float("nan"), "N/A"),
        (float("inf"), "N/A"),
    ])
    def test_format_quantity_value(self, value, expected):
        assert format_quantity_value(value) == expected

    def test_format_quantity(self):
        assert format_quantity(1500, "g") == "1.5kg"
        assert format_quantity(250, "ml") == "250ml"
        assert format_quantity(2, "pcs") == "2 pcs"

    def test_format_ingredient_line_converts(self):
        assert format_ingredient_line(2, "tbsp", "Olive oil") == "30ml Olive oil"

    def test_format_ingredient_line_unknown_unit(self):
        assert format_ingredient_line(1, "pinch", "Salt") == "1 pinch Salt"

    def test_format_ingredient_line_without_quantity(self):
        assert format_ingredient_line(None, None, "Salt") == "Salt"
