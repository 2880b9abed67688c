"""
Tests for download filenames and Content-Disposition values.
"""

from datetime import date

import pytest

from mealwise.export.filenames import (
    content_disposition,
    create_plan_filename,
    first_name_fragment,
    meal_plan_pdf_filename,
    shopping_list_csv_filename,
    slugify,
)
from mealwise.export.models import CSV_MIME_TYPE, ExportArtifact

START = date(2024, 3, 4)


class TestSlugify:
    """Test ASCII slugs."""

    @pytest.mark.parametrize("value,expected", [
        ("Jane Doe", "jane-doe"),
        ("Zoë", "zoe"),
        ('a/"b"', "a-b"),
        ("  --Weekly  Plan--  ", "weekly-plan"),
        ("", ""),
        (None, ""),
        ("日本", ""),
    ])
    def test_slugify(self, value, expected):
        assert slugify(value) == expected


class TestPlanFilenames:
    """Test plan-derived filenames."""

    def test_create_plan_filename(self):
        assert create_plan_filename("My Plan", START, 7, "pdf") == "my-plan-2024-03-04-7d.pdf"

    def test_empty_prefix_falls_back(self):
        assert create_plan_filename("!!!", START, 7, "pdf") == "meal-plan-2024-03-04-7d.pdf"

    def test_pdf_with_user_name(self):
        assert meal_plan_pdf_filename(START, 7, "Jane Doe") == "jane-meal-plan-2024-03-04-7d.pdf"

    @pytest.mark.parametrize("user_name", [None, "", "   ", "日本"])
    def test_pdf_without_usable_name(self, user_name):
        assert meal_plan_pdf_filename(START, 7, user_name) == "meal-plan-2024-03-04-7d.pdf"

    def test_first_name_fragment(self):
        assert first_name_fragment("  Zoë  Smith ") == "zoe"
        assert first_name_fragment(None) == ""

    def test_csv(self):
        assert shopping_list_csv_filename(START, 2) == "shopping-list-2024-03-04-2d.csv"

    def test_filenames_are_deterministic(self):
        assert meal_plan_pdf_filename(START, 3, "Sam") == meal_plan_pdf_filename(START, 3, "Sam")


class TestContentDisposition:
    """Test header sanitization."""

    def test_plain(self):
        assert content_disposition("plan.pdf") == 'attachment; filename="plan.pdf"'

    def test_strips_unsafe_characters(self):
        value = content_disposition('a"b\\c/d\r\ne.csv')
        assert value == 'attachment; filename="abcde.csv"'

    def test_strips_non_ascii(self):
        assert content_disposition("zoë.pdf") == 'attachment; filename="zo.pdf"'

    def test_empty_falls_back(self):
        assert content_disposition('"/"') == 'attachment; filename="download"'

    def test_artifact_headers(self):
        artifact = ExportArtifact(mime_type=CSV_MIME_TYPE, filename="list.csv", content=b"x")
        assert artifact.headers() == {
            "Content-Type": "text/csv; charset=utf-8",
            "Content-Disposition": 'attachment; filename="list.csv"',
            "Cache-Control": "no-store",
        }
