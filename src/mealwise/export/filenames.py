"""
Download filenames and Content-Disposition values.

Everything here is a pure function of its inputs so the same plan always
downloads under the same name.
"""

import re
import unicodedata
from datetime import date

DEFAULT_PREFIX = "meal-plan"

_NON_SLUG = re.compile(r"[^a-z0-9]+")
# Quotes, backslashes, path separators and control characters
_UNSAFE_FILENAME = re.compile(r'["\\/\x00-\x1f\x7f]')


def slugify(value: str | None) -> str:
    """
    ASCII slug: lowercase letters, digits and single dashes.

    Examples:
        slugify("Jane Doe") -> "jane-doe"
        slugify("Zoë") -> "zoe"
        slugify('a/"b"') -> "a-b"
    """
    if not value:
        return ""
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("-", ascii_value.lower()).strip("-")


def create_plan_filename(prefix: str | None, start_date: date, days: int, ext: str) -> str:
    """
    Build "{prefix}-{YYYY-MM-DD}-{days}d.{ext}".

    The prefix is slugified and falls back to "meal-plan" when nothing
    survives.
    """
    slug = slugify(prefix) or DEFAULT_PREFIX
    return f"{slug}-{start_date.isoformat()}-{days}d.{ext}"


def first_name_fragment(user_name: str | None) -> str:
    """Slug of the first word of a user name, or "" when there is none."""
    if not user_name:
        return ""
    parts = user_name.strip().split()
    return slugify(parts[0]) if parts else ""


def meal_plan_pdf_filename(start_date: date, days: int, user_name: str | None = None) -> str:
    """
    Examples:
        meal_plan_pdf_filename(date(2024, 3, 4), 7, "Jane Doe") -> "jane-meal-plan-2024-03-04-7d.pdf"
        meal_plan_pdf_filename(date(2024, 3, 4), 7) -> "meal-plan-2024-03-04-7d.pdf"
    """
    fragment = first_name_fragment(user_name)
    prefix = f"{fragment}-{DEFAULT_PREFIX}" if fragment else DEFAULT_PREFIX
    return create_plan_filename(prefix, start_date, days, "pdf")


def shopping_list_csv_filename(start_date: date, days: int) -> str:
    return create_plan_filename("shopping-list", start_date, days, "csv")


def content_disposition(filename: str) -> str:
    """attachment header value with anything unsafe for a quoted filename removed."""
    safe = "".join(c for c in _UNSAFE_FILENAME.sub("", filename) if c.isascii()).strip()
    return f'attachment; filename="{safe or "download"}"'
