"""Shopping list categories and their display order."""

from enum import Enum


class Category(str, Enum):
    """Fixed shopping list categories, declared in display order."""

    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    PROTEIN = "protein"
    DAIRY = "dairy"
    GRAINS = "grains"
    PANTRY = "pantry"
    OTHER = "other"


CATEGORY_ORDER: tuple[Category, ...] = tuple(Category)

CATEGORY_LABELS = {category: category.value.title() for category in Category}

_CATEGORY_RANK = {category: index for index, category in enumerate(CATEGORY_ORDER)}


def coerce_category(value: "Category | str | None") -> Category:
    """Map any input to a known category; unrecognized values become OTHER."""
    if isinstance(value, Category):
        return value
    if not value:
        return Category.OTHER
    try:
        return Category(str(value).strip().lower())
    except ValueError:
        return Category.OTHER


def category_rank(value: "Category | str | None") -> int:
    """Position of a category in CATEGORY_ORDER."""
    return _CATEGORY_RANK[coerce_category(value)]
