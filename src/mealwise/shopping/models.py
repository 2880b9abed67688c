"""Data models for shopping lists."""

from typing import Any

from pydantic import BaseModel, field_validator, model_validator

from mealwise.core.categories import Category, coerce_category
from mealwise.tools.normalize import clean_unit, normalize_name
from mealwise.tools.units import base_unit_for


class ShoppingListItem(BaseModel):
    """
    One line of a shopping list, as stored in shopping_list_items.

    Identity is (normalized name, cleaned unit, category); two items with the
    same identity are the same thing to buy.
    """

    name: str = ""
    quantity: float = 0.0
    unit: str = ""
    category: Category = Category.OTHER
    checked: bool = False
    id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_linked_ingredient(cls, data: Any) -> Any:
        # Rows joined to ingredients carry name and category on the ingredient
        if isinstance(data, dict) and isinstance(data.get("ingredient"), dict):
            ingredient = data["ingredient"]
            data = {
                **data,
                "name": data.get("name") or ingredient.get("name"),
                "category": data.get("category") or ingredient.get("category"),
            }
        return data

    @field_validator("name", "unit", mode="before")
    @classmethod
    def _blank_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("quantity", mode="before")
    @classmethod
    def _missing_quantity(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> Category:
        return coerce_category(value)

    @field_validator("checked", mode="before")
    @classmethod
    def _unchecked(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @property
    def key(self) -> tuple[str, str, Category]:
        return (normalize_name(self.name), clean_unit(self.unit), self.category)

    @property
    def merge_key(self) -> tuple[str, Category, str]:
        """Name, category and unit dimension; kg and g of the same thing match."""
        unit = clean_unit(self.unit)
        return (normalize_name(self.name), self.category, base_unit_for(unit) or unit)

    def to_dict(self) -> dict:
        """Serialize for API responses and storage."""
        return self.model_dump(mode="json")
