"""
Mealwise - Budget data models.

PriceBaseline rows come from the price baseline source; BudgetEstimate is the
full computation result and EstimateView is what consumers are allowed to see.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, field_validator

from mealwise.core.categories import Category, coerce_category
from mealwise.core.modes import EstimateMode
from mealwise.tools.normalize import clean_unit, normalize_name

_TIMESTAMP = TypeAdapter(datetime)


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    return _as_utc(_TIMESTAMP.validate_python(value))


class PriceBaseline(BaseModel):
    """
    Unit price of an ingredient category (or a specific ingredient) at a store.

    Maps rows of the price_baselines table. A baseline with ingredient_name
    is name-specific and beats any category-level baseline for that ingredient.
    """

    store: str = ""
    unit: str = ""
    price_per_unit: float
    category: Category | None = Field(
        default=None,
        validation_alias=AliasChoices("ingredient_category", "category"),
    )
    ingredient_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ingredient_name", "name"),
    )
    updated_at: datetime | None = None

    @field_validator("store", mode="before")
    @classmethod
    def _strip_store(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("unit", mode="before")
    @classmethod
    def _clean_unit(cls, value: Any) -> str:
        return clean_unit(value)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> Category | None:
        return coerce_category(value) if value else None

    @field_validator("ingredient_name", mode="before")
    @classmethod
    def _normalized_name(cls, value: Any) -> str | None:
        return (normalize_name(str(value)) or None) if value else None

    @field_validator("updated_at", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        return value or None

    @field_validator("updated_at")
    @classmethod
    def _utc_timestamp(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None

    @property
    def is_name_specific(self) -> bool:
        return self.ingredient_name is not None


@dataclass
class StorePrice:
    """Shopping list total at one store."""

    store: str
    total_price: float
    item_count: int = 0

    def to_dict(self) -> dict:
        return {"store": self.store, "total_price": self.total_price, "item_count": self.item_count}


@dataclass
class EstimateView:
    """Consumer-facing estimate. Numeric fields are None when locked."""

    mode: EstimateMode
    total: float | None
    confidence: Confidence | None
    missing_item_count: int | None
    locked: bool
    generated_at: datetime

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "total": self.total,
            "confidence": self.confidence.value if self.confidence else None,
            "missing_item_count": self.missing_item_count,
            "locked": self.locked,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass
class BudgetEstimate:
    """
    Result of one estimate computation.

    Values are kept even when locked so the audit log can record them;
    anything shown to a user must go through view().
    """

    mode: EstimateMode
    totals: dict[EstimateMode, float | None] = field(default_factory=dict)
    confidence: Confidence = Confidence.LOW
    missing_item_count: int = 0
    resolved_item_count: int = 0
    item_count: int = 0
    locked: bool = True
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total(self) -> float | None:
        return self.totals.get(self.mode)

    def view(self) -> EstimateView:
        if self.locked:
            return EstimateView(
                mode=self.mode,
                total=None,
                confidence=None,
                missing_item_count=None,
                locked=True,
                generated_at=self.generated_at,
            )
        return EstimateView(
            mode=self.mode,
            total=self.total,
            confidence=self.confidence,
            missing_item_count=self.missing_item_count,
            locked=False,
            generated_at=self.generated_at,
        )

    def to_audit_dict(self) -> dict:
        """Full, unmasked values for the audit log."""
        return {
            "mode": self.mode.value,
            "totals": {mode.value: total for mode, total in self.totals.items()},
            "confidence": self.confidence.value,
            "missing_item_count": self.missing_item_count,
            "resolved_item_count": self.resolved_item_count,
            "item_count": self.item_count,
            "locked": self.locked,
            "generated_at": self.generated_at.isoformat(),
        }
