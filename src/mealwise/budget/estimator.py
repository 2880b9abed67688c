"""
Mealwise - Budget Estimator.

Prices a shopping list against store price baselines.

Resolution per item:
1. Convert the quantity to its base unit (g, ml, pcs); unknown units are unpriceable
2. Name-specific baselines for the item in that unit, else category baselines
3. One price per store: the most recently updated baseline
4. Mode price = min / median / max across stores

The estimator is pure: baselines and configuration are passed in, and the
clock is only read when no generated_at is given.
"""

import logging
import statistics
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from mealwise.budget.models import BudgetEstimate, Confidence, PriceBaseline, StorePrice
from mealwise.core.categories import Category
from mealwise.core.modes import DEFAULT_ESTIMATE_MODE, EstimateMode, price_strategy, resolve_mode
from mealwise.shopping.models import ShoppingListItem
from mealwise.tools.normalize import normalize_name
from mealwise.tools.units import BASE_UNITS, convert_to_base_unit

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class EstimatorConfig:
    """Estimator thresholds. Built from CoreSettings in production, passed directly in tests."""

    default_mode: EstimateMode = DEFAULT_ESTIMATE_MODE
    medium_missing_ratio: float = 0.2
    min_priced_items: int = 3


DEFAULT_CONFIG = EstimatorConfig()


class BaselineIndex:
    """Price baselines indexed by (name, unit) and (category, unit)."""

    def __init__(self, baselines: Iterable[PriceBaseline | Mapping[str, Any]]):
        self.by_name: dict[tuple[str, str], list[PriceBaseline]] = defaultdict(list)
        self.by_category: dict[tuple[Category, str], list[PriceBaseline]] = defaultdict(list)

        for baseline in baselines:
            if not isinstance(baseline, PriceBaseline):
                baseline = PriceBaseline.model_validate(baseline)
            if baseline.unit not in BASE_UNITS:
                logger.debug(f"Ignoring baseline with non-base unit: {baseline.unit}")
                continue
            if baseline.is_name_specific:
                self.by_name[(baseline.ingredient_name, baseline.unit)].append(baseline)
            elif baseline.category is not None:
                self.by_category[(baseline.category, baseline.unit)].append(baseline)

    def candidates(self, item: ShoppingListItem, base_unit: str) -> list[PriceBaseline]:
        """Most specific baselines for an item; name-specific beats category-level."""
        specific = self.by_name.get((normalize_name(item.name), base_unit))
        if specific:
            return specific
        return self.by_category.get((item.category, base_unit), [])


def latest_per_store(baselines: Iterable[PriceBaseline]) -> dict[str, float]:
    """
    One unit price per store, from the most recently updated baseline.

    A baseline without updated_at counts as the oldest; on equal timestamps
    the later baseline in input order wins.
    """
    latest: dict[str, PriceBaseline] = {}
    for baseline in baselines:
        current = latest.get(baseline.store)
        if current is None or (baseline.updated_at or _OLDEST) >= (current.updated_at or _OLDEST):
            latest[baseline.store] = baseline
    return {store: baseline.price_per_unit for store, baseline in latest.items()}


def price_for_mode(prices: Iterable[float], mode: EstimateMode) -> float:
    """Apply a mode's price strategy to the per-store prices."""
    values = list(prices)
    strategy = price_strategy(mode)
    if strategy == "min":
        return min(values)
    if strategy == "max":
        return max(values)
    return statistics.median(values)


def _as_item(item: ShoppingListItem | Mapping[str, Any]) -> ShoppingListItem:
    if isinstance(item, ShoppingListItem):
        return item
    return ShoppingListItem.model_validate(item)


def resolve_confidence(item_count: int, missing_item_count: int, config: EstimatorConfig) -> Confidence:
    if item_count == 0:
        return Confidence.LOW
    if missing_item_count == 0:
        return Confidence.HIGH
    if missing_item_count / item_count <= config.medium_missing_ratio:
        return Confidence.MEDIUM
    return Confidence.LOW


def estimate_budget(
    items: Iterable[ShoppingListItem | Mapping[str, Any]],
    baselines: Iterable[PriceBaseline | Mapping[str, Any]],
    mode: EstimateMode | str | None = None,
    *,
    config: EstimatorConfig | None = None,
    generated_at: datetime | None = None,
) -> BudgetEstimate:
    """
    Estimate the cost of a shopping list.

    Args:
        items: Shopping list items (dataclasses or stored rows)
        baselines: Price baselines covering the list's categories and names
        mode: Requested mode; falls back to config.default_mode
        config: Thresholds; DEFAULT_CONFIG when omitted
        generated_at: Timestamp recorded on the estimate

    Returns:
        BudgetEstimate with totals for every mode. The lock is applied but the
        values are kept on the estimate for auditing.
    """
    config = config or DEFAULT_CONFIG
    selected = resolve_mode(mode, config.default_mode)
    index = BaselineIndex(baselines)

    totals = {m: 0.0 for m in EstimateMode}
    item_count = 0
    missing = 0

    for raw in items:
        item = _as_item(raw)
        item_count += 1

        converted = convert_to_base_unit(item.quantity, item.unit)
        if converted is None:
            missing += 1
            continue

        prices = latest_per_store(index.candidates(item, converted.unit))
        if not prices:
            missing += 1
            continue

        for m in EstimateMode:
            totals[m] += converted.value * price_for_mode(prices.values(), m)

    confidence = resolve_confidence(item_count, missing, config)
    resolved = item_count - missing
    locked = confidence is Confidence.LOW or resolved < config.min_priced_items

    estimate = BudgetEstimate(
        mode=selected,
        totals={m: round(total, 2) for m, total in totals.items()},
        confidence=confidence,
        missing_item_count=missing,
        resolved_item_count=resolved,
        item_count=item_count,
        locked=locked,
        generated_at=generated_at or datetime.now(timezone.utc),
    )

    logger.info(
        f"Budget estimate: mode={selected.value}, items={item_count}, missing={missing}, "
        f"confidence={confidence.value}, locked={locked}"
    )
    return estimate


def with_upstream_lock(estimate: BudgetEstimate, locked: bool | None) -> BudgetEstimate:
    """Apply a lock decided upstream (entitlement, stored flag). Never unlocks."""
    if locked and not estimate.locked:
        return replace(estimate, locked=True)
    return estimate


def compare_store_prices(
    items: Iterable[ShoppingListItem | Mapping[str, Any]],
    baselines: Iterable[PriceBaseline | Mapping[str, Any]],
) -> list[StorePrice]:
    """
    Shopping list total per store, cheapest first.

    A store's total only counts the items it has a price for; item_count
    says how many that is.
    """
    index = BaselineIndex(baselines)
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)

    for raw in items:
        item = _as_item(raw)
        converted = convert_to_base_unit(item.quantity, item.unit)
        if converted is None:
            continue
        for store, price in latest_per_store(index.candidates(item, converted.unit)).items():
            totals[store] += converted.value * price
            counts[store] += 1

    stores = [
        StorePrice(store=store, total_price=round(total, 2), item_count=counts[store])
        for store, total in totals.items()
    ]
    return sorted(stores, key=lambda s: (s.total_price, s.store))
