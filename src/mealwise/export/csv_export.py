"""
Mealwise - Shopping list CSV export.

Layout:
    Item,Quantity,Unit,Category,Checked
    Carrot,2,pcs,vegetables,no
    ...
    <blank line>
    Estimate Mode,Standard
    Estimate Total,12.50
    ...
    Estimate Locked,false

Numeric estimate fields are left blank when the estimate is locked.
"""

import csv
import io
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from mealwise.budget.models import BudgetEstimate
from mealwise.config import ESTIMATE_DISCLAIMER
from mealwise.core.modes import DEFAULT_ESTIMATE_MODE, EstimateMode, mode_label, resolve_mode
from mealwise.errors import RenderError
from mealwise.shopping.aggregator import sort_for_display
from mealwise.shopping.models import ShoppingListItem
from mealwise.tools.units import format_quantity_value

logger = logging.getLogger(__name__)

CSV_HEADER = ["Item", "Quantity", "Unit", "Category", "Checked"]


def format_timestamp(value: datetime) -> str:
    """UTC timestamp, second precision: 2024-03-04T12:00:00Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _metadata_rows(
    estimate: BudgetEstimate | None,
    mode: EstimateMode,
    disclaimer: str,
    generated_at: datetime,
) -> list[list[str]]:
    view = estimate.view() if estimate is not None else None
    locked = view is None or view.locked

    total = "" if locked or view.total is None else f"{view.total:.2f}"
    confidence = "" if locked or view.confidence is None else view.confidence.value.title()
    missing = "" if locked or view.missing_item_count is None else str(view.missing_item_count)

    return [
        ["Estimate Mode", mode_label(view.mode if view else mode)],
        ["Estimate Total", total],
        ["Estimate Confidence", confidence],
        ["Estimate Missing Items", missing],
        ["Estimate Generated At", format_timestamp(view.generated_at if view else generated_at)],
        ["Estimate Disclaimer", disclaimer],
        ["Estimate Locked", "true" if locked else "false"],
    ]


def render_shopping_list_csv(
    items: Iterable[ShoppingListItem | Mapping[str, Any]] | None,
    estimate: BudgetEstimate | None,
    *,
    mode: EstimateMode | str | None = None,
    disclaimer: str = ESTIMATE_DISCLAIMER,
    generated_at: datetime | None = None,
) -> bytes:
    """
    Render a shopping list and its estimate as UTF-8 CSV bytes.

    A missing estimate renders as locked.

    Raises:
        RenderError: No shopping list, or serialization failed
    """
    if items is None:
        raise RenderError(detail="Shopping list is missing")

    try:
        rows = sort_for_display(
            item if isinstance(item, ShoppingListItem) else ShoppingListItem.model_validate(item)
            for item in items
        )

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for item in rows:
            writer.writerow([
                item.name,
                format_quantity_value(item.quantity),
                item.unit,
                item.category.value,
                "yes" if item.checked else "no",
            ])

        writer.writerow([])
        writer.writerows(
            _metadata_rows(
                estimate,
                resolve_mode(mode, DEFAULT_ESTIMATE_MODE),
                disclaimer,
                generated_at or datetime.now(timezone.utc),
            )
        )
        return buffer.getvalue().encode("utf-8")
    except Exception as e:
        logger.exception("Shopping list CSV render failed")
        raise RenderError(detail=f"CSV render failed: {e}") from e
