"""
Mealwise - Export Pipeline.

One export request, end to end:

    raw plan -> normalize -> shopping list items -> estimate -> upstream lock
        -> audit log -> render

Inputs are already-fetched structural data; nothing here performs I/O other
than the audit log.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from mealwise.budget.estimator import EstimatorConfig, estimate_budget, with_upstream_lock
from mealwise.budget.models import BudgetEstimate, PriceBaseline
from mealwise.config import ESTIMATE_DISCLAIMER
from mealwise.core.modes import EstimateMode
from mealwise.errors import NotFoundError, RenderError
from mealwise.export.csv_export import render_shopping_list_csv
from mealwise.export.filenames import meal_plan_pdf_filename, shopping_list_csv_filename
from mealwise.export.models import CSV_MIME_TYPE, PDF_MIME_TYPE, ExportArtifact
from mealwise.export.pdf_export import render_meal_plan_pdf
from mealwise.observability.audit_logger import AuditLogger, get_audit_logger
from mealwise.planning.normalizer import normalize_plan_for_export
from mealwise.shopping.models import ShoppingListItem

logger = logging.getLogger(__name__)

ShoppingListPayload = Mapping[str, Any]


def shopping_list_items(shopping_list: ShoppingListPayload) -> list[ShoppingListItem]:
    """Items of a fetched shopping list payload ({"items": [...], "budget_estimate": {...}})."""
    return [
        item if isinstance(item, ShoppingListItem) else ShoppingListItem.model_validate(item)
        for item in shopping_list.get("items") or []
    ]


def upstream_locked(shopping_list: ShoppingListPayload | None) -> bool:
    """True when the stored list carries budget_estimate.locked == True."""
    if not shopping_list:
        return False
    stored = shopping_list.get("budget_estimate") or {}
    return stored.get("locked") is True


def compute_estimate(
    plan_id: str | None,
    items: Iterable[ShoppingListItem],
    baselines: Iterable[PriceBaseline | Mapping[str, Any]],
    *,
    mode: EstimateMode | str | None = None,
    config: EstimatorConfig | None = None,
    generated_at: datetime | None = None,
    entitled: bool = True,
    locked_upstream: bool = False,
    audit: AuditLogger | None = None,
) -> BudgetEstimate:
    """Fresh estimate with upstream locks applied, recorded in the audit log."""
    estimate = estimate_budget(items, baselines, mode, config=config, generated_at=generated_at)
    estimate = with_upstream_lock(estimate, locked_upstream or not entitled)
    (audit or get_audit_logger()).estimate_computed(plan_id, estimate)
    return estimate


def _render(
    kind: str,
    plan_id: str,
    filename: str,
    render: Callable[[], bytes],
    audit: AuditLogger,
) -> bytes:
    try:
        content = render()
    except RenderError as e:
        audit.export_failed(kind, plan_id, e.detail)
        raise
    audit.export_rendered(kind, plan_id, filename, len(content))
    logger.info(f"Rendered {kind} export {filename} ({len(content)} bytes)")
    return content


def build_shopping_list_export(
    plan: Mapping[str, Any] | None,
    shopping_list: ShoppingListPayload | None,
    baselines: Iterable[PriceBaseline | Mapping[str, Any]],
    *,
    mode: EstimateMode | str | None = None,
    config: EstimatorConfig | None = None,
    disclaimer: str = ESTIMATE_DISCLAIMER,
    generated_at: datetime | None = None,
    entitled: bool = True,
    audit: AuditLogger | None = None,
) -> ExportArtifact:
    """
    CSV export of a plan's shopping list.

    Raises:
        NotFoundError: No plan or no shopping list
        ValidationFailedError: Plan fails normalization
        RenderError: Serialization failed
    """
    if plan is None:
        raise NotFoundError("Meal plan not found")
    if shopping_list is None:
        raise NotFoundError("Shopping list not found")

    audit = audit or get_audit_logger()
    generated_at = generated_at or datetime.now(timezone.utc)
    export_plan = normalize_plan_for_export(plan)
    items = shopping_list_items(shopping_list)

    estimate = compute_estimate(
        export_plan.id,
        items,
        baselines,
        mode=mode,
        config=config,
        generated_at=generated_at,
        entitled=entitled,
        locked_upstream=upstream_locked(shopping_list),
        audit=audit,
    )

    filename = shopping_list_csv_filename(export_plan.start_date, export_plan.days)
    content = _render(
        "csv",
        export_plan.id,
        filename,
        lambda: render_shopping_list_csv(
            items, estimate, disclaimer=disclaimer, generated_at=generated_at
        ),
        audit,
    )
    return ExportArtifact(mime_type=CSV_MIME_TYPE, filename=filename, content=content)


def build_meal_plan_export(
    plan: Mapping[str, Any] | None,
    *,
    user_name: str | None = None,
    shopping_list: ShoppingListPayload | None = None,
    baselines: Iterable[PriceBaseline | Mapping[str, Any]] = (),
    mode: EstimateMode | str | None = None,
    config: EstimatorConfig | None = None,
    disclaimer: str = ESTIMATE_DISCLAIMER,
    generated_at: datetime | None = None,
    entitled: bool = True,
    audit: AuditLogger | None = None,
) -> ExportArtifact:
    """
    PDF export of a plan. The shopping list page is included when a list is given.

    Raises:
        NotFoundError: No plan
        ValidationFailedError: Plan fails normalization
        RenderError: Serialization failed
    """
    if plan is None:
        raise NotFoundError("Meal plan not found")

    audit = audit or get_audit_logger()
    generated_at = generated_at or datetime.now(timezone.utc)
    export_plan = normalize_plan_for_export(plan)

    items = None
    estimate = None
    if shopping_list is not None:
        items = shopping_list_items(shopping_list)
        estimate = compute_estimate(
            export_plan.id,
            items,
            baselines,
            mode=mode,
            config=config,
            generated_at=generated_at,
            entitled=entitled,
            locked_upstream=upstream_locked(shopping_list),
            audit=audit,
        )

    filename = meal_plan_pdf_filename(export_plan.start_date, export_plan.days, user_name)
    content = _render(
        "pdf",
        export_plan.id,
        filename,
        lambda: render_meal_plan_pdf(
            export_plan,
            user_name=user_name,
            shopping_list=items,
            estimate=estimate,
            disclaimer=disclaimer,
            generated_at=generated_at,
        ),
        audit,
    )
    return ExportArtifact(mime_type=PDF_MIME_TYPE, filename=filename, content=content)
