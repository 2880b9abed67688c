"""API endpoints for a plan's shopping list, its estimate and checked state."""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mealwise.budget.estimator import compare_store_prices
from mealwise.budget.models import BudgetEstimate, StorePrice
from mealwise.core.categories import Category
from mealwise.errors import NotFoundError, ValidationFailedError
from mealwise.export.pipeline import compute_estimate, shopping_list_items, upstream_locked
from mealwise.observability.audit_logger import AuditLogger
from mealwise.planning.normalizer import normalize_plan_recipe_times
from mealwise.shopping.aggregator import aggregate_plan_items, sort_for_display, subtract_pantry
from mealwise.shopping.models import ShoppingListItem
from mealwise_web.config import WebSettings
from mealwise_web.db.sources import DataSource
from mealwise_web.web.auth import require_session
from mealwise_web.web.dependencies import (
    get_audit,
    get_store,
    get_web_settings,
    is_entitled,
    load_price_baselines,
    validate_identifier,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shopping-list"])


# =============================================================================
# Request Models
# =============================================================================


class PantryEntry(BaseModel):
    """Something the user already has at home."""

    name: str
    quantity: float | None = None
    unit: str | None = None


class RebuildRequest(BaseModel):
    pantry: list[PantryEntry] = []


class CategoryCheckRequest(BaseModel):
    checked: bool


# =============================================================================
# Helpers
# =============================================================================


def _list_response(
    plan_id: str,
    items: list[ShoppingListItem],
    estimate: BudgetEstimate,
    stores: list[StorePrice],
    disclaimer: str,
) -> dict[str, Any]:
    view = estimate.view()
    # Store totals are hidden while the estimate is locked
    visible_stores = [] if view.locked else stores
    return {
        "plan_id": plan_id,
        "items": [item.to_dict() for item in sort_for_display(items)],
        "estimate": view.to_dict(),
        "stores": [store.to_dict() for store in visible_stores],
        "cheapest_store": visible_stores[0].store if visible_stores else None,
        "disclaimer": disclaimer,
    }


async def _fetch_plan(store: DataSource, plan_id: str, user_id: str) -> dict[str, Any]:
    plan = await store.get_plan(plan_id, user_id)
    if plan is None:
        raise NotFoundError("Meal plan not found")
    return plan


async def _estimate_response(
    plan_id: str,
    items: list[ShoppingListItem],
    shopping_list: dict[str, Any] | None,
    mode: str | None,
    session: dict,
    store: DataSource,
    settings: WebSettings,
    audit: AuditLogger,
) -> dict[str, Any]:
    baselines = await load_price_baselines(store, items)
    estimate = compute_estimate(
        plan_id,
        items,
        baselines,
        mode=mode,
        config=settings.estimator_config(),
        entitled=is_entitled(session, settings),
        locked_upstream=upstream_locked(shopping_list),
        audit=audit,
    )
    stores = compare_store_prices(items, baselines)
    return _list_response(plan_id, items, estimate, stores, settings.estimate_disclaimer)


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/plans/{plan_id}/shopping-list")
async def get_shopping_list(
    plan_id: str,
    mode: str | None = None,
    session: dict = Depends(require_session),
    store: DataSource = Depends(get_store),
    settings: WebSettings = Depends(get_web_settings),
    audit: AuditLogger = Depends(get_audit),
):
    """Shopping list with its estimate. Built from the plan on first access."""
    plan_id = validate_identifier(plan_id)
    user_id = session["user_id"]

    shopping_list = await store.get_shopping_list(plan_id, user_id)
    if shopping_list is None:
        plan = await _fetch_plan(store, plan_id, user_id)
        aggregated = aggregate_plan_items(normalize_plan_recipe_times(plan)["items"])
        items = await store.save_shopping_list(plan_id, user_id, aggregated)
        logger.info(f"Built shopping list for plan {plan_id}: {len(items)} items")
    else:
        items = shopping_list_items(shopping_list)

    return await _estimate_response(plan_id, items, shopping_list, mode, session, store, settings, audit)


@router.post("/plans/{plan_id}/shopping-list/rebuild")
async def rebuild_shopping_list(
    plan_id: str,
    req: RebuildRequest | None = None,
    mode: str | None = None,
    session: dict = Depends(require_session),
    store: DataSource = Depends(get_store),
    settings: WebSettings = Depends(get_web_settings),
    audit: AuditLogger = Depends(get_audit),
):
    """Re-aggregate the list from the plan, keeping checked state, minus the pantry."""
    plan_id = validate_identifier(plan_id)
    user_id = session["user_id"]

    plan = await _fetch_plan(store, plan_id, user_id)
    existing = await store.get_shopping_list(plan_id, user_id)
    previous_items = shopping_list_items(existing) if existing else []

    items = aggregate_plan_items(normalize_plan_recipe_times(plan)["items"], existing=previous_items)
    if req and req.pantry:
        items = subtract_pantry(items, [entry.model_dump() for entry in req.pantry])

    saved = await store.save_shopping_list(plan_id, user_id, items)
    return await _estimate_response(plan_id, saved, None, mode, session, store, settings, audit)


@router.post("/shopping-list/items/{item_id}/toggle")
async def toggle_item(
    item_id: str,
    session: dict = Depends(require_session),
    store: DataSource = Depends(get_store),
):
    """Flip one item's checked state."""
    item_id = validate_identifier(item_id, kind="item")
    item = await store.set_item_checked(item_id, session["user_id"])
    if item is None:
        raise NotFoundError("Shopping list item not found")
    return {"item": item.to_dict()}


@router.post("/plans/{plan_id}/shopping-list/categories/{category}")
async def check_category(
    plan_id: str,
    category: str,
    req: CategoryCheckRequest,
    session: dict = Depends(require_session),
    store: DataSource = Depends(get_store),
):
    """Check or uncheck every item in a category."""
    plan_id = validate_identifier(plan_id)
    try:
        target = Category(category.strip().lower())
    except ValueError:
        raise ValidationFailedError("Unknown category", detail=f"category={category!r}")

    updated = await store.set_category_checked(plan_id, session["user_id"], target.value, req.checked)
    if updated is None:
        raise NotFoundError("Shopping list not found")
    return {"category": target.value, "checked": req.checked, "updated": updated}
