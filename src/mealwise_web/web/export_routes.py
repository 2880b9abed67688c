"""
API endpoints for meal plan PDF and shopping list CSV downloads.

The session is required before anything is fetched; the plan and list are
then fetched once each and handed to the export pipeline.
"""

import logging

from fastapi import APIRouter, Depends, Response

from mealwise.errors import NotFoundError
from mealwise.export.models import ExportArtifact
from mealwise.export.pipeline import (
    build_meal_plan_export,
    build_shopping_list_export,
    shopping_list_items,
)
from mealwise.observability.audit_logger import AuditLogger
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

router = APIRouter(tags=["exports"])


def _download(artifact: ExportArtifact) -> Response:
    return Response(content=artifact.content, headers=artifact.headers())


@router.get("/plans/{plan_id}/export/pdf")
async def export_plan_pdf(
    plan_id: str,
    mode: str | None = None,
    session: dict = Depends(require_session),
    store: DataSource = Depends(get_store),
    settings: WebSettings = Depends(get_web_settings),
    audit: AuditLogger = Depends(get_audit),
):
    """Download the meal plan as a PDF (with the shopping list page when one exists)."""
    plan_id = validate_identifier(plan_id)
    user_id = session["user_id"]

    plan = await store.get_plan(plan_id, user_id)
    if plan is None:
        raise NotFoundError("Meal plan not found")

    shopping_list = await store.get_shopping_list(plan_id, user_id)
    baselines = []
    if shopping_list is not None:
        baselines = await load_price_baselines(store, shopping_list_items(shopping_list))

    artifact = build_meal_plan_export(
        plan,
        user_name=session.get("display_name"),
        shopping_list=shopping_list,
        baselines=baselines,
        mode=mode,
        config=settings.estimator_config(),
        disclaimer=settings.estimate_disclaimer,
        entitled=is_entitled(session, settings),
        audit=audit,
    )
    return _download(artifact)


@router.get("/plans/{plan_id}/export/shopping-list")
async def export_shopping_list_csv(
    plan_id: str,
    mode: str | None = None,
    session: dict = Depends(require_session),
    store: DataSource = Depends(get_store),
    settings: WebSettings = Depends(get_web_settings),
    audit: AuditLogger = Depends(get_audit),
):
    """Download the plan's shopping list with its budget estimate as CSV."""
    plan_id = validate_identifier(plan_id)
    user_id = session["user_id"]

    plan = await store.get_plan(plan_id, user_id)
    if plan is None:
        raise NotFoundError("Meal plan not found")

    shopping_list = await store.get_shopping_list(plan_id, user_id)
    if shopping_list is None:
        raise NotFoundError("Shopping list not found")

    baselines = await load_price_baselines(store, shopping_list_items(shopping_list))

    artifact = build_shopping_list_export(
        plan,
        shopping_list,
        baselines,
        mode=mode,
        config=settings.estimator_config(),
        disclaimer=settings.estimate_disclaimer,
        entitled=is_entitled(session, settings),
        audit=audit,
    )
    return _download(artifact)
