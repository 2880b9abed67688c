"""
Shared FastAPI dependencies and request helpers.

Everything a route needs from app.state goes through here so tests can build
an app with their own store and settings.
"""

import re
from collections.abc import Iterable
from typing import Any

from fastapi import Request

from mealwise.errors import ValidationFailedError
from mealwise.observability.audit_logger import AuditLogger
from mealwise.shopping.models import ShoppingListItem
from mealwise.tools.normalize import normalize_name
from mealwise_web.config import WebSettings
from mealwise_web.db.sources import DataSource

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def get_store(request: Request) -> DataSource:
    return request.app.state.store


def get_web_settings(request: Request) -> WebSettings:
    return request.app.state.settings


def get_audit(request: Request) -> AuditLogger:
    return request.app.state.audit


def validate_identifier(value: str, kind: str = "plan") -> str:
    """Reject malformed ids before anything is fetched."""
    if not IDENTIFIER_PATTERN.fullmatch(value):
        raise ValidationFailedError(f"Invalid {kind} id", detail=f"{kind}_id={value!r}")
    return value


def is_entitled(session: dict[str, Any], settings: WebSettings) -> bool:
    """Whether the session's user may see unlocked estimates."""
    if not settings.estimate_requires_premium:
        return True
    return session.get("role") == "premium"


async def load_price_baselines(store: DataSource, items: Iterable[ShoppingListItem]) -> list[dict[str, Any]]:
    """Fetch the baselines covering a list's categories and ingredient names in one call."""
    items = list(items)
    if not items:
        return []
    categories = sorted({item.category.value for item in items})
    names = sorted({normalize_name(item.name) for item in items})
    return await store.list_price_baselines(categories, names)
