"""
Session authentication for FastAPI routes.

Cookie-based sessions held in memory; passwords are checked with bcrypt
against users.password_hash.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any

import bcrypt
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from mealwise.errors import UnauthorizedError
from mealwise_web.config import WebSettings
from mealwise_web.db.sources import DataSource
from mealwise_web.web.dependencies import get_store, get_web_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


# =============================================================================
# Session Management
# =============================================================================


class SessionStore:
    """In-memory session table keyed by an opaque cookie value."""

    def __init__(self, expire_days: int = 7):
        self.expire_days = expire_days
        self._sessions: dict[str, dict[str, Any]] = {}

    def create(self, user: dict[str, Any]) -> str:
        """Create a new session and return session ID."""
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = {
            "user_id": str(user["id"]),
            "email": user["email"],
            "display_name": user.get("display_name") or user["email"].split("@")[0],
            "role": user.get("role") or "free",
            "expires_at": datetime.now() + timedelta(days=self.expire_days),
        }
        return session_id

    def get(self, session_id: str | None) -> dict[str, Any] | None:
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session and session["expires_at"] > datetime.now():
            return session
        return None

    def delete(self, session_id: str | None) -> None:
        if session_id:
            self._sessions.pop(session_id, None)


def get_session(request: Request) -> dict[str, Any] | None:
    """Get session from cookie."""
    cookie_name = request.app.state.settings.session_cookie_name
    return request.app.state.sessions.get(request.cookies.get(cookie_name))


def require_session(request: Request) -> dict[str, Any]:
    """Require valid session or raise 401."""
    session = get_session(request)
    if not session:
        raise UnauthorizedError()
    return session


# =============================================================================
# Auth Endpoints
# =============================================================================


@router.post("/login")
async def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    store: DataSource = Depends(get_store),
    settings: WebSettings = Depends(get_web_settings),
):
    """Login with email and password."""
    user = await store.get_user_by_email(req.email)

    password_hash = (user or {}).get("password_hash")
    if not password_hash:
        raise UnauthorizedError("Invalid email or password")

    if not bcrypt.checkpw(req.password.encode(), password_hash.encode()):
        logger.info(f"Failed login for user {user['id']}")
        raise UnauthorizedError("Invalid email or password")

    session_id = request.app.state.sessions.create(user)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        httponly=True,
        max_age=60 * 60 * 24 * settings.session_expire_days,
        samesite="lax",
    )

    return {"success": True, "display_name": user.get("display_name") or user["email"]}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    settings: WebSettings = Depends(get_web_settings),
):
    """Logout and clear session."""
    request.app.state.sessions.delete(request.cookies.get(settings.session_cookie_name))
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True}


@router.get("/me")
async def get_me(session: dict = Depends(require_session)):
    """Get current user info."""
    return {
        "user_id": session["user_id"],
        "email": session["email"],
        "display_name": session["display_name"],
        "role": session["role"],
    }
