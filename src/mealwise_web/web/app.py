"""
Mealwise Web - FastAPI application.

Routes:
    POST /api/login, /api/logout, GET /api/me         Session auth
    GET  /api/plans/{id}/export/pdf                   Meal plan PDF
    GET  /api/plans/{id}/export/shopping-list         Shopping list CSV
    GET  /api/plans/{id}/shopping-list                List + estimate
    POST /api/plans/{id}/shopping-list/rebuild
    POST /api/shopping-list/items/{item_id}/toggle
    POST /api/plans/{id}/shopping-list/categories/{category}
    GET  /health

Errors are always {"error": "..."}; 5xx bodies never carry internals.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mealwise.config import configure_logging
from mealwise.errors import MealwiseError
from mealwise.observability.audit_logger import AuditLogger
from mealwise_web import __version__
from mealwise_web.config import WebSettings, get_settings
from mealwise_web.db import get_data_source
from mealwise_web.db.sources import DataSource
from mealwise_web.web.auth import SessionStore
from mealwise_web.web.auth import router as auth_router
from mealwise_web.web.export_routes import router as export_router
from mealwise_web.web.shopping_routes import router as shopping_router

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MealwiseError)
    async def handle_mealwise_error(request: Request, exc: MealwiseError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.detail}", exc_info=exc)
            return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


def create_app(settings: WebSettings | None = None, store: DataSource | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Defaults to the cached WebSettings from the environment
        store: Defaults to the backend named by settings.mealwise_store
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Mealwise", version=__version__)
    app.state.settings = settings
    app.state.store = store if store is not None else get_data_source(settings)
    app.state.sessions = SessionStore(expire_days=settings.session_expire_days)
    app.state.audit = AuditLogger(enabled=settings.mealwise_audit_log, log_dir=settings.mealwise_audit_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    _register_error_handlers(app)

    app.include_router(auth_router, prefix="/api")
    app.include_router(export_router, prefix="/api")
    app.include_router(shopping_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
