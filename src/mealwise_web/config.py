"""
Mealwise Web - Configuration and settings.

WebSettings extends CoreSettings with storage, session and CORS fields.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from mealwise.config import CoreSettings


class WebSettings(CoreSettings):
    """
    HTTP service settings.

    The memory store needs no credentials and is what development and
    tests run against; the supabase store needs the URL and service key.
    """

    # Storage
    mealwise_store: Literal["memory", "supabase"] = "memory"
    mealwise_seed_path: Path | None = None  # JSON bundle loaded into the memory store

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Session management
    session_cookie_name: str = "mealwise_session"
    session_expire_days: int = 7

    # Comma-separated origins
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> WebSettings:
    """Get cached settings instance."""
    return WebSettings()

