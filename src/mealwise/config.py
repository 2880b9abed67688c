"""
Mealwise Core - Configuration and settings.

CoreSettings contains only what the estimation and export pipeline needs.
Web and storage settings live in mealwise_web.config.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from mealwise.budget.estimator import EstimatorConfig

ESTIMATE_DISCLAIMER = "Estimates use ingredient category baselines; totals may vary."

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class CoreSettings(BaseSettings):
    """
    Core settings shared by the CLI and the web service.

    Every estimator default lives here so it can be overridden per
    deployment; the estimator itself only ever sees an EstimatorConfig.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    mealwise_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Budget estimate
    estimate_default_mode: str = "standard"
    estimate_disclaimer: str = ESTIMATE_DISCLAIMER
    estimate_medium_missing_ratio: float = Field(default=0.2, ge=0, le=1)
    estimate_min_priced_items: int = Field(default=3, ge=0)
    # Estimates stay locked for users without the premium role
    estimate_requires_premium: bool = True

    # Audit log (JSONL, one file per process)
    mealwise_audit_log: bool = False
    mealwise_audit_dir: Path = Path("audit_logs")

    def estimator_config(self) -> "EstimatorConfig":
        """Build the explicit estimator configuration from these settings."""
        from mealwise.budget.estimator import EstimatorConfig
        from mealwise.core.modes import resolve_mode

        return EstimatorConfig(
            default_mode=resolve_mode(self.estimate_default_mode),
            medium_missing_ratio=self.estimate_medium_missing_ratio,
            min_priced_items=self.estimate_min_priced_items,
        )


@lru_cache
def get_core_settings() -> CoreSettings:
    """Get cached CoreSettings instance."""
    return CoreSettings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the CLI and the web app."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
