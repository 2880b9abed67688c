"""
Mealwise Web - storage backends.

get_data_source() picks the backend from WebSettings.mealwise_store.
"""

import logging

from mealwise_web.config import WebSettings
from mealwise_web.db.memory import InMemoryDataSource
from mealwise_web.db.sources import DataSource

logger = logging.getLogger(__name__)


def get_data_source(settings: WebSettings) -> DataSource:
    """Build the configured DataSource."""
    if settings.mealwise_store == "supabase":
        from mealwise_web.db.supabase_store import SupabaseDataSource

        logger.info("Using Supabase data source")
        return SupabaseDataSource()

    if settings.mealwise_seed_path is not None:
        return InMemoryDataSource.from_file(settings.mealwise_seed_path)

    logger.info("Using empty in-memory data source")
    return InMemoryDataSource()


__all__ = ["DataSource", "InMemoryDataSource", "get_data_source"]
