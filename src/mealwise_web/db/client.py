"""
Mealwise Web - Supabase Client.

Low-level database access. The service role key is used because every query
is already scoped to the session's user_id by the data source.
"""

from supabase import AsyncClient, acreate_client

from mealwise_web.config import get_settings

# Singleton client instance
_client: AsyncClient | None = None


async def get_client() -> AsyncClient:
    """
    Get the async Supabase client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        settings = get_settings()
        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _client
