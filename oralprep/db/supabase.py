"""
Supabase client for session persistence
"""

from functools import lru_cache
from supabase import create_client, Client
import structlog

from oralprep.core.config import settings

logger = structlog.get_logger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Create and return a Supabase client using the service role key.
    Uses LRU cache to ensure singleton behavior.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        logger.info("Supabase client created successfully")
        return client
    except Exception as e:
        logger.error("Failed to create Supabase client", error=str(e))
        raise
