import logging
from functools import lru_cache
from typing import Optional

from supabase import create_client, Client
from config import settings

# Configuring logging
logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when the Supabase client is requested without credentials."""


def create_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    """Builds a Supabase client from explicitly supplied credentials."""
    if not url or not key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set to reach Supabase")
    try:
        return create_client(url, key)
    except Exception as e:
        logger.critical(f"Failed to initialize Supabase client: {e}")
        raise


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """FastAPI dependency: one client per process, built on first use."""
    return create_supabase_client(settings.supabase_url, settings.supabase_key)
