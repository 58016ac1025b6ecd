"""
Supabase client configuration for the account security service.

Provides a lazily created Supabase client for the repository adapters.
"""

from typing import Optional

import structlog
from supabase import Client, create_client

from .config import settings

logger = structlog.get_logger(__name__)

# Global Supabase client instance
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get or create Supabase client instance.

    Returns:
        Configured Supabase client

    Raises:
        ValueError: If Supabase is not properly configured
    """
    global _supabase_client

    if not settings.supabase_configured:
        raise ValueError("Supabase not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY")

    if _supabase_client is None:
        logger.info("Initializing Supabase client")
        _supabase_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
        logger.info("Supabase client initialized successfully")

    return _supabase_client
