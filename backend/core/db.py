"""
Supabase client factory. Returns None when URL/key are not configured so
callers can degrade (in-memory cache, empty catalog) instead of failing.
"""
import logging
from typing import Optional

from supabase import create_client, Client

from core.config import get_supabase_url, get_supabase_key

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def get_supabase_client() -> Optional[Client]:
    global _client
    if _client is not None:
        return _client
    url, key = get_supabase_url(), get_supabase_key()
    if not url or not key:
        logger.warning("SUPABASE credentials missing; catalog and cache tables unavailable")
        return None
    try:
        _client = create_client(url, key)
    except Exception as e:
        logger.error("SUPABASE client init failed: %s", e)
        return None
    return _client


def reset_supabase_client() -> None:
    """Drop the memoized client (e.g. for tests)."""
    global _client
    _client = None
