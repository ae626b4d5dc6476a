"""
Query-keyed result cache with TTL (Supabase table or in-memory).
"""
from .result_cache import (
    ResultCache,
    SupabaseCacheStore,
    InMemoryCacheStore,
    make_cache_key,
    normalize_query,
    fnv1a_64,
)

__all__ = [
    "ResultCache",
    "SupabaseCacheStore",
    "InMemoryCacheStore",
    "make_cache_key",
    "normalize_query",
    "fnv1a_64",
]
