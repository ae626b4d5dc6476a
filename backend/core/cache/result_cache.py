"""
Result cache keyed by a hash of the normalized query, with a TTL checked at read time.

Key: "<prefix>-<fnv1a 64-bit hex>-<first N chars of normalized query>".
The readable tail is only a debug aid; the hash carries identity.
There is no sweep: expired rows are filtered out by the read predicate.
Cache I/O failures are logged and behave like a miss.
"""
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from core.models.validation import CacheEntry

logger = logging.getLogger(__name__)

CACHE_TABLE = "external_api_cache"
DEFAULT_PREFIX = "ext"
MEMORY_CACHE_MAX_ENTRIES = 500
_DEBUG_TAIL_CHARS = 24

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def normalize_query(query: str) -> str:
    return (query or "").strip().lower()


def fnv1a_64(text: str) -> int:
    h = _FNV64_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * _FNV64_PRIME) & _MASK64
    return h


def make_cache_key(query: str, prefix: str = DEFAULT_PREFIX) -> str:
    normalized = normalize_query(query)
    tail = re.sub(r"[^a-z0-9]+", "_", normalized[:_DEBUG_TAIL_CHARS]).strip("_")
    return f"{prefix}-{fnv1a_64(normalized):016x}-{tail}"


def _to_iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _from_iso(value: str) -> float:
    return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()


class InMemoryCacheStore:
    """
    Process-local store with the same contract as the Supabase table.
    Bounded: once full, expired rows are evicted on save, then the rows closest to expiry.
    """

    def __init__(self, max_entries: int = MEMORY_CACHE_MAX_ENTRIES, clock: Callable[[], float] = time.time):
        self._rows: Dict[str, CacheEntry] = {}
        self._max_entries = max_entries
        self._clock = clock

    def fetch(self, query_hash: str, now: float) -> Optional[CacheEntry]:
        entry = self._rows.get(query_hash)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._rows[query_hash]
            return None
        return entry

    def _evict(self) -> None:
        if len(self._rows) < self._max_entries:
            return
        now = self._clock()
        for key in [k for k, e in self._rows.items() if e.expires_at <= now]:
            del self._rows[key]
        overflow = len(self._rows) - self._max_entries + 1
        if overflow > 0:
            oldest = sorted(self._rows, key=lambda k: self._rows[k].expires_at)[:overflow]
            for key in oldest:
                del self._rows[key]
            logger.debug("CACHE memory store full, dropped %d unexpired rows", overflow)

    def save(self, entry: CacheEntry) -> None:
        if entry.query_hash not in self._rows:
            self._evict()
        self._rows[entry.query_hash] = entry

    def clear(self) -> None:
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)


class SupabaseCacheStore:
    """Rows {query_hash, result_data, expires_at} in the external_api_cache table."""

    def __init__(self, client: Any, table: str = CACHE_TABLE):
        self._client = client
        self._table = table

    def fetch(self, query_hash: str, now: float) -> Optional[CacheEntry]:
        response = (
            self._client.table(self._table)
            .select("query_hash, result_data, expires_at")
            .eq("query_hash", query_hash)
            .gt("expires_at", _to_iso(now))
            .order("expires_at", desc=True)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            return None
        row = rows[0]
        return CacheEntry(
            query_hash=row["query_hash"],
            result_payload=row["result_data"],
            expires_at=_from_iso(row["expires_at"]),
        )

    def save(self, entry: CacheEntry) -> None:
        self._client.table(self._table).insert({
            "query_hash": entry.query_hash,
            "result_data": entry.result_payload,
            "expires_at": _to_iso(entry.expires_at),
        }).execute()


class ResultCache:
    """
    get(query) -> CacheEntry | None; put(query, payload, ttl).
    Read-then-write without a transaction: concurrent misses may both write (last write wins).
    """

    def __init__(
        self,
        store: Any = None,
        prefix: str = DEFAULT_PREFIX,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store if store is not None else InMemoryCacheStore(clock=clock)
        self._prefix = prefix
        self._clock = clock

    def key_for(self, query: str) -> str:
        return make_cache_key(query, self._prefix)

    def get(self, query: str) -> Optional[CacheEntry]:
        key = self.key_for(query)
        try:
            entry = self._store.fetch(key, self._clock())
        except Exception as e:
            logger.warning("CACHE read failed key=%s error=%s", key, e)
            return None
        if entry is None:
            logger.debug("CACHE miss key=%s", key)
            return None
        logger.debug("CACHE hit key=%s", key)
        return entry

    def put(self, query: str, payload: Any, ttl: float) -> None:
        key = self.key_for(query)
        entry = CacheEntry(query_hash=key, result_payload=payload, expires_at=self._clock() + ttl)
        try:
            self._store.save(entry)
        except Exception as e:
            logger.warning("CACHE write failed key=%s error=%s", key, e)
            return
        logger.debug("CACHE stored key=%s ttl=%ss", key, ttl)


def build_default_cache(prefix: str = DEFAULT_PREFIX) -> ResultCache:
    """Supabase-backed cache when configured, in-memory otherwise."""
    from core.db import get_supabase_client
    client = get_supabase_client()
    store = SupabaseCacheStore(client) if client is not None else InMemoryCacheStore()
    return ResultCache(store=store, prefix=prefix)
