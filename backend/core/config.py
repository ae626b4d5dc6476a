"""
Feature flags, endpoints, timeouts and centralized configuration.
All values are read lazily from the environment (.env loaded by the app).
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Repo root: backend/core/config.py -> parent=core, parent.parent=backend, parent.parent.parent=repo
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_REPO_ROOT = _BACKEND_DIR.parent


def _flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


# --- Supabase (internal catalog, cache table, validation logs) ---
def get_supabase_url() -> str:
    return (os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL") or "").strip()

def get_supabase_key() -> str:
    return (
        os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        or os.environ.get("SUPABASE_ANON_KEY")
        or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")
        or ""
    ).strip()

# --- NAFDAC regulator lookup function ---
def get_nafdac_function_url() -> str:
    url = os.environ.get("NAFDAC_FUNCTION_URL", "").strip()
    if url:
        return url
    base = get_supabase_url()
    return f"{base.rstrip('/')}/functions/v1/nafdac-scraper" if base else ""

def get_nafdac_api_key() -> str:
    return (os.environ.get("NAFDAC_API_KEY") or get_supabase_key()).strip()

NAFDAC_GREENBOOK_URL = os.environ.get("NAFDAC_GREENBOOK_URL", "https://greenbook.nafdac.gov.ng/Search")

# --- External registries (lazy read from env) ---
def get_open_food_facts_enabled() -> bool:
    return _flag("OPEN_FOOD_FACTS_ENABLED")

def get_fda_enabled() -> bool:
    return _flag("FDA_ENABLED")

def get_cosing_enabled() -> bool:
    return _flag("COSING_ENABLED")

def get_gs1_enabled() -> bool:
    return _flag("GS1_ENABLED")

def get_nafdac_enabled() -> bool:
    return _flag("NAFDAC_ENABLED")

# Timeouts and TTL defaults (seconds)
ADAPTER_TIMEOUT_SECONDS = float(os.environ.get("ADAPTER_TIMEOUT_SECONDS", "8"))
HTTP_TIMEOUT_SECONDS = int(os.environ.get("HTTP_TIMEOUT_SECONDS", "10"))
EXTERNAL_CACHE_TTL_SECONDS = int(os.environ.get("EXTERNAL_CACHE_TTL_SECONDS", str(24 * 60 * 60)))
NAFDAC_CACHE_TTL_SECONDS = int(os.environ.get("NAFDAC_CACHE_TTL_SECONDS", str(6 * 60 * 60)))


# --- Startup logging ---
def log_config() -> None:
    logger.info(
        "CONFIG: supabase=%s nafdac_function=%s nafdac_key=%s off=%s fda=%s cosing=%s gs1=%s nafdac=%s "
        "adapter_timeout=%.1fs http_timeout=%ds cache_ttl=%ds nafdac_cache_ttl=%ds",
        bool(get_supabase_url() and get_supabase_key()),
        bool(get_nafdac_function_url()), bool(get_nafdac_api_key()),
        get_open_food_facts_enabled(), get_fda_enabled(), get_cosing_enabled(),
        get_gs1_enabled(), get_nafdac_enabled(),
        ADAPTER_TIMEOUT_SECONDS, HTTP_TIMEOUT_SECONDS,
        EXTERNAL_CACHE_TTL_SECONDS, NAFDAC_CACHE_TTL_SECONDS,
    )
