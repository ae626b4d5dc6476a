#!/usr/bin/env python3
"""
Check if external product registries (Open Food Facts, openFDA, NAFDAC) are reachable.
Run from backend: python scripts/check_external_apis.py
Exit 0 if at least one registry works; 1 if all fail or none enabled.
"""
import asyncio
import sys
from pathlib import Path
from typing import Tuple

# Add backend to path when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Short timeout for health check
HEALTH_TIMEOUT = 8


def _settings():
    from dataclasses import replace
    from core.settings import ValidationSettings
    return replace(ValidationSettings.from_env(), http_timeout_seconds=HEALTH_TIMEOUT)


def _describe(res) -> Tuple[bool, str]:
    if res.found:
        name = res.product.name if res.product else "?"
        return True, f"ok (product={name!r} confidence={res.confidence})"
    return False, "no result"


def check_open_food_facts() -> Tuple[bool, str]:
    """Return (success, message)."""
    from core.external_apis.open_food_facts import OpenFoodFactsAdapter
    return _describe(asyncio.run(OpenFoodFactsAdapter(_settings()).validate("nutella")))


def check_fda() -> Tuple[bool, str]:
    """Return (success, message)."""
    from core.external_apis.fda_drugs import FDADrugAdapter
    return _describe(asyncio.run(FDADrugAdapter(_settings()).validate("advil")))


def check_nafdac() -> Tuple[bool, str]:
    """Return (success, message)."""
    from core.config import get_nafdac_function_url
    if not get_nafdac_function_url():
        return False, "not configured (set NAFDAC_FUNCTION_URL or SUPABASE_URL)"
    from core.external_apis.nafdac import NAFDACAdapter
    return _describe(asyncio.run(NAFDACAdapter(_settings()).validate("paracetamol")))


def main() -> int:
    from core.config import get_open_food_facts_enabled, get_fda_enabled, get_nafdac_enabled
    checks = [
        ("Open Food Facts", get_open_food_facts_enabled(), check_open_food_facts, "OPEN_FOOD_FACTS_ENABLED"),
        ("openFDA", get_fda_enabled(), check_fda, "FDA_ENABLED"),
        ("NAFDAC", get_nafdac_enabled(), check_nafdac, "NAFDAC_ENABLED"),
    ]
    print("Checking external product registries...")
    any_ok = False
    for label, enabled, check, flag in checks:
        ok, msg = False, f"disabled ({flag}=false)"
        if enabled:
            ok, msg = check()
        any_ok = any_ok or ok
        print(f"  {label}: {'OK' if ok else 'FAIL'} - {msg}")
    if any_ok:
        print("At least one registry is working.")
        return 0
    print("All enabled registries failed or none enabled.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
