"""
Maps UI product categories to registry buckets (food, cosmetics, personal_care,
supplement, medication). Substring match on the normalized category; anything
unlisted lands in the food bucket.
"""
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "food"

# First substring hit wins.
CATEGORY_MAPPINGS = [
    ("cosmetics", "cosmetics"),
    ("skincare", "cosmetics"),
    ("skin care", "cosmetics"),
    ("personal care", "personal_care"),
    ("hair care", "cosmetics"),
    ("beauty", "cosmetics"),
    ("makeup", "cosmetics"),
    ("food products", "food"),
    ("food", "food"),
    ("beverages", "food"),
    ("drinks", "food"),
    ("supplements", "supplement"),
    ("vitamins", "supplement"),
    ("medications", "medication"),
    ("drugs", "medication"),
    ("pharmaceutical", "medication"),
]

_PROVIDERS = {
    "cosmetics": "CosIng",
    "personal_care": "CosIng",
    "food": "OpenFoodFacts",
    "supplement": "FDA",
    "medication": "FDA",
}

COUNTRY_CODES = {
    "nigeria": "ng",
    "united states": "us",
    "usa": "us",
    "canada": "ca",
    "united kingdom": "uk",
    "uk": "uk",
    "france": "fr",
    "germany": "de",
    "australia": "au",
    "spain": "es",
    "italy": "it",
}


def get_category_mapping(category: str) -> str:
    normalized = (category or "").lower().strip()
    for key, bucket in CATEGORY_MAPPINGS:
        if key in normalized:
            return bucket
    logger.debug("CATEGORY unmapped category=%r default=%s", category, DEFAULT_BUCKET)
    return DEFAULT_BUCKET


def get_api_provider_by_category(category: str) -> str:
    return _PROVIDERS.get(get_category_mapping(category), "Multiple Sources")


def is_nutri_score_relevant(category: str) -> bool:
    return get_category_mapping(category) in ("food", "supplement")


def get_country_code(country: str) -> Optional[str]:
    return COUNTRY_CODES.get((country or "").lower().strip())
