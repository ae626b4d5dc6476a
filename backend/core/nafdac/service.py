"""
Server side of the NAFDAC lookup: cache check, Green Book scrape, cached response.
Response: {found, verified, confidence, source, products, alternatives}.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from core.cache.result_cache import ResultCache, normalize_query
from core.config import NAFDAC_CACHE_TTL_SECONDS
from core.models.validation import NAFDACProduct
from core.nafdac.scraper import scrape_nafdac_products

logger = logging.getLogger(__name__)

NAFDAC_FOUND_CONFIDENCE = 0.8


def build_response(products: List[NAFDACProduct]) -> Dict[str, Any]:
    found = len(products) > 0
    return {
        "found": found,
        "verified": found,
        "confidence": NAFDAC_FOUND_CONFIDENCE if found else 0,
        "source": "nafdac",
        "products": [p.to_dict() for p in products],
        "alternatives": [],
    }


def error_response() -> Dict[str, Any]:
    return {
        "error": "Failed to fetch NAFDAC data",
        "found": False,
        "verified": False,
        "confidence": 0,
        "source": "nafdac",
        "products": [],
        "alternatives": [],
    }


class NAFDACLookupService:
    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        scraper: Callable[..., List[NAFDACProduct]] = scrape_nafdac_products,
        ttl_seconds: int = NAFDAC_CACHE_TTL_SECONDS,
    ):
        self.cache = cache if cache is not None else ResultCache(prefix="nafdac-scrape")
        self.scraper = scraper
        self.ttl_seconds = ttl_seconds

    def lookup(self, search_query: str, limit: int = 5) -> Dict[str, Any]:
        query = normalize_query(search_query)
        cached = self.cache.get(query)
        if cached is not None:
            logger.info("NAFDAC returning cached result query=%s", query[:60])
            return cached.result_payload

        response = build_response(self.scraper(search_query.strip(), limit))
        self.cache.put(query, response, self.ttl_seconds)
        return response
