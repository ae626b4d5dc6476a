"""
NAFDAC (Nigeria) regulator lookup client.

Calls the nafdac-scraper function: POST {searchQuery, limit} with a bearer key,
response {found, verified, confidence, source, products: NAFDACProduct[], alternatives}.
Responses are cached per normalized query so repeated lookups inside the TTL
make a single network call. Invoked for every query regardless of category.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from core.cache.result_cache import ResultCache, normalize_query
from core.config import get_nafdac_function_url, get_nafdac_api_key
from core.external_apis.base import SourceAdapter
from core.external_apis.http_retry import post_with_retries
from core.models.validation import ExternalProduct, ExternalSource, NAFDACProduct, ValidationResult
from core.settings import ValidationSettings

logger = logging.getLogger(__name__)

NAFDAC_CACHE_PREFIX = "nafdac"
DEFAULT_LIMIT = 5


def nafdac_to_external(product: NAFDACProduct) -> ExternalProduct:
    payload = product.to_dict()
    payload["certifyingOrganization"] = "NAFDAC (Nigeria)"
    payload["country"] = "Nigeria"
    return ExternalProduct(
        id=product.id,
        name=product.name,
        brand=product.manufacturer,
        category=product.category,
        verified=product.verified,
        source=ExternalSource.NAFDAC,
        raw_payload=payload,
    )


class NAFDACAdapter(SourceAdapter):
    source = ExternalSource.NAFDAC

    def __init__(
        self,
        settings: Optional[ValidationSettings] = None,
        cache: Optional[ResultCache] = None,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        super().__init__(settings)
        self.cache = cache if cache is not None else ResultCache(prefix=NAFDAC_CACHE_PREFIX)
        self.endpoint = endpoint if endpoint is not None else get_nafdac_function_url()
        self.api_key = api_key if api_key is not None else get_nafdac_api_key()

    def is_eligible(self, category: Optional[str] = None, barcode: Optional[str] = None) -> bool:
        return self.settings.is_enabled(self.source)

    def fetch(self, search_query: str, limit: int = DEFAULT_LIMIT) -> Dict[str, Any]:
        """Cached POST to the lookup function. Raises on transport or HTTP errors."""
        query = normalize_query(search_query)
        cached = self.cache.get(query)
        if cached is not None:
            logger.info("NAFDAC cache hit query=%s", query[:60])
            return cached.result_payload

        if not self.endpoint:
            raise requests.RequestException("NAFDAC function URL not configured")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        resp, err = post_with_retries(
            self.endpoint,
            {"searchQuery": search_query.strip(), "limit": limit},
            timeout=self.settings.http_timeout_seconds,
            max_retries=2,
            headers=headers,
        )
        if err is not None:
            raise requests.RequestException(err)
        resp.raise_for_status()
        data = resp.json()
        self.cache.put(query, data, self.settings.nafdac_cache_ttl_seconds)
        logger.info("NAFDAC fetched query=%s products=%d", query[:60], len(data.get("products") or []))
        return data

    def search_products(self, search_query: str, limit: int = DEFAULT_LIMIT) -> List[ExternalProduct]:
        """NAFDAC products for search results, tagged with provenance. Errors -> []."""
        if not self.settings.is_enabled(self.source) or not (search_query or "").strip():
            return []
        try:
            data = self.fetch(search_query, limit)
        except (requests.RequestException, ValueError) as e:
            logger.warning("NAFDAC search failed query=%s error=%s", search_query[:60], e)
            return []
        if not data.get("found"):
            return []
        return [nafdac_to_external(NAFDACProduct.from_dict(p)) for p in data.get("products") or []][:limit]

    def _lookup(self, product_name, barcode=None, category=None, ingredients=None) -> ValidationResult:
        if not product_name or not product_name.strip():
            return self.not_found()
        data = self.fetch(product_name)
        products = [nafdac_to_external(NAFDACProduct.from_dict(p)) for p in data.get("products") or []]
        if not data.get("found") or not products:
            return self.not_found()
        return ValidationResult(
            found=True,
            verified=bool(data.get("verified")),
            confidence=self.confidence,
            source=self.source,
            product=products[0],
            alternatives=products[1:],
        )
