"""
Open Food Facts connector (no key required).
Product: https://world.openfoodfacts.org/api/v0/product/<barcode>.json
Search:  https://world.openfoodfacts.org/cgi/search.pl?search_terms=...&json=1
"""
import logging
from typing import List, Optional

import requests

from core.external_apis.base import SourceAdapter
from core.external_apis.http_retry import get_with_retries
from core.models.validation import ExternalProduct, ExternalSource, ValidationResult

logger = logging.getLogger(__name__)

OFF_PRODUCT_URL = "https://world.openfoodfacts.org/api/v0/product/{barcode}.json"
OFF_SEARCH_URL = "https://world.openfoodfacts.org/cgi/search.pl"


def product_from_off(product: dict, fallback_id: str = "") -> ExternalProduct:
    """Map one OFF product dict to ExternalProduct."""
    grade = product.get("nutriscore_grade")
    ingredients_text = (product.get("ingredients_text") or "").strip()
    return ExternalProduct(
        id=str(product.get("code") or fallback_id or product.get("_id") or "unknown"),
        name=(product.get("product_name") or product.get("product_name_en") or "Unknown Product").strip(),
        brand=product.get("brands") or None,
        category="food",
        verified=True,
        source=ExternalSource.OPEN_FOOD_FACTS,
        image_url=product.get("image_url"),
        nutrition_grade=grade.upper() if grade else None,
        ingredients=[ingredients_text] if ingredients_text else [],
        allergens=list(product.get("allergens_tags") or []),
        raw_payload=product,
    )


def fetch_off_product(barcode: str, timeout: int = 10) -> Optional[dict]:
    resp, err = get_with_retries(OFF_PRODUCT_URL.format(barcode=barcode), timeout=timeout)
    if err is not None:
        raise requests.RequestException(err)
    resp.raise_for_status()
    data = resp.json()
    if data.get("status") == 1 and data.get("product"):
        return data["product"]
    return None


def search_off_products(query: str, page_size: int = 1, timeout: int = 10) -> List[dict]:
    params = {
        "search_terms": query.strip()[:200],
        "search_simple": 1,
        "action": "process",
        "json": 1,
        "page_size": page_size,
    }
    resp, err = get_with_retries(OFF_SEARCH_URL, params=params, timeout=timeout)
    if err is not None:
        raise requests.RequestException(err)
    resp.raise_for_status()
    return resp.json().get("products") or []


def search_products_quick(query: str, limit: int = 5, timeout: int = 10) -> List[ExternalProduct]:
    """Lightweight OFF text search for suggestions and search results. Errors -> []."""
    if not query or not query.strip():
        return []
    try:
        products = search_off_products(query, page_size=limit, timeout=timeout)
    except (requests.RequestException, ValueError) as e:
        logger.warning("OPEN_FOOD_FACTS quick search failed query=%s error=%s", query[:60], e)
        return []
    return [product_from_off(p, fallback_id=f"off-{i}") for i, p in enumerate(products[:limit])]


class OpenFoodFactsAdapter(SourceAdapter):
    source = ExternalSource.OPEN_FOOD_FACTS
    categories = frozenset({"food"})

    def _lookup(self, product_name, barcode=None, category=None, ingredients=None) -> ValidationResult:
        timeout = self.settings.http_timeout_seconds
        if barcode:
            raw = fetch_off_product(barcode, timeout=timeout)
        elif product_name and product_name.strip():
            results = search_off_products(product_name, page_size=1, timeout=timeout)
            raw = results[0] if results else None
        else:
            return self.not_found()

        if raw is None:
            logger.info("OPEN_FOOD_FACTS no results query=%s barcode=%s", (product_name or "")[:60], barcode)
            return self.not_found()

        product = product_from_off(raw, fallback_id=barcode or "")
        logger.info(
            "OPEN_FOOD_FACTS found query=%s name=%s grade=%s",
            (product_name or "")[:60], product.name[:60], product.nutrition_grade,
        )
        return self.found(product)
