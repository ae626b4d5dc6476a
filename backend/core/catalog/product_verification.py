"""
Internal-only verification: look a product up in the approved catalog, record the
attempt for signed-in users, and suggest similar products on a miss.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.catalog.internal_search import InternalCatalog, SearchFilters
from core.external_apis.open_food_facts import search_products_quick

logger = logging.getLogger(__name__)

VERIFICATIONS_TABLE = "verifications"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def significant_term(product_name: str) -> str:
    terms = (product_name or "").split()
    return next((t for t in terms if len(t) > 3), terms[0] if terms else "")


def verify_product(catalog: InternalCatalog, product_name: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns {"result": verified|not_verified|unknown, "product"?, "similar_products"?, "timestamp"}.
    """
    try:
        lookup = catalog.find_product(product_name)
        product = lookup.data[0] if lookup.found else None

        if user_id and catalog.client is not None:
            try:
                catalog.client.table(VERIFICATIONS_TABLE).insert({
                    "user_id": user_id,
                    "product_id": product.get("id") if product else None,
                    "result": "verified" if product else "not_verified",
                    "search_query": product_name,
                }).execute()
            except Exception as e:
                logger.error("VERIFICATION log failed user_id=%s: %s", user_id, e)

        if product:
            logger.info("VERIFY internal hit query=%s id=%s", product_name[:60], product.get("id"))
            return {"result": "verified", "product": product, "timestamp": _now_iso()}

        words = (product_name or "").split()
        first_word = words[0] if words else ""
        similar = catalog.similar_products(first_word, limit=5) if first_word else None
        logger.info("VERIFY internal miss query=%s similar=%d", product_name[:60], similar.count if similar else 0)
        return {
            "result": "not_verified",
            "similar_products": similar.data if similar else [],
            "timestamp": _now_iso(),
        }
    except Exception as e:
        logger.error("VERIFY failed query=%s: %s", product_name, e, exc_info=True)
        return {"result": "unknown", "timestamp": _now_iso()}


def get_similar_products(
    catalog: InternalCatalog,
    product_name: str,
    filters: Optional[SearchFilters] = None,
) -> List[Dict[str, Any]]:
    """Up to 5 internal matches on the first significant term, then up to 3 external ones."""
    term = significant_term(product_name)
    if not term:
        return []
    internal = catalog.similar_products(term, filters=filters, exclude_name=product_name, limit=5)
    if internal.error:
        return []
    external = [
        dict(p.to_dict(), source="external")
        for p in search_products_quick(term)
        if p.name.lower() != product_name.lower()
    ][:3]
    return [*internal.data, *external]
