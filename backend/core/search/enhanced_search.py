"""
Enhanced search: internal catalog results plus category-routed external registry
results, merged into one list tagged internal/external.

Routing (category -> bucket via category_mapper, no category = every bucket):
  food                     -> Open Food Facts quick search
  cosmetics, personal_care -> Open Food Facts quick search re-tagged as CosIng
  supplement, medication   -> synthetic FDA entry for vitamin/supplement queries
  any                      -> NAFDAC lookup (always)
The nutrition grade filter is re-applied to external results afterwards.
"""
import asyncio
import logging
import math
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from core.catalog.category_mapper import get_category_mapping
from core.catalog.internal_search import InternalCatalog, SearchFilters
from core.external_apis.nafdac import NAFDACAdapter
from core.external_apis.open_food_facts import search_products_quick
from core.models.validation import ExternalProduct, ExternalSource
from core.settings import ValidationSettings

logger = logging.getLogger(__name__)

_SUPPLEMENT_TERMS = ("vitamin", "supplement")


def empty_search_result() -> Dict[str, Any]:
    return {
        "internal": {"products": [], "count": 0},
        "external": {"products": [], "count": 0},
        "combined": [],
    }


def synthetic_supplement(query: str) -> ExternalProduct:
    # No openFDA supplement endpoint: placeholder entry, never reported as verified.
    return ExternalProduct(
        id=f"supplement-{int(time.time() * 1000)}",
        name=f"{query} Supplement",
        brand="External Source",
        category="supplement",
        verified=False,
        source=ExternalSource.FDA,
        image_url="/placeholder.svg",
        raw_payload={"synthetic": True},
    )


def filter_by_nutrition_grade(products: List[ExternalProduct], grades: List[str]) -> List[ExternalProduct]:
    if not grades:
        return products
    wanted = {g.upper() for g in grades}
    return [p for p in products if p.nutrition_grade and p.nutrition_grade.upper() in wanted]


class EnhancedSearchService:
    def __init__(
        self,
        catalog: InternalCatalog,
        settings: Optional[ValidationSettings] = None,
        nafdac: Optional[NAFDACAdapter] = None,
        quick_search: Callable[..., List[ExternalProduct]] = search_products_quick,
    ):
        self.catalog = catalog
        self.settings = settings or ValidationSettings()
        self.nafdac = nafdac if nafdac is not None else NAFDACAdapter(self.settings)
        self.quick_search = quick_search

    async def _bounded(self, label: str, fn: Callable[..., List[ExternalProduct]], *args: Any) -> List[ExternalProduct]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args),
                timeout=self.settings.adapter_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("SEARCH external=%s timed out", label)
        except Exception as e:
            logger.warning("SEARCH external=%s failed: %s", label, e)
        return []

    async def _cosmetics(self, query: str, limit: int) -> List[ExternalProduct]:
        found = await self._bounded("cosing", self.quick_search, query, limit)
        return [replace(p, category="cosmetics", source=ExternalSource.COSING) for p in found]

    async def _supplements(self, query: str) -> List[ExternalProduct]:
        q = query.lower()
        return [synthetic_supplement(query)] if any(t in q for t in _SUPPLEMENT_TERMS) else []

    async def external_search(self, query: str, filters: SearchFilters, limit: int = 10) -> List[ExternalProduct]:
        if not query or not query.strip():
            return []
        bucket = get_category_mapping(filters.category) if filters.category else None
        s = self.settings
        calls = []
        if (bucket is None or bucket == "food") and s.is_enabled(ExternalSource.OPEN_FOOD_FACTS):
            calls.append(self._bounded("openfoodfacts", self.quick_search, query, math.ceil(limit / 3)))
        if (bucket is None or bucket in ("cosmetics", "personal_care")) and s.is_enabled(ExternalSource.COSING):
            calls.append(self._cosmetics(query, math.ceil(limit / 4)))
        if (bucket is None or bucket in ("supplement", "medication")) and s.is_enabled(ExternalSource.FDA):
            calls.append(self._supplements(query))
        calls.append(self._bounded("nafdac", self.nafdac.search_products, query, math.ceil(limit / 4)))

        batches = await asyncio.gather(*calls)
        products = [p for batch in batches for p in batch]
        return filter_by_nutrition_grade(products, filters.nutri_score)

    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        limit: int = 10,
    ) -> Dict[str, Any]:
        filters = filters or SearchFilters()
        try:
            internal, external = await asyncio.gather(
                asyncio.to_thread(self.catalog.search, query, filters, limit),
                self.external_search(query, filters, limit),
            )
        except Exception as e:
            logger.error("SEARCH failed query=%s: %s", query, e, exc_info=True)
            return empty_search_result()

        if internal.error:
            logger.warning("SEARCH internal query failed: %s", internal.error)
        internal_products = internal.data if internal.error is None else []

        external_dicts = [p.to_dict() for p in external]
        combined = [dict(p, source="internal") for p in internal_products]
        combined.extend(dict(p, provider=p["source"], source="external") for p in external_dicts)

        logger.info(
            "SEARCH query=%s internal=%d external=%d combined=%d",
            (query or "")[:60], len(internal_products), len(external_dicts), len(combined),
        )
        return {
            "internal": {"products": internal_products, "count": len(internal_products)},
            "external": {"products": external_dicts, "count": len(external_dicts)},
            "combined": combined,
        }
