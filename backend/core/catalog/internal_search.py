"""
Internal product catalog (Supabase `products` table).

Every query returns CatalogResult(data, error) instead of raising: a failed
query is logged and treated as "nothing found" by callers.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"
_PRODUCT_SELECT = "*, manufacturer:manufacturers(*), category:categories(*)"
_PRODUCT_SELECT_BY_CATEGORY = "*, manufacturer:manufacturers(*), category:categories!inner(*)"


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _grades(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [g.strip().upper() for g in value if isinstance(g, str) and g.strip()]


@dataclass
class SearchFilters:
    category: Optional[str] = None
    nutri_score: List[str] = field(default_factory=list)
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "SearchFilters":
        """Lenient parse of client filters; values of the wrong type are ignored."""
        d = d or {}
        return cls(
            category=_text(d.get("category")),
            nutri_score=_grades(d.get("nutri_score") or d.get("nutriScore")),
            country=_text(d.get("country")),
            state=_text(d.get("state")),
            city=_text(d.get("city")),
        )


@dataclass
class CatalogResult:
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.data)

    @property
    def found(self) -> bool:
        return self.error is None and bool(self.data)


class InternalCatalog:
    def __init__(self, client: Any = None):
        self.client = client

    def _run(self, label: str, query: Any) -> CatalogResult:
        try:
            response = query.execute()
        except Exception as e:
            logger.error("CATALOG %s query failed: %s", label, e)
            return CatalogResult(error=str(e))
        return CatalogResult(data=list(response.data or []))

    def _approved(self, select: str = _PRODUCT_SELECT) -> Any:
        return self.client.table(PRODUCTS_TABLE).select(select).eq("status", "approved")

    def _apply_filters(self, query: Any, filters: SearchFilters) -> Any:
        if filters.category:
            query = query.eq("category.name", filters.category)
        if filters.nutri_score:
            query = query.in_("nutri_score", filters.nutri_score)
        if filters.country:
            query = query.eq("country", filters.country)
        if filters.state:
            query = query.eq("state", filters.state)
        if filters.city:
            query = query.eq("city", filters.city)
        return query

    def search(self, query: str, filters: Optional[SearchFilters] = None, limit: int = 10) -> CatalogResult:
        """Approved products matching name and filters, newest first."""
        if self.client is None:
            return CatalogResult(error="catalog unavailable")
        filters = filters or SearchFilters()
        select = _PRODUCT_SELECT_BY_CATEGORY if filters.category else _PRODUCT_SELECT
        q = self._approved(select)
        if query and query.strip():
            q = q.ilike("name", f"%{query.strip()}%")
        q = self._apply_filters(q, filters)
        result = self._run("search", q.order("created_at", desc=True).limit(limit))
        logger.info("CATALOG search query=%s filters=%s count=%d", (query or "")[:60], filters, result.count)
        return result

    def find_product(self, product_name: str) -> CatalogResult:
        """First approved product whose name contains product_name."""
        if self.client is None:
            return CatalogResult(error="catalog unavailable")
        if not product_name or not product_name.strip():
            return CatalogResult()
        q = self._approved().ilike("name", f"%{product_name.strip()}%").limit(1)
        return self._run("find_product", q)

    def similar_products(
        self,
        term: str,
        filters: Optional[SearchFilters] = None,
        exclude_name: Optional[str] = None,
        limit: int = 5,
    ) -> CatalogResult:
        if self.client is None:
            return CatalogResult(error="catalog unavailable")
        filters = filters or SearchFilters()
        select = _PRODUCT_SELECT_BY_CATEGORY if filters.category else _PRODUCT_SELECT
        q = self._approved(select).ilike("name", f"%{term}%")
        if exclude_name:
            q = q.neq("name", exclude_name)
        q = self._apply_filters(q, filters)
        return self._run("similar_products", q.limit(limit))
