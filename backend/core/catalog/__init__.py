"""
Internal product catalog access and category routing.
"""
from .internal_search import InternalCatalog, CatalogResult, SearchFilters
from .category_mapper import (
    get_category_mapping,
    get_api_provider_by_category,
    is_nutri_score_relevant,
    get_country_code,
)
from .product_verification import verify_product, get_similar_products

__all__ = [
    "InternalCatalog",
    "CatalogResult",
    "SearchFilters",
    "get_category_mapping",
    "get_api_provider_by_category",
    "is_nutri_score_relevant",
    "get_country_code",
    "verify_product",
    "get_similar_products",
]
