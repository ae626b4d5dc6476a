"""
NAFDAC Green Book lookup (scraper + cached lookup service).
"""
from .scraper import scrape_nafdac_products, parse_nafdac_html, extract_category
from .service import NAFDACLookupService, build_response, error_response

__all__ = [
    "scrape_nafdac_products",
    "parse_nafdac_html",
    "extract_category",
    "NAFDACLookupService",
    "build_response",
    "error_response",
]
