"""
NAFDAC Green Book scraper.
Search: GET https://greenbook.nafdac.gov.ng/Search?searchTerm=...

Table rows with at least 3 cells are read as (name, manufacturer, registration
number, registration date). When no row parses, registration numbers found in
the page text become placeholder products. Any failure yields [].
"""
import logging
import re
import time
from typing import List

import requests
from bs4 import BeautifulSoup

from core.config import NAFDAC_GREENBOOK_URL
from core.external_apis.http_retry import get_with_retries
from core.models.validation import NAFDACProduct

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

REG_NUMBER_PATTERN = re.compile(r"([A-Z]{2,3}[-/]?\d{2,4}[-/]?\d{2,4})")

_CATEGORY_KEYWORDS = [
    ("medication", ("drug", "tablet", "capsule", "syrup")),
    ("cosmetics", ("cream", "lotion", "soap", "cosmetic")),
    ("food", ("food", "drink", "beverage")),
    ("supplement", ("supplement", "vitamin")),
]


def extract_category(product_name: str) -> str:
    name = (product_name or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in name for k in keywords):
            return category
    return "general"


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _stamp() -> int:
    return int(time.time() * 1000)


def parse_products_from_text(html: str, limit: int) -> List[NAFDACProduct]:
    text = _clean(BeautifulSoup(html, "html.parser").get_text(" "))
    stamp = _stamp()
    return [
        NAFDACProduct(
            id=f"nafdac-text-{stamp}-{i}",
            name=f"NAFDAC Registered Product {i + 1}",
            manufacturer="NAFDAC Verified Manufacturer",
            registration_number=reg,
            registration_date="N/A",
            category="general",
        )
        for i, reg in enumerate(REG_NUMBER_PATTERN.findall(text)[:limit])
    ]


def parse_nafdac_html(html: str, limit: int) -> List[NAFDACProduct]:
    products: List[NAFDACProduct] = []
    try:
        soup = BeautifulSoup(html, "html.parser")
        stamp = _stamp()
        for i, row in enumerate(soup.find_all("tr")[:limit]):
            cells = [_clean(td.get_text(" ")) for td in row.find_all("td")]
            if len(cells) < 3:
                continue
            name = cells[0] or "Unknown Product"
            if name == "Unknown Product" or len(name) <= 2:
                continue
            products.append(NAFDACProduct(
                id=f"nafdac-{stamp}-{i}",
                name=name,
                manufacturer=cells[1] or "Unknown Manufacturer",
                registration_number=cells[2] or "N/A",
                registration_date=(cells[3] if len(cells) > 3 else "") or "N/A",
                category=extract_category(name),
            ))
        if not products:
            products = parse_products_from_text(html, limit)
    except Exception as e:
        logger.error("NAFDAC parse failed: %s", e)
    return products[:limit]


def scrape_nafdac_products(search_query: str, limit: int = 10, timeout: int = 10) -> List[NAFDACProduct]:
    logger.info("NAFDAC searching Green Book query=%s", search_query[:60])
    resp, err = get_with_retries(
        NAFDAC_GREENBOOK_URL,
        params={"searchTerm": search_query},
        timeout=timeout,
        max_retries=2,
        headers=BROWSER_HEADERS,
    )
    if err is not None:
        logger.error("NAFDAC scrape failed query=%s error=%s", search_query[:60], err)
        return []
    try:
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error("NAFDAC scrape HTTP error query=%s error=%s", search_query[:60], e)
        return []
    products = parse_nafdac_html(resp.text, limit)
    logger.info("NAFDAC found %d products query=%s", len(products), search_query[:60])
    return products
