"""
openFDA NDC directory connector for medications and supplements.
Search: GET https://api.fda.gov/drug/ndc.json?search=brand_name:"..."&limit=1
"""
import logging

from core.external_apis.base import SourceAdapter
from core.external_apis.http_retry import get_with_retries
from core.models.validation import ExternalProduct, ExternalSource, ValidationResult

logger = logging.getLogger(__name__)

FDA_NDC_URL = "https://api.fda.gov/drug/ndc.json"


class FDADrugAdapter(SourceAdapter):
    source = ExternalSource.FDA
    categories = frozenset({"medication", "supplement"})

    def _lookup(self, product_name, barcode=None, category=None, ingredients=None) -> ValidationResult:
        if not product_name or not product_name.strip():
            return self.not_found()
        name = product_name.strip()[:200]
        params = {"search": f'brand_name:"{name}"', "limit": 1}
        resp, err = get_with_retries(FDA_NDC_URL, params=params, timeout=self.settings.http_timeout_seconds)
        if err is not None:
            logger.warning("FDA fetch failed after retries query=%s error=%s", name, err)
            return self.not_found()
        # openFDA answers 404 when nothing matches
        if resp.status_code == 404:
            logger.info("FDA no results query=%s", name)
            return self.not_found()
        resp.raise_for_status()
        results = resp.json().get("results") or []
        if not results:
            logger.info("FDA no results query=%s", name)
            return self.not_found()

        drug = results[0]
        product = ExternalProduct(
            id=str(drug.get("product_ndc") or f"fda-{name.lower()}"),
            name=drug.get("brand_name") or drug.get("generic_name") or name,
            brand=drug.get("labeler_name"),
            category="medication",
            verified=True,
            source=self.source,
            ingredients=[i.get("name") for i in drug.get("active_ingredients") or [] if i.get("name")],
            raw_payload=drug,
        )
        logger.info("FDA found query=%s ndc=%s", name, product.id)
        return self.found(product)
