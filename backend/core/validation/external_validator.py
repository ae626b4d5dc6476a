"""
External multi-registry validation.

Every eligible adapter runs concurrently under its own timeout (a timed-out
adapter counts as not found). Only found results are kept; the best is the
highest confidence, ties going to the earlier adapter in registry order.
Cancelling the caller cancels every outstanding adapter call.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from core.catalog.category_mapper import get_category_mapping
from core.external_apis.base import SourceAdapter
from core.external_apis.cosmetics import CosmeticsAdapter
from core.external_apis.fda_drugs import FDADrugAdapter
from core.external_apis.gs1_barcode import GS1BarcodeAdapter, validate_barcode
from core.external_apis.nafdac import NAFDACAdapter
from core.external_apis.open_food_facts import OpenFoodFactsAdapter
from core.models.validation import ExternalSource, ValidationResult
from core.settings import ValidationSettings

logger = logging.getLogger(__name__)

ADAPTER_CATEGORIES = frozenset({"food", "medication", "supplement", "cosmetics", "skincare", "personal_care"})


def adapter_category(category: Optional[str]) -> Optional[str]:
    """Normalize a caller category to the vocabulary adapters check eligibility against."""
    if not category or not category.strip():
        return None
    c = category.strip().lower()
    return c if c in ADAPTER_CATEGORIES else get_category_mapping(c)


def default_adapters(
    settings: ValidationSettings,
    nafdac: Optional[NAFDACAdapter] = None,
) -> List[SourceAdapter]:
    """Registry order; ties in confidence go to the earlier adapter."""
    return [
        OpenFoodFactsAdapter(settings),
        FDADrugAdapter(settings),
        CosmeticsAdapter(settings),
        GS1BarcodeAdapter(settings),
        nafdac if nafdac is not None else NAFDACAdapter(settings),
    ]


def select_best(results: Sequence[ValidationResult]) -> ValidationResult:
    """Merge adapter results: best by confidence, the other found products as alternatives."""
    found = [r for r in results if r.found]
    if not found:
        return ValidationResult.not_found(ExternalSource.NONE)
    best = max(found, key=lambda r: r.confidence)
    alternatives = list(best.alternatives)
    alternatives.extend(r.product for r in found if r is not best and r.product is not None)
    return ValidationResult(
        found=True,
        verified=best.verified,
        confidence=best.confidence,
        source=best.source,
        product=best.product,
        alternatives=alternatives,
    )


class ExternalValidator:
    def __init__(
        self,
        settings: Optional[ValidationSettings] = None,
        adapters: Optional[List[SourceAdapter]] = None,
    ):
        self.settings = settings or ValidationSettings()
        self.adapters = adapters if adapters is not None else default_adapters(self.settings)

    def eligible_adapters(self, category: Optional[str], barcode: Optional[str]) -> List[SourceAdapter]:
        return [a for a in self.adapters if a.is_eligible(category, barcode)]

    async def _run_adapter(
        self,
        adapter: SourceAdapter,
        product_name: str,
        barcode: Optional[str],
        category: Optional[str],
        ingredients: Optional[List[str]],
    ) -> ValidationResult:
        try:
            return await asyncio.wait_for(
                adapter.validate(product_name, barcode, category, ingredients),
                timeout=self.settings.adapter_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "EXTERNAL_API adapter=%s timed out after %.1fs query=%s",
                adapter.source.value, self.settings.adapter_timeout_seconds, product_name[:60],
            )
            return ValidationResult.not_found(adapter.source)

    async def validate(
        self,
        product_name: str,
        barcode: Optional[str] = None,
        category: Optional[str] = None,
        ingredients: Optional[List[str]] = None,
    ) -> ValidationResult:
        if barcode and not validate_barcode(barcode):
            logger.info("EXTERNAL_VALIDATION invalid barcode=%s query=%s", barcode, product_name[:60])
            return ValidationResult.not_found(ExternalSource.GS1)

        category = adapter_category(category)
        adapters = self.eligible_adapters(category, barcode)
        results = await asyncio.gather(*(
            self._run_adapter(a, product_name, barcode, category, ingredients) for a in adapters
        ))
        merged = select_best(results)
        logger.info(
            "EXTERNAL_VALIDATION query=%s category=%s adapters=%s found=%s source=%s confidence=%.2f",
            product_name[:60], category, [a.source.value for a in adapters],
            merged.found, merged.source.value, merged.confidence,
        )
        return merged
