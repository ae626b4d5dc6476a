"""
Aggregated product verification: internal catalog + external registries -> risk-rated verdict.

The catalog lookup and the external fan-out run concurrently. The aggregate is a
total function: any unexpected error becomes the fixed system-error result.
Caching and the validation log are best-effort side effects.
"""
import asyncio
import logging
from typing import List, Optional

from core.cache.result_cache import ResultCache
from core.catalog.internal_search import CatalogResult, InternalCatalog
from core.models.validation import (
    AggregatedValidationResult,
    ExternalSource,
    RiskLevel,
    ValidationResult,
)
from core.settings import ValidationSettings
from core.validation.external_validator import ExternalValidator, adapter_category
from core.validation.risk import (
    build_recommendations,
    build_summary,
    classify_risk,
    overall_confidence,
)
from core.validation.validation_log import ValidationLogSink

logger = logging.getLogger(__name__)

SYSTEM_ERROR_SUMMARY = "Verification failed due to a system error. Please try again."
SYSTEM_ERROR_RECOMMENDATIONS = [
    "Unable to verify this product right now. Please try again later.",
    "Manual verification recommended: contact the manufacturer directly.",
]


def system_error_result(product_name: str) -> AggregatedValidationResult:
    return AggregatedValidationResult(
        product_name=product_name or "",
        overall_verified=False,
        confidence=0.0,
        internal={"found": False, "product": None},
        external=ValidationResult.not_found(ExternalSource.ERROR),
        recommendations=list(SYSTEM_ERROR_RECOMMENDATIONS),
        risk_level=RiskLevel.HIGH,
        summary=SYSTEM_ERROR_SUMMARY,
    )


def aggregate_cache_query(
    product_name: str,
    barcode: Optional[str],
    category: Optional[str],
    ingredients: Optional[List[str]],
) -> str:
    parts = [
        product_name or "",
        barcode or "",
        category or "",
        ",".join(sorted(i.strip().lower() for i in ingredients or [])),
    ]
    return "aggregate|" + "|".join(parts)


class Aggregator:
    def __init__(
        self,
        catalog: InternalCatalog,
        validator: Optional[ExternalValidator] = None,
        settings: Optional[ValidationSettings] = None,
        cache: Optional[ResultCache] = None,
        log_sink: Optional[ValidationLogSink] = None,
    ):
        self.settings = settings or ValidationSettings()
        self.catalog = catalog
        self.validator = validator or ExternalValidator(self.settings)
        self.cache = cache if cache is not None else ResultCache(prefix="aggregate")
        self.log_sink = log_sink if log_sink is not None else ValidationLogSink(catalog.client)

    async def _internal_lookup(self, product_name: str) -> CatalogResult:
        try:
            return await asyncio.to_thread(self.catalog.find_product, product_name)
        except Exception as e:
            logger.warning("AGGREGATE catalog raised query=%s error=%s", product_name[:60], e)
            return CatalogResult(error=str(e))

    async def aggregate(
        self,
        product_name: str,
        barcode: Optional[str] = None,
        category: Optional[str] = None,
        ingredients: Optional[List[str]] = None,
        user_id: Optional[str] = None,
    ) -> AggregatedValidationResult:
        try:
            internal, external = await asyncio.gather(
                self._internal_lookup(product_name),
                self.validator.validate(product_name, barcode, category, ingredients),
            )
            if internal.error:
                logger.warning("AGGREGATE internal lookup failed query=%s error=%s", product_name[:60], internal.error)
            internal_found = internal.found

            risk = classify_risk(internal_found, external.found, external.verified)
            result = AggregatedValidationResult(
                product_name=product_name,
                overall_verified=internal_found or external.verified,
                confidence=overall_confidence(internal_found, external.confidence),
                internal={"found": internal_found, "product": internal.data[0] if internal_found else None},
                external=external,
                recommendations=build_recommendations(
                    internal_found, external, risk,
                    category=adapter_category(category),
                    ingredients=ingredients,
                ),
                risk_level=risk,
                summary=build_summary(product_name, internal_found, external, risk),
            )

            query = aggregate_cache_query(product_name, barcode, category, ingredients)
            await asyncio.to_thread(self.cache.put, query, result.to_dict(), self.settings.cache_ttl_seconds)
            await asyncio.to_thread(self.log_sink.record, result, user_id)
        except Exception as e:
            logger.error("AGGREGATE failed query=%s: %s", (product_name or "")[:60], e, exc_info=True)
            return system_error_result(product_name)

        logger.info(
            "AGGREGATE query=%s internal=%s external=%s risk=%s confidence=%.2f",
            product_name[:60], internal_found, external.found, risk.value, result.confidence,
        )
        return result
