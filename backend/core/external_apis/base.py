"""
Source adapter contract for external product registries.

Subclasses implement the blocking `_lookup`; `validate` runs it in a worker
thread, checks eligibility and the enabled flag, and turns any failure into a
not-found result so callers never see adapter exceptions.
"""
import asyncio
import logging
from typing import List, Optional

from core.models.validation import ExternalProduct, ExternalSource, ValidationResult
from core.settings import ValidationSettings

logger = logging.getLogger(__name__)


class SourceAdapter:
    source: ExternalSource = ExternalSource.NONE
    # Categories this registry covers; empty means every category.
    categories: frozenset = frozenset()

    def __init__(self, settings: Optional[ValidationSettings] = None):
        self.settings = settings or ValidationSettings()

    @property
    def confidence(self) -> float:
        return self.settings.weight(self.source)

    def is_eligible(self, category: Optional[str] = None, barcode: Optional[str] = None) -> bool:
        if not self.settings.is_enabled(self.source):
            return False
        return category is None or not self.categories or category in self.categories

    def found(self, product: ExternalProduct, alternatives: Optional[List[ExternalProduct]] = None) -> ValidationResult:
        return ValidationResult(
            found=True,
            verified=product.verified,
            confidence=self.confidence,
            source=self.source,
            product=product,
            alternatives=list(alternatives or []),
        )

    def not_found(self) -> ValidationResult:
        return ValidationResult.not_found(self.source)

    def _lookup(
        self,
        product_name: str,
        barcode: Optional[str] = None,
        category: Optional[str] = None,
        ingredients: Optional[List[str]] = None,
    ) -> ValidationResult:
        raise NotImplementedError

    async def validate(
        self,
        product_name: str,
        barcode: Optional[str] = None,
        category: Optional[str] = None,
        ingredients: Optional[List[str]] = None,
    ) -> ValidationResult:
        try:
            return await asyncio.to_thread(self._lookup, product_name, barcode, category, ingredients)
        except Exception as e:
            logger.warning(
                "EXTERNAL_API adapter=%s query=%s failed error=%s",
                self.source.value, (product_name or "")[:60], e,
            )
            return self.not_found()
