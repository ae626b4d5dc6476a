"""
GS1 barcode registry check. Only the barcode format is validated (EAN-13 check
digit, otherwise 8-14 digits), so a valid barcode is found but never verified.
"""
import logging
from typing import Optional

from core.external_apis.base import SourceAdapter
from core.models.validation import ExternalProduct, ExternalSource, ValidationResult

logger = logging.getLogger(__name__)


def validate_barcode(barcode: Optional[str]) -> bool:
    code = (barcode or "").strip()
    if not code.isdigit():
        return False
    if len(code) == 13:
        digits = [int(c) for c in code]
        total = sum(d * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
        return (10 - total % 10) % 10 == digits[12]
    return 8 <= len(code) <= 14


class GS1BarcodeAdapter(SourceAdapter):
    source = ExternalSource.GS1

    def is_eligible(self, category: Optional[str] = None, barcode: Optional[str] = None) -> bool:
        return bool(barcode) and self.settings.is_enabled(self.source)

    def _lookup(self, product_name, barcode=None, category=None, ingredients=None) -> ValidationResult:
        if not validate_barcode(barcode):
            logger.info("GS1 invalid barcode=%s", barcode)
            return self.not_found()
        product = ExternalProduct(
            id=barcode.strip(),
            name=product_name,
            category=category or "general",
            verified=False,
            source=self.source,
            raw_payload={"barcode": barcode.strip(), "format_valid": True},
        )
        return self.found(product)
