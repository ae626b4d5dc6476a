"""
CosIng cosmetics check. CosIng has no public API, so the product's declared
ingredients are checked against a fixed list of known-safe ingredients.
No ingredients -> nothing to check -> not found.
"""
import logging
import uuid

from core.external_apis.base import SourceAdapter
from core.models.validation import ExternalProduct, ExternalSource, ValidationResult

logger = logging.getLogger(__name__)

SAFE_COSMETIC_INGREDIENTS = [
    "water", "glycerin", "sodium chloride", "citric acid", "tocopherol",
    "hyaluronic acid", "niacinamide", "retinol", "salicylic acid",
]


def has_unsafe_ingredients(ingredients: list) -> bool:
    return any(
        not any(safe in ing.lower() for safe in SAFE_COSMETIC_INGREDIENTS)
        for ing in ingredients
    )


class CosmeticsAdapter(SourceAdapter):
    source = ExternalSource.COSING
    categories = frozenset({"cosmetics", "skincare", "personal_care"})

    def _lookup(self, product_name, barcode=None, category=None, ingredients=None) -> ValidationResult:
        if not ingredients:
            return self.not_found()
        unsafe = has_unsafe_ingredients(ingredients)
        product = ExternalProduct(
            id=f"cosing-{uuid.uuid4().hex[:12]}",
            name=product_name,
            category="cosmetics",
            verified=not unsafe,
            source=self.source,
            ingredients=list(ingredients),
            raw_payload={"ingredients": list(ingredients), "safety_check": not unsafe},
        )
        logger.info("COSING checked query=%s ingredients=%d safe=%s", product_name[:60], len(ingredients), not unsafe)
        return self.found(product)
