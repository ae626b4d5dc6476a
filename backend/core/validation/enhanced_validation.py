"""
Risk-factor view over a single external validation (no internal catalog).
Risk is driven by the number of risk factors rather than the aggregate rules.
"""
import logging
from typing import Any, Dict, Optional

from core.validation.external_validator import ExternalValidator

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_THRESHOLD = 0.7


async def get_enhanced_validation(
    validator: ExternalValidator,
    product_name: str,
    barcode: Optional[str] = None,
) -> Dict[str, Any]:
    try:
        validation = await validator.validate(product_name, barcode)
        risk_factors = []
        recommendations = []

        if not validation.found:
            risk_factors.append("Product not found in external databases")
            recommendations.append("Verify product details with manufacturer directly")
        if not validation.verified:
            risk_factors.append("Product verification failed in external sources")
            recommendations.append("Exercise caution and seek alternative verified products")
        if validation.confidence < LOW_CONFIDENCE_THRESHOLD:
            risk_factors.append("Low confidence in product data")
            recommendations.append("Cross-check product information from multiple sources")

        if not risk_factors and validation.verified:
            overall_risk = "low"
        elif len(risk_factors) <= 2 and validation.found:
            overall_risk = "medium"
        else:
            overall_risk = "high"

        if overall_risk == "low":
            recommendations.append("Product appears safe based on available data")
        recommendations.append("Always check expiration dates and storage instructions")
        recommendations.append("Report any adverse reactions to relevant authorities")

        return {
            "overall_risk": overall_risk,
            "risk_factors": risk_factors,
            "recommendations": recommendations,
            "sources": [validation.to_dict()],
            "confidence": validation.confidence,
        }
    except Exception as e:
        logger.error("ENHANCED_VALIDATION failed query=%s: %s", product_name, e, exc_info=True)
        return {
            "overall_risk": "high",
            "risk_factors": ["Unable to validate product due to system error"],
            "recommendations": ["Manual verification recommended", "Contact manufacturer directly"],
            "sources": [],
            "confidence": 0.0,
        }
