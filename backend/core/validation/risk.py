"""
Risk level, overall confidence and recommendation heuristics for aggregated verification.

Risk rules, first match wins:
  internal found and external found and verified -> low
  internal found or (external found and verified) -> low
  external found and not verified                 -> medium
  otherwise                                       -> high
Overall confidence = 0.4 * internal_found + 0.6 * external confidence, capped at 0.95.
"""
from typing import List, Optional

from core.models.validation import RiskLevel, ValidationResult

INTERNAL_WEIGHT = 0.4
EXTERNAL_WEIGHT = 0.6
MAX_CONFIDENCE = 0.95

ALLERGEN_KEYWORDS = [
    "peanut", "tree nut", "almond", "cashew", "walnut", "hazelnut", "pecan", "pistachio",
    "milk", "lactose", "egg", "soy", "wheat", "gluten", "fish", "shellfish",
    "shrimp", "crab", "sesame", "mustard", "celery", "sulphite", "sulfite",
]
# Ingredient names that contain a keyword but are not that allergen.
ALLERGEN_FALSE_POSITIVES = (
    "eggplant", "veggie", "reggiano", "buckwheat", "crabapple", "crab apple", "milk thistle",
)
POOR_NUTRITION_GRADES = {"D", "E"}

MSG_VERIFIED_BOTH = "Product verified in both the internal catalog and external databases."
MSG_VERIFIED_INTERNAL = "Product found in the verified internal catalog."
MSG_VERIFIED_EXTERNAL = "Product verified by an external registry ({source})."
MSG_UNVERIFIED_EXTERNAL = (
    "Product found in an external database ({source}) but could not be verified. "
    "Check the packaging and registration number carefully."
)
MSG_NOT_FOUND = "Product not found in any database. Verify the product details with the manufacturer before use."
MSG_REPORT = "If you suspect this product is counterfeit, report it to the relevant regulator."
MSG_CONSULT = "Consult a pharmacist or healthcare professional before using this product."
MSG_GRADE = "Nutrition grade {grade} indicates poor nutritional quality; consume in moderation."
MSG_ALLERGEN = "Allergen warning: ingredients contain {allergens}."


def classify_risk(internal_found: bool, external_found: bool, external_verified: bool) -> RiskLevel:
    if internal_found and external_found and external_verified:
        return RiskLevel.LOW
    if internal_found or (external_found and external_verified):
        return RiskLevel.LOW
    if external_found and not external_verified:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def overall_confidence(internal_found: bool, external_confidence: float) -> float:
    score = INTERNAL_WEIGHT * (1.0 if internal_found else 0.0) + EXTERNAL_WEIGHT * max(0.0, external_confidence)
    return round(min(MAX_CONFIDENCE, score), 4)


def find_allergens(ingredients: Optional[List[str]]) -> List[str]:
    """Allergen keywords contained in any ingredient (substring match), in keyword order."""
    text = " ".join(ingredients or []).lower()
    for phrase in ALLERGEN_FALSE_POSITIVES:
        text = text.replace(phrase, " ")
    return [kw for kw in ALLERGEN_KEYWORDS if kw in text]


def build_recommendations(
    internal_found: bool,
    external: ValidationResult,
    risk: RiskLevel,
    category: Optional[str] = None,
    ingredients: Optional[List[str]] = None,
) -> List[str]:
    recs: List[str] = []
    source = external.source.value
    if internal_found and external.found and external.verified:
        recs.append(MSG_VERIFIED_BOTH)
    elif internal_found:
        recs.append(MSG_VERIFIED_INTERNAL)
    elif external.found and external.verified:
        recs.append(MSG_VERIFIED_EXTERNAL.format(source=source))
    elif external.found:
        recs.append(MSG_UNVERIFIED_EXTERNAL.format(source=source))
    else:
        recs.append(MSG_NOT_FOUND)
        recs.append(MSG_REPORT)

    product = external.product
    bucket = category or (product.category if product else None)
    if bucket in ("medication", "supplement") and risk != RiskLevel.LOW:
        recs.append(MSG_CONSULT)

    grade = (product.nutrition_grade or "").upper() if product else ""
    if bucket == "food" and grade in POOR_NUTRITION_GRADES:
        recs.append(MSG_GRADE.format(grade=grade))

    allergens = find_allergens(ingredients)
    if allergens:
        recs.append(MSG_ALLERGEN.format(allergens=", ".join(allergens)))
    return recs


def build_summary(product_name: str, internal_found: bool, external: ValidationResult, risk: RiskLevel) -> str:
    where = []
    if internal_found:
        where.append("internal catalog")
    if external.found:
        where.append(external.source.value)
    if not where:
        return f"{product_name} was not found in any database ({risk.value} risk)."
    state = "verified" if (internal_found or external.verified) else "found but not verified"
    return f"{product_name} {state} via {', '.join(where)} ({risk.value} risk)."
