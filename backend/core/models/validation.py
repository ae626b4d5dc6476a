"""
Validation results shared by source adapters, the aggregator and search.
ValidationResult and AggregatedValidationResult are derived per call; only the
cache persists them (as JSON via to_dict/from_dict).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ExternalSource(str, Enum):
    OPEN_FOOD_FACTS = "openfoodfacts"
    FDA = "fda"
    COSING = "cosing"
    GS1 = "gs1"
    NAFDAC = "nafdac"
    INTERNAL = "internal"
    ERROR = "error"
    NONE = "none"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ExternalProduct:
    """A product as reported by one registry. `id` is only unique within its source."""
    id: str
    name: str
    category: str
    verified: bool
    source: ExternalSource
    brand: Optional[str] = None
    image_url: Optional[str] = None
    nutrition_grade: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)
    allergens: List[str] = field(default_factory=list)
    raw_payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "verified": self.verified,
            "source": self.source.value,
            "image_url": self.image_url,
            "nutrition_grade": self.nutrition_grade,
            "ingredients": list(self.ingredients),
            "allergens": list(self.allergens),
            "raw_payload": self.raw_payload,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExternalProduct":
        return cls(
            id=str(d.get("id") or ""),
            name=d.get("name") or "Unknown Product",
            brand=d.get("brand"),
            category=d.get("category") or "general",
            verified=bool(d.get("verified", False)),
            source=ExternalSource(d.get("source") or ExternalSource.NONE.value),
            image_url=d.get("image_url"),
            nutrition_grade=d.get("nutrition_grade"),
            ingredients=list(d.get("ingredients") or []),
            allergens=list(d.get("allergens") or []),
            raw_payload=dict(d.get("raw_payload") or {}),
        )


@dataclass
class ValidationResult:
    """
    Outcome of one adapter (or of the external fan-out).
    Invariants: verified => found, confidence == 0 => not found, confidence in [0, 1].
    """
    found: bool
    verified: bool
    confidence: float
    source: ExternalSource
    product: Optional[ExternalProduct] = None
    alternatives: List[ExternalProduct] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.confidence = min(1.0, max(0.0, float(self.confidence or 0.0)))
        if self.confidence == 0.0:
            self.found = False
        if not self.found:
            self.verified = False
            self.confidence = 0.0

    @classmethod
    def not_found(cls, source: ExternalSource) -> "ValidationResult":
        return cls(found=False, verified=False, confidence=0.0, source=source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "verified": self.verified,
            "confidence": self.confidence,
            "source": self.source.value,
            "product": self.product.to_dict() if self.product else None,
            "alternatives": [a.to_dict() for a in self.alternatives],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ValidationResult":
        product = d.get("product")
        return cls(
            found=bool(d.get("found", False)),
            verified=bool(d.get("verified", False)),
            confidence=float(d.get("confidence") or 0.0),
            source=ExternalSource(d.get("source") or ExternalSource.NONE.value),
            product=ExternalProduct.from_dict(product) if product else None,
            alternatives=[ExternalProduct.from_dict(a) for a in d.get("alternatives") or []],
        )


@dataclass
class CacheEntry:
    query_hash: str
    result_payload: Any
    expires_at: float  # epoch seconds


@dataclass
class AggregatedValidationResult:
    product_name: str
    overall_verified: bool
    confidence: float
    internal: Dict[str, Any]
    external: ValidationResult
    recommendations: List[str] = field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.HIGH
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_name": self.product_name,
            "overall_verified": self.overall_verified,
            "confidence": self.confidence,
            "sources": {
                "internal": dict(self.internal),
                "external": self.external.to_dict(),
            },
            "recommendations": list(self.recommendations),
            "risk_level": self.risk_level.value,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class NAFDACProduct:
    """A Green Book registration row. Wire format uses camelCase keys."""
    id: str
    name: str
    manufacturer: str
    registration_number: str
    registration_date: str
    category: str
    status: str = "approved"
    verified: bool = True
    expiry_date: Optional[str] = None
    source: str = "nafdac"

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "name": self.name,
            "manufacturer": self.manufacturer,
            "registrationNumber": self.registration_number,
            "registrationDate": self.registration_date,
            "category": self.category,
            "status": self.status,
            "verified": self.verified,
            "source": self.source,
        }
        if self.expiry_date:
            d["expiryDate"] = self.expiry_date
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NAFDACProduct":
        return cls(
            id=str(d.get("id") or ""),
            name=d.get("name") or "Unknown Product",
            manufacturer=d.get("manufacturer") or "Unknown Manufacturer",
            registration_number=d.get("registrationNumber") or "N/A",
            registration_date=d.get("registrationDate") or "N/A",
            category=d.get("category") or "general",
            status=d.get("status") or "approved",
            verified=bool(d.get("verified", False)),
            expiry_date=d.get("expiryDate"),
        )
