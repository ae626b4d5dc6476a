"""
External validation fan-out, risk heuristics and aggregated verification.
"""
from .external_validator import ExternalValidator, default_adapters, select_best, adapter_category
from .risk import classify_risk, overall_confidence, build_recommendations, find_allergens
from .aggregator import Aggregator, system_error_result
from .validation_log import ValidationLogSink
from .enhanced_validation import get_enhanced_validation

__all__ = [
    "ExternalValidator",
    "default_adapters",
    "select_best",
    "adapter_category",
    "classify_risk",
    "overall_confidence",
    "build_recommendations",
    "find_allergens",
    "Aggregator",
    "system_error_result",
    "ValidationLogSink",
    "get_enhanced_validation",
]
