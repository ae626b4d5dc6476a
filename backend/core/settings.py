"""
Runtime-tunable validation settings: per-registry enable flags, the confidence
weight table, adapter timeout and cache TTLs.

Settings are an explicit value passed to ExternalValidator / Aggregator /
EnhancedSearchService. Admin changes go through SettingsStore.update(), which
returns a new ValidationSettings instead of mutating shared state.
"""
import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from core import config
from core.models.validation import ExternalSource

logger = logging.getLogger(__name__)

REGISTRY_SOURCES = (
    ExternalSource.OPEN_FOOD_FACTS,
    ExternalSource.FDA,
    ExternalSource.COSING,
    ExternalSource.GS1,
    ExternalSource.NAFDAC,
)

# Fixed per-registry confidence on a successful lookup (not computed from match quality).
DEFAULT_CONFIDENCE_WEIGHTS: Dict[ExternalSource, float] = {
    ExternalSource.OPEN_FOOD_FACTS: 0.8,
    ExternalSource.FDA: 0.6,
    ExternalSource.COSING: 0.4,
    ExternalSource.GS1: 0.5,
    ExternalSource.NAFDAC: 0.8,
}


@dataclass(frozen=True)
class ValidationSettings:
    enabled: Mapping[ExternalSource, bool] = field(
        default_factory=lambda: {s: True for s in REGISTRY_SOURCES}
    )
    confidence_weights: Mapping[ExternalSource, float] = field(
        default_factory=lambda: dict(DEFAULT_CONFIDENCE_WEIGHTS)
    )
    adapter_timeout_seconds: float = config.ADAPTER_TIMEOUT_SECONDS
    http_timeout_seconds: int = config.HTTP_TIMEOUT_SECONDS
    cache_ttl_seconds: int = config.EXTERNAL_CACHE_TTL_SECONDS
    nafdac_cache_ttl_seconds: int = config.NAFDAC_CACHE_TTL_SECONDS

    def __post_init__(self):
        # Read-only views over private copies, so a shared value cannot be edited in place.
        object.__setattr__(self, "enabled", MappingProxyType(dict(self.enabled)))
        object.__setattr__(self, "confidence_weights", MappingProxyType(dict(self.confidence_weights)))

    @classmethod
    def from_env(cls) -> "ValidationSettings":
        return cls(
            enabled={
                ExternalSource.OPEN_FOOD_FACTS: config.get_open_food_facts_enabled(),
                ExternalSource.FDA: config.get_fda_enabled(),
                ExternalSource.COSING: config.get_cosing_enabled(),
                ExternalSource.GS1: config.get_gs1_enabled(),
                ExternalSource.NAFDAC: config.get_nafdac_enabled(),
            },
        )

    def is_enabled(self, source: ExternalSource) -> bool:
        return self.enabled.get(source, False)

    def weight(self, source: ExternalSource) -> float:
        return self.confidence_weights.get(source, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": {s.value: v for s, v in self.enabled.items()},
            "confidence_weights": {s.value: w for s, w in self.confidence_weights.items()},
            "adapter_timeout_seconds": self.adapter_timeout_seconds,
            "http_timeout_seconds": self.http_timeout_seconds,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "nafdac_cache_ttl_seconds": self.nafdac_cache_ttl_seconds,
        }


def _parse_source(name: str) -> ExternalSource:
    try:
        source = ExternalSource(name)
    except ValueError:
        raise ValueError(f"Unknown registry source: {name}")
    if source not in REGISTRY_SOURCES:
        raise ValueError(f"Not a configurable registry source: {name}")
    return source


class SettingsStore:
    """Holds the current ValidationSettings; the only write path for admin changes."""

    def __init__(self, initial: Optional[ValidationSettings] = None):
        self._settings = initial or ValidationSettings.from_env()
        self._lock = threading.Lock()

    def get(self) -> ValidationSettings:
        return self._settings

    def update(
        self,
        enabled: Optional[Dict[str, bool]] = None,
        confidence_weights: Optional[Dict[str, float]] = None,
        adapter_timeout_seconds: Optional[float] = None,
        cache_ttl_seconds: Optional[int] = None,
        nafdac_cache_ttl_seconds: Optional[int] = None,
    ) -> ValidationSettings:
        """
        Validate and apply a partial update. Unknown sources, weights outside
        [0, 1] and non-positive durations raise ValueError; nothing is applied then.
        """
        with self._lock:
            current = self._settings
            new_enabled = dict(current.enabled)
            for name, value in (enabled or {}).items():
                new_enabled[_parse_source(name)] = bool(value)

            new_weights = dict(current.confidence_weights)
            for name, value in (confidence_weights or {}).items():
                w = float(value)
                if not 0.0 <= w <= 1.0:
                    raise ValueError(f"Confidence weight for {name} must be within [0, 1], got {w}")
                new_weights[_parse_source(name)] = w

            changes: Dict[str, Any] = {"enabled": new_enabled, "confidence_weights": new_weights}
            for key, value in (
                ("adapter_timeout_seconds", adapter_timeout_seconds),
                ("cache_ttl_seconds", cache_ttl_seconds),
                ("nafdac_cache_ttl_seconds", nafdac_cache_ttl_seconds),
            ):
                if value is None:
                    continue
                if value <= 0:
                    raise ValueError(f"{key} must be positive, got {value}")
                changes[key] = value

            self._settings = replace(current, **changes)
            logger.info("SETTINGS_UPDATE %s", self._settings.to_dict())
            return self._settings
