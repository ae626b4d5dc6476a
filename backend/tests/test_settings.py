"""
Validation settings: env flags, weight table and the admin update path.
Run from backend: python -m pytest tests/test_settings.py -v
"""
import pytest
from unittest.mock import patch


def test_defaults_match_registry_weights():
    from core.models.validation import ExternalSource
    from core.settings import ValidationSettings
    s = ValidationSettings()
    assert s.weight(ExternalSource.OPEN_FOOD_FACTS) == 0.8
    assert s.weight(ExternalSource.FDA) == 0.6
    assert s.weight(ExternalSource.COSING) == 0.4
    assert s.weight(ExternalSource.GS1) == 0.5
    assert s.weight(ExternalSource.NAFDAC) == 0.8
    assert s.weight(ExternalSource.INTERNAL) == 0.0
    assert all(s.is_enabled(src) for src in s.enabled)


def test_from_env_reads_flags():
    from core.models.validation import ExternalSource
    from core.settings import ValidationSettings
    with patch.dict("os.environ", {"FDA_ENABLED": "false", "NAFDAC_ENABLED": "0", "GS1_ENABLED": "yes"}):
        s = ValidationSettings.from_env()
    assert not s.is_enabled(ExternalSource.FDA)
    assert not s.is_enabled(ExternalSource.NAFDAC)
    assert s.is_enabled(ExternalSource.GS1)


def test_update_returns_new_settings():
    """Update applies partial changes and leaves the previous value untouched."""
    from core.models.validation import ExternalSource
    from core.settings import SettingsStore, ValidationSettings
    store = SettingsStore(ValidationSettings())
    before = store.get()
    after = store.update(enabled={"gs1": False}, confidence_weights={"fda": 0.9}, adapter_timeout_seconds=3)
    assert store.get() is after
    assert before.is_enabled(ExternalSource.GS1)
    assert not after.is_enabled(ExternalSource.GS1)
    assert after.weight(ExternalSource.FDA) == 0.9
    assert after.adapter_timeout_seconds == 3
    assert after.cache_ttl_seconds == before.cache_ttl_seconds


def test_settings_mappings_are_read_only():
    """The flag and weight tables cannot be edited in place, and callers' dicts are copied."""
    from core.models.validation import ExternalSource
    from core.settings import ValidationSettings
    flags = {ExternalSource.GS1: True}
    settings = ValidationSettings(enabled=flags)
    with pytest.raises(TypeError):
        settings.enabled[ExternalSource.GS1] = False
    with pytest.raises(TypeError):
        settings.confidence_weights[ExternalSource.FDA] = 1.0
    flags[ExternalSource.GS1] = False
    assert settings.is_enabled(ExternalSource.GS1)


@pytest.mark.parametrize("kwargs", [
    {"enabled": {"bogus": True}},
    {"enabled": {"internal": True}},
    {"confidence_weights": {"fda": 1.5}},
    {"confidence_weights": {"fda": -0.1}},
    {"adapter_timeout_seconds": 0},
    {"cache_ttl_seconds": -5},
])
def test_update_rejects_invalid_values(kwargs):
    from core.settings import SettingsStore, ValidationSettings
    store = SettingsStore(ValidationSettings())
    before = store.get()
    with pytest.raises(ValueError):
        store.update(**kwargs)
    assert store.get() is before


def test_to_dict_uses_source_names():
    from core.settings import ValidationSettings
    d = ValidationSettings().to_dict()
    assert d["enabled"]["openfoodfacts"] is True
    assert d["confidence_weights"]["nafdac"] == 0.8
    assert d["cache_ttl_seconds"] == 24 * 60 * 60


def test_nafdac_function_url_falls_back_to_supabase():
    from core.config import get_nafdac_function_url
    env = {"SUPABASE_URL": "https://abc.supabase.co/", "NAFDAC_FUNCTION_URL": ""}
    with patch.dict("os.environ", env):
        assert get_nafdac_function_url() == "https://abc.supabase.co/functions/v1/nafdac-scraper"
    with patch.dict("os.environ", {"NAFDAC_FUNCTION_URL": "https://fn.test/nafdac"}):
        assert get_nafdac_function_url() == "https://fn.test/nafdac"
