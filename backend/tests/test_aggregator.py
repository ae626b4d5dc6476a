"""
External fan-out and aggregated verification (adapters and catalog faked).
Run from backend: python -m pytest tests/test_aggregator.py -v
"""
import asyncio
import pytest
from unittest.mock import MagicMock


def _settings(**overrides):
    from dataclasses import replace
    from core.settings import ValidationSettings
    return replace(ValidationSettings(), **overrides)


def _adapter(source, result=None, delay=0.0, exc=None, categories=frozenset()):
    """SourceAdapter whose blocking lookup returns a canned result."""
    import time
    from core.external_apis.base import SourceAdapter
    from core.models.validation import ExternalProduct

    class FakeAdapter(SourceAdapter):
        calls = 0

        def _lookup(self, product_name, barcode=None, category=None, ingredients=None):
            type(self).calls += 1
            if delay:
                time.sleep(delay)
            if exc is not None:
                raise exc
            if result is None:
                return self.not_found()
            found, verified = result
            product = ExternalProduct(
                id=f"{source.value}-1", name=product_name, category="general",
                verified=verified, source=source,
            )
            return self.found(product) if found else self.not_found()

    FakeAdapter.source = source
    FakeAdapter.categories = categories
    return FakeAdapter


def _catalog(products=None, error=None):
    from core.catalog.internal_search import CatalogResult
    catalog = MagicMock()
    catalog.client = None
    catalog.find_product.return_value = CatalogResult(data=list(products or []), error=error)
    return catalog


def _aggregator(adapters, catalog=None, settings=None):
    from core.validation.aggregator import Aggregator
    from core.validation.external_validator import ExternalValidator
    settings = settings or _settings()
    validator = ExternalValidator(settings, adapters=[a(settings) for a in adapters])
    log_sink = MagicMock()
    cache = MagicMock()
    agg = Aggregator(catalog or _catalog(), validator, settings, cache=cache, log_sink=log_sink)
    return agg, cache, log_sink


# --- select_best ---

def test_select_best_prefers_highest_confidence_first_on_tie():
    from core.models.validation import ExternalProduct, ExternalSource, ValidationResult
    from core.validation.external_validator import select_best

    def r(source, conf):
        p = ExternalProduct(id=source.value, name="x", category="food", verified=True, source=source)
        return ValidationResult(found=True, verified=True, confidence=conf, source=source, product=p)

    best = select_best([
        r(ExternalSource.OPEN_FOOD_FACTS, 0.8),
        r(ExternalSource.GS1, 0.5),
        r(ExternalSource.NAFDAC, 0.8),
    ])
    assert best.source == ExternalSource.OPEN_FOOD_FACTS
    assert {a.source for a in best.alternatives} == {ExternalSource.GS1, ExternalSource.NAFDAC}


def test_select_best_nothing_found():
    from core.models.validation import ExternalSource, ValidationResult
    from core.validation.external_validator import select_best
    res = select_best([ValidationResult.not_found(ExternalSource.FDA)])
    assert not res.found
    assert res.source == ExternalSource.NONE


def test_adapter_category_normalization():
    from core.validation.external_validator import adapter_category
    assert adapter_category(None) is None
    assert adapter_category("  ") is None
    assert adapter_category("Medication") == "medication"
    assert adapter_category("Skin Care") == "cosmetics"
    assert adapter_category("Vitamins & Minerals") == "supplement"


# --- ExternalValidator ---

@pytest.mark.asyncio
async def test_category_routes_to_eligible_adapters_only():
    """Food query never calls the drug adapter; NAFDAC runs for every category."""
    from core.models.validation import ExternalSource
    from core.validation.external_validator import ExternalValidator
    food = _adapter(ExternalSource.OPEN_FOOD_FACTS, (True, True), categories=frozenset({"food"}))
    drug = _adapter(ExternalSource.FDA, (True, True), categories=frozenset({"medication", "supplement"}))
    nafdac = _adapter(ExternalSource.NAFDAC, None)
    settings = _settings()
    validator = ExternalValidator(settings, adapters=[food(settings), drug(settings), nafdac(settings)])
    res = await validator.validate("Rice", category="food")
    assert res.source == ExternalSource.OPEN_FOOD_FACTS
    assert drug.calls == 0
    assert nafdac.calls == 1


@pytest.mark.asyncio
async def test_invalid_barcode_short_circuits():
    """A malformed barcode returns not found without calling any adapter."""
    from core.models.validation import ExternalSource
    from core.validation.external_validator import ExternalValidator
    food = _adapter(ExternalSource.OPEN_FOOD_FACTS, (True, True))
    settings = _settings()
    res = await ExternalValidator(settings, adapters=[food(settings)]).validate("Rice", barcode="12ab")
    assert not res.found
    assert res.source == ExternalSource.GS1
    assert food.calls == 0


@pytest.mark.asyncio
async def test_slow_adapter_times_out_as_not_found():
    """A slow adapter is dropped after the timeout; the others still count."""
    from core.models.validation import ExternalSource
    from core.validation.external_validator import ExternalValidator
    slow = _adapter(ExternalSource.OPEN_FOOD_FACTS, (True, True), delay=1.0)
    fast = _adapter(ExternalSource.FDA, (True, True))
    settings = _settings(adapter_timeout_seconds=0.1)
    res = await ExternalValidator(settings, adapters=[slow(settings), fast(settings)]).validate("Aspirin")
    assert res.found
    assert res.source == ExternalSource.FDA


@pytest.mark.asyncio
async def test_failing_adapter_does_not_fail_validation():
    from core.models.validation import ExternalSource
    from core.validation.external_validator import ExternalValidator
    broken = _adapter(ExternalSource.OPEN_FOOD_FACTS, exc=RuntimeError("boom"))
    ok = _adapter(ExternalSource.NAFDAC, (True, True))
    settings = _settings()
    res = await ExternalValidator(settings, adapters=[broken(settings), ok(settings)]).validate("Panadol")
    assert res.found and res.source == ExternalSource.NAFDAC


# --- Aggregator ---

@pytest.mark.asyncio
async def test_aspirin_found_by_drug_registry_only():
    """Drug registry verifies at 0.6, internal misses -> low risk, confidence 0.36."""
    from core.models.validation import ExternalSource
    agg, cache, log_sink = _aggregator([
        _adapter(ExternalSource.OPEN_FOOD_FACTS, None),
        _adapter(ExternalSource.FDA, (True, True)),
        _adapter(ExternalSource.NAFDAC, None),
    ])
    res = await agg.aggregate("Aspirin")
    assert res.external.source == ExternalSource.FDA
    assert res.external.confidence == pytest.approx(0.6)
    assert res.risk_level.value == "low"
    assert res.overall_verified
    assert res.confidence == pytest.approx(0.36)
    cache.put.assert_called_once()
    log_sink.record.assert_called_once()


@pytest.mark.asyncio
async def test_aspirin_found_internally_and_by_drug_registry():
    from core.models.validation import ExternalSource
    agg, _, _ = _aggregator(
        [_adapter(ExternalSource.FDA, (True, True))],
        catalog=_catalog([{"id": "p-1", "name": "Aspirin 300mg"}]),
    )
    res = await agg.aggregate("Aspirin")
    assert res.risk_level.value == "low"
    assert res.internal == {"found": True, "product": {"id": "p-1", "name": "Aspirin 300mg"}}
    assert res.confidence == pytest.approx(0.76)


@pytest.mark.asyncio
async def test_unknown_product_is_high_risk():
    """No source knows the product -> not verified, high risk, confidence 0."""
    from core.models.validation import ExternalSource
    agg, _, _ = _aggregator([
        _adapter(ExternalSource.OPEN_FOOD_FACTS, None),
        _adapter(ExternalSource.NAFDAC, None),
    ])
    res = await agg.aggregate("Unknown Product XYZ")
    d = res.to_dict()
    assert d["overall_verified"] is False
    assert d["risk_level"] == "high"
    assert d["confidence"] == 0
    assert any("not found in any database" in r for r in d["recommendations"])


@pytest.mark.asyncio
async def test_unverified_external_is_medium_risk():
    from core.models.validation import ExternalSource
    agg, _, _ = _aggregator([_adapter(ExternalSource.GS1, (True, False))])
    res = await agg.aggregate("Pen", barcode="4006381333931")
    assert res.risk_level.value == "medium"
    assert not res.overall_verified


@pytest.mark.asyncio
async def test_allergen_warning_regardless_of_risk():
    from core.models.validation import ExternalSource
    for result in ((True, True), None):
        agg, _, _ = _aggregator([_adapter(ExternalSource.OPEN_FOOD_FACTS, result)])
        res = await agg.aggregate("Trail Mix", ingredients=["raisins", "peanuts"])
        assert any(r.startswith("Allergen warning") and "peanut" in r for r in res.recommendations)


@pytest.mark.asyncio
async def test_catalog_error_treated_as_not_found():
    from core.models.validation import ExternalSource
    agg, _, _ = _aggregator(
        [_adapter(ExternalSource.NAFDAC, None)],
        catalog=_catalog(error="connection refused"),
    )
    res = await agg.aggregate("Anything")
    assert res.internal["found"] is False
    assert res.risk_level.value == "high"


@pytest.mark.asyncio
async def test_system_error_result_on_unexpected_failure():
    """Aggregate never raises; an unexpected error yields the fixed system-error result."""
    from unittest.mock import AsyncMock
    from core.validation.aggregator import SYSTEM_ERROR_SUMMARY
    agg, _, _ = _aggregator([])
    agg.validator = MagicMock()
    agg.validator.validate = AsyncMock(side_effect=RuntimeError("validator exploded"))
    res = await agg.aggregate("Anything")
    assert res.risk_level.value == "high"
    assert res.confidence == 0.0
    assert res.summary == SYSTEM_ERROR_SUMMARY
    assert res.external.source.value == "error"


@pytest.mark.asyncio
async def test_catalog_exception_keeps_external_result():
    """A raising catalog counts as an internal miss; the external verdict still drives the result."""
    from core.models.validation import ExternalSource
    catalog = _catalog()
    catalog.find_product.side_effect = RuntimeError("catalog exploded")
    agg, _, log_sink = _aggregator([_adapter(ExternalSource.FDA, (True, True))], catalog=catalog)
    res = await agg.aggregate("Aspirin")
    assert res.internal["found"] is False
    assert res.external.source == ExternalSource.FDA
    assert res.risk_level.value == "low"
    assert res.confidence == pytest.approx(0.36)
    log_sink.record.assert_called_once()


@pytest.mark.asyncio
async def test_side_effect_failures_do_not_break_result_sink():
    """A failing validation log sink (which swallows errors) leaves the result intact."""
    from core.models.validation import ExternalSource
    from core.validation.validation_log import ValidationLogSink
    agg, _, _ = _aggregator([_adapter(ExternalSource.FDA, (True, True))])
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("db down")
    agg.log_sink = ValidationLogSink(client)
    res = await agg.aggregate("Aspirin")
    assert res.risk_level.value == "low"


@pytest.mark.asyncio
async def test_aggregate_invariants_hold():
    """overall_verified == internal or external verified; confidence within [0, 0.95]."""
    from core.models.validation import ExternalSource
    for catalog_rows in ([], [{"id": "1"}]):
        for result in ((True, True), (True, False), None):
            agg, _, _ = _aggregator(
                [_adapter(ExternalSource.OPEN_FOOD_FACTS, result)],
                catalog=_catalog(catalog_rows),
            )
            res = await agg.aggregate("Thing")
            assert res.overall_verified == (res.internal["found"] or res.external.verified)
            assert 0.0 <= res.confidence <= 0.95


@pytest.mark.asyncio
async def test_cancellation_propagates():
    """Cancelling the caller cancels the in-flight validation."""
    from core.models.validation import ExternalSource
    from core.validation.external_validator import ExternalValidator
    slow = _adapter(ExternalSource.OPEN_FOOD_FACTS, (True, True), delay=0.5)
    settings = _settings(adapter_timeout_seconds=5)
    task = asyncio.ensure_future(ExternalValidator(settings, adapters=[slow(settings)]).validate("x"))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_validation_log_row():
    from core.validation.aggregator import system_error_result
    from core.validation.validation_log import build_log_row, ValidationLogSink
    res = system_error_result("Widget")
    row = build_log_row(res, user_id="u1")
    assert row["risk_level"] == "high"
    assert row["sources_checked"] == {"internal": False, "external": False}
    assert ValidationLogSink(None).record(res) is False


# --- Enhanced validation ---

@pytest.mark.asyncio
async def test_enhanced_validation_verified_is_low_risk():
    from core.models.validation import ExternalSource
    from core.validation.enhanced_validation import get_enhanced_validation
    from core.validation.external_validator import ExternalValidator
    settings = _settings()
    validator = ExternalValidator(settings, adapters=[_adapter(ExternalSource.OPEN_FOOD_FACTS, (True, True))(settings)])
    res = await get_enhanced_validation(validator, "Nutella")
    assert res["overall_risk"] == "low"
    assert res["risk_factors"] == []
    assert res["confidence"] == 0.8
    assert "Product appears safe based on available data" in res["recommendations"]


@pytest.mark.asyncio
async def test_enhanced_validation_unverified_low_confidence_is_medium():
    """Found but unverified at 0.5: two risk factors -> medium."""
    from core.models.validation import ExternalSource
    from core.validation.enhanced_validation import get_enhanced_validation
    from core.validation.external_validator import ExternalValidator
    settings = _settings()
    validator = ExternalValidator(settings, adapters=[_adapter(ExternalSource.GS1, (True, False))(settings)])
    res = await get_enhanced_validation(validator, "Pen", barcode="4006381333931")
    assert res["overall_risk"] == "medium"
    assert len(res["risk_factors"]) == 2


@pytest.mark.asyncio
async def test_enhanced_validation_not_found_and_error():
    from core.validation.enhanced_validation import get_enhanced_validation
    from core.validation.external_validator import ExternalValidator
    res = await get_enhanced_validation(ExternalValidator(_settings(), adapters=[]), "Nothing")
    assert res["overall_risk"] == "high"
    assert len(res["risk_factors"]) == 3

    broken = MagicMock()
    broken.validate.side_effect = RuntimeError("boom")
    err = await get_enhanced_validation(broken, "Nothing")
    assert err["overall_risk"] == "high"
    assert err["confidence"] == 0.0
    assert err["sources"] == []
