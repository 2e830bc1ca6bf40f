# tests/test_analysis.py
from __future__ import annotations

import dataclasses
import json

import pytest

from astromap.core.analysis import (
    AnalysisCancelled,
    Deadline,
    analyze_birth,
    run_cached_analysis,
    run_full_analysis,
)
from astromap.core.constants import CFG, PLANET_IDS
from astromap.core.ephemeris_adapter import EphemerisError, Observer
from astromap.core.validators import InvalidInputError
from astromap.utils.cache import SQLiteCache, TTLCache
from astromap.utils.metrics import metrics

JD = 2460000.5
WEIGHTS = {"sun": 5, "venus": 3, "jupiter": 4, "moon": 2}


def _strip_timings(res):
    out = json.loads(json.dumps(res))
    out["meta"].pop("timings_ms")
    return out


def test_result_shape(fake_adapter):
    res = run_full_analysis(fake_adapter, JD, WEIGHTS)
    assert list(res["positions"]) == list(PLANET_IDS)
    assert len(res["acg_lines"]) == 40
    assert res["parans"]["summary"]["total"] == len(res["parans"]["points"])
    assert res["declinations"] == {p: e["declination"] for p, e in res["equatorial"].items()}
    assert set(res["speeds"]) == set(PLANET_IDS)
    assert res["meta"]["obliquity_source"] == "true"
    assert res["meta"]["obliquity"] == 23.44
    assert res["meta"]["kernel"] == "fake"
    assert res["meta"]["weights"]["mars"] == 0.0
    assert res["warnings"] == []
    assert len(res["optimal_latitudes"]) == 10
    assert res["search_bands"]["bands"]
    assert {"positions", "lines_and_parans", "zenith_and_scoring"} <= set(res["meta"]["timings_ms"])


def test_pipeline_is_idempotent(fake_adapter):
    a = run_full_analysis(fake_adapter, JD, WEIGHTS, max_workers=1)
    b = run_full_analysis(fake_adapter, JD, WEIGHTS, max_workers=4)
    assert _strip_timings(a) == _strip_timings(b)


def test_obliquity_failure_propagates_by_default(make_adapter):
    with pytest.raises(EphemerisError):
        run_full_analysis(make_adapter(fail_obliquity=True), JD, WEIGHTS)


def test_approximate_obliquity_is_opt_in(make_adapter):
    cfg = dataclasses.replace(CFG, use_approximate_obliquity=True)
    res = run_full_analysis(make_adapter(fail_obliquity=True), JD, WEIGHTS, cfg)
    assert res["meta"]["obliquity_source"] == "approximate"
    assert 23.4 < res["meta"]["obliquity"] < 23.45
    assert any("approximate" in w for w in res["warnings"])


def test_missing_planet_policy(make_adapter):
    with pytest.raises(EphemerisError):
        run_full_analysis(make_adapter(missing={"pluto"}), JD, WEIGHTS)

    res = run_full_analysis(make_adapter(missing={"pluto"}), JD, WEIGHTS, require_all=False)
    assert "pluto" not in res["positions"]
    assert len(res["acg_lines"]) == 36
    assert res["parans"]["skipped_planets"] == ["pluto"]
    assert len(res["warnings"]) == 2


def test_cancelled_analysis_raises(fake_adapter):
    d = Deadline()
    d.cancel()
    with pytest.raises(AnalysisCancelled):
        run_full_analysis(fake_adapter, JD, WEIGHTS, deadline=d)


def test_observer_is_passed_per_call(fake_adapter):
    obs = Observer(51.5, -0.1, 20.0)
    res = run_full_analysis(fake_adapter, JD, WEIGHTS, observer=obs)
    assert set(fake_adapter.observers) == {obs}
    assert res["meta"]["observer"] == {"latitude": 51.5, "longitude": -0.1, "elevation_m": 20.0}


def test_bad_weights_rejected(fake_adapter):
    with pytest.raises(InvalidInputError):
        run_full_analysis(fake_adapter, JD, {"sun": -1})
    with pytest.raises(InvalidInputError):
        run_full_analysis(fake_adapter, JD, {"chiron": 1})


def test_cached_analysis_computes_once():
    cache = TTLCache()
    calls = []

    def compute():
        calls.append(1)
        return {"value": len(calls)}

    assert run_cached_analysis(cache, "k", compute) == {"value": 1}
    assert run_cached_analysis(cache, "k", compute) == {"value": 1}
    assert len(calls) == 1


def test_analysis_survives_sqlite_cache(tmp_path, fake_adapter):
    cache = SQLiteCache(str(tmp_path / "cache.sqlite"))
    first = run_cached_analysis(cache, "k", lambda: run_full_analysis(fake_adapter, JD, WEIGHTS))
    again = run_cached_analysis(cache, "k", lambda: pytest.fail("should be cached"))
    assert again == json.loads(json.dumps(first))
    cache.close()


@pytest.mark.usefixtures("ensure_erfa")
def test_analyze_birth_uses_cache(fake_adapter):
    cache = TTLCache()
    a = analyze_birth("2000-01-01", "12:00", "UTC", WEIGHTS, adapter=fake_adapter, cache=cache)
    calls = fake_adapter.calls
    b = analyze_birth("2000-01-01", "12:00", "UTC", dict(reversed(list(WEIGHTS.items()))), adapter=fake_adapter, cache=cache)
    assert fake_adapter.calls == calls
    assert a is b
    assert a["meta"]["jd"] == pytest.approx(2451545.0)


def test_stage_metrics_exported(fake_adapter):
    run_full_analysis(fake_adapter, JD, WEIGHTS)
    text = metrics.export_prometheus()
    assert 'astromap_stage_calls_total{stage="analysis"}' in text
    assert 'astromap_stage_latency_ms_avg{stage="lines_and_parans"}' in text


@pytest.mark.usefixtures("ensure_erfa")
def test_analyze_birth_cache_respects_solver_settings(fake_adapter):
    cache = TTLCache()
    a = analyze_birth("2000-01-01", "12:00", "UTC", WEIGHTS, adapter=fake_adapter, cache=cache)
    strict = dataclasses.replace(CFG, paran_strength_threshold=0.999)
    b = analyze_birth("2000-01-01", "12:00", "UTC", WEIGHTS, adapter=fake_adapter, cache=cache, cfg=strict)
    assert a is not b
    assert len(cache) == 2
    assert all(p["strength"] >= 0.999 for p in b["parans"]["points"])


def test_dignities_in_result(fake_adapter):
    # fake sun at 63.74 (gemini, peregrine); mars at 108.75 (cancer 18, its fall)
    res = run_full_analysis(fake_adapter, JD, WEIGHTS)
    assert list(res["dignities"]) == list(PLANET_IDS)
    assert res["sect"] == "day"
    assert res["meta"]["sect_source"] == "default"
    assert res["dignities"]["sun"] == {"total": -5, "indicator": "-", "breakdown": ["Peregrine (-5)"]}
    assert res["dignities"]["mars"]["total"] == -4
    assert res["dignities"]["mars"]["indicator"] == "f"
    assert "dignities" in res["meta"]["timings_ms"]


def test_ascendant_sets_sect(fake_adapter):
    night = run_full_analysis(fake_adapter, JD, WEIGHTS, ascendant=0.0)
    assert (night["sect"], night["meta"]["sect_source"]) == ("night", "ascendant")
    # water triplicity goes to mars by night
    assert night["dignities"]["mars"]["total"] == -1
    assert night["dignities"]["mars"]["indicator"] == "f"

    day = run_full_analysis(fake_adapter, JD, WEIGHTS, ascendant=180.0)
    assert day["sect"] == "day"
    with pytest.raises(InvalidInputError):
        run_full_analysis(fake_adapter, JD, WEIGHTS, ascendant=float("inf"))


@pytest.mark.parametrize("observer, sect", [
    (Observer(51.5, -0.1), "day"),
    (Observer(-51.5, 179.9), "night"),
])
def test_observer_sets_sect_from_sun_altitude(fake_adapter, observer, sect):
    res = run_full_analysis(fake_adapter, JD, WEIGHTS, observer=observer)
    assert res["meta"]["sect_source"] == "sun_altitude"
    assert res["sect"] == sect


@pytest.mark.usefixtures("ensure_erfa")
def test_analyze_birth_cache_keys_on_ascendant(fake_adapter):
    cache = TTLCache()
    a = analyze_birth("2000-01-01", "12:00", "UTC", WEIGHTS, adapter=fake_adapter, cache=cache)
    b = analyze_birth("2000-01-01", "12:00", "UTC", WEIGHTS, adapter=fake_adapter, cache=cache, ascendant=0.0)
    assert len(cache) == 2
    assert a["meta"]["sect_source"] == "default"
    assert b["meta"]["sect_source"] == "ascendant"
