# astromap/core/analysis.py
# -*- coding: utf-8 -*-
"""
Full relocation analysis pipeline.

Public API
----------
run_full_analysis(adapter, jd, weights, cfg=CFG, deadline=None, observer=None,
                  max_workers=None, require_all=True, ascendant=None) -> dict
run_cached_analysis(cache, key, compute, ttl=None)     -> dict
analyze_birth(birth_date, birth_time, timezone, weights, adapter=None, cache=None, ...) -> dict
Deadline / AnalysisCancelled (re-exported)

Stages
------
positions → obliquity → equatorial/declinations → sidereal time → speeds →
OOB → ACG lines ∥ parans (thread pool) → zenith lines/overlaps →
optimal latitudes → search bands → sect + essential dignities

Output is plain JSON-compatible data. Identical inputs give identical output
apart from meta.timings_ms. A fired Deadline raises AnalysisCancelled; no
partial result is ever returned.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional
import logging
import time

from astromap.core.acg import calculate_all_acg_lines
from astromap.core.constants import CFG, PLANET_IDS, SolverConfig
from astromap.core.deadline import AnalysisCancelled, Deadline, check_deadline
from astromap.core.dignity import calculate_all_dignities, is_day_chart, sect_from_sun_altitude, summary_indicator
from astromap.core.ephemeris_adapter import EphemerisError, Observer, get_default_adapter
from astromap.core.julian import date_to_julian_day
from astromap.core.motion import calculate_planet_speeds, make_position_sampler
from astromap.core.oob import check_all_oob_status
from astromap.core.paran import find_all_parans
from astromap.core.positions import (
    OBLIQUITY_APPROXIMATE,
    calculate_all_positions,
    calculate_equatorial_positions,
    resolve_obliquity,
)
from astromap.core.scoring import find_optimal_latitudes, generate_search_bands
from astromap.core.transforms import calculate_hour_angle, equatorial_to_horizontal, local_sidereal_time
from astromap.core.validators import parse_weights, require_finite
from astromap.core.zenith import calculate_all_zenith_lines, find_zenith_overlaps
from astromap.utils.cache import analysis_cache_key
from astromap.utils.metrics import metrics
from astromap.version import VERSION

log = logging.getLogger(__name__)

__all__ = [
    "AnalysisCancelled", "Deadline",
    "run_full_analysis", "run_cached_analysis", "analyze_birth",
]


@contextmanager
def _stage(timings: Dict[str, float], name: str) -> Iterator[None]:
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = (time.perf_counter() - t0) * 1000.0
        timings[name] = round(dt, 3)
        metrics.observe("astromap_stage_latency_ms", dt, {"stage": name})


def _positions(adapter: Any, jd: float, observer: Optional[Observer], require_all: bool, warnings: List[str]):
    if require_all:
        return calculate_all_positions(adapter, jd, observer)
    out = {}
    for p in PLANET_IDS:
        try:
            out[p] = adapter.body_position(jd, p, observer)
        except EphemerisError as e:
            log.warning("no position for %s: %s", p, e)
            warnings.append(f"position unavailable for {p}: {e.message}")
    return out


def _sect(positions, equatorial, gmst: float, observer: Optional[Observer], ascendant: Optional[float]):
    """(sect, source): an explicit ascendant wins, then the Sun's altitude at the observer."""
    if ascendant is not None and "sun" in positions:
        day = is_day_chart(positions["sun"].longitude, ascendant)
        return ("day" if day else "night"), "ascendant"
    if observer is not None and "sun" in equatorial:
        sun = equatorial["sun"]
        ha = calculate_hour_angle(local_sidereal_time(gmst, observer.longitude), sun.right_ascension)
        _az, alt = equatorial_to_horizontal(ha, sun.declination, observer.latitude)
        return sect_from_sun_altitude(alt), "sun_altitude"
    return "day", "default"


@metrics.timed("analysis")
def run_full_analysis(
    adapter: Any,
    jd: float,
    weights: Optional[Mapping[str, Any]],
    cfg: SolverConfig = CFG,
    deadline: Optional[Deadline] = None,
    observer: Optional[Observer] = None,
    max_workers: Optional[int] = None,
    *,
    require_all: bool = True,
    ascendant: Optional[float] = None,
) -> Dict[str, Any]:
    jd = require_finite("jd", jd)
    if ascendant is not None:
        ascendant = require_finite("ascendant", ascendant)
    w = parse_weights(weights)
    timings: Dict[str, float] = {}
    warnings: List[str] = []

    with _stage(timings, "positions"):
        positions = _positions(adapter, jd, observer, require_all, warnings)
    check_deadline(deadline)

    with _stage(timings, "obliquity"):
        obliquity, obliquity_source = resolve_obliquity(adapter, jd, cfg)
        if obliquity_source == OBLIQUITY_APPROXIMATE:
            warnings.append("true obliquity unavailable; approximate mean obliquity used")
        equatorial = calculate_equatorial_positions(positions, obliquity)
        declinations = {p: eq.declination for p, eq in equatorial.items()}
        gmst = float(adapter.sidereal_time_degrees(jd))

    with _stage(timings, "speeds"):
        sampler = make_position_sampler(adapter, cfg, observer, planets=tuple(positions))
        speeds = calculate_planet_speeds(sampler, jd, cfg=cfg)
        oob = check_all_oob_status(declinations, obliquity)
    check_deadline(deadline)

    workers = max(1, int(max_workers or cfg.max_workers))
    with _stage(timings, "lines_and_parans"), ThreadPoolExecutor(max_workers=workers) as pool:
        acg_lines = calculate_all_acg_lines(equatorial, gmst, cfg, executor=pool, deadline=deadline)
        parans = find_all_parans(equatorial, cfg, require_all=require_all, executor=pool, deadline=deadline)
    check_deadline(deadline)
    if parans.skipped_planets:
        warnings.append(f"parans skipped for: {', '.join(parans.skipped_planets)}")

    with _stage(timings, "zenith_and_scoring"):
        zenith_lines = calculate_all_zenith_lines(declinations, cfg.zenith_orb)
        overlaps = find_zenith_overlaps(declinations, w, cfg.zenith_orb)
        optimal = find_optimal_latitudes(declinations, w)
        bands = generate_search_bands(declinations, parans, w)
    check_deadline(deadline)

    with _stage(timings, "dignities"):
        sect, sect_source = _sect(positions, equatorial, gmst, observer, ascendant)
        dignities = calculate_all_dignities(
            {p: pos.longitude for p, pos in positions.items()}, is_day=(sect == "day"),
        )

    log.debug("analysis jd=%.6f: %d lines, %d parans", jd, len(acg_lines), len(parans.points))

    return {
        "positions": {p: pos.to_dict() for p, pos in positions.items()},
        "equatorial": {p: eq.to_dict() for p, eq in equatorial.items()},
        "declinations": declinations,
        "speeds": {p: s.to_dict() for p, s in speeds.items()},
        "oob": {p: s.to_dict() for p, s in oob.items()},
        "acg_lines": [ln.to_dict() for ln in acg_lines],
        "parans": parans.to_dict(),
        "zenith_lines": [z.to_dict() for z in zenith_lines],
        "overlaps": [o.to_dict() for o in overlaps],
        "optimal_latitudes": optimal,
        "search_bands": {
            "bands": bands["bands"],
            "paran_latitudes": [
                {"latitude": e["latitude"], "parans": [x.to_dict() for x in e["parans"]]}
                for e in bands["paran_latitudes"]
            ],
            "optimal_latitudes": bands["optimal_latitudes"],
        },
        "dignities": {
            p: {"total": s.total, "indicator": summary_indicator(s), "breakdown": list(s.breakdown)}
            for p, s in dignities.items()
        },
        "sect": sect,
        "meta": {
            "version": VERSION,
            "jd": jd,
            "weights": w,
            "obliquity": obliquity,
            "obliquity_source": obliquity_source,
            "sect_source": sect_source,
            "sidereal_time": gmst,
            "kernel": getattr(adapter, "kernel_name", None),
            "observer": None if observer is None else {
                "latitude": observer.latitude,
                "longitude": observer.longitude,
                "elevation_m": observer.elevation_m,
            },
            "timings_ms": timings,
        },
        "warnings": warnings,
    }


def run_cached_analysis(
    cache: Any,
    key: str,
    compute: Callable[[], Dict[str, Any]],
    ttl: Optional[float] = None,
) -> Dict[str, Any]:
    """Read-through cache over any object with get(key) / set(key, value, ttl)."""
    hit = cache.get(key)
    if hit is not None:
        metrics.inc("astromap_cache_requests_total", 1.0, {"result": "hit"})
        return hit
    metrics.inc("astromap_cache_requests_total", 1.0, {"result": "miss"})
    value = compute()
    cache.set(key, value, CFG.cache_ttl_seconds if ttl is None else ttl)
    return value


def analyze_birth(
    birth_date: str,
    birth_time: str,
    timezone: str,
    weights: Optional[Mapping[str, Any]],
    adapter: Any = None,
    cache: Any = None,
    cfg: SolverConfig = CFG,
    deadline: Optional[Deadline] = None,
    observer: Optional[Observer] = None,
    ascendant: Optional[float] = None,
) -> Dict[str, Any]:
    """Civil birth data → full analysis, optionally through a cache."""
    jd = date_to_julian_day(birth_date, birth_time, timezone)
    adapter = adapter if adapter is not None else get_default_adapter()

    def compute() -> Dict[str, Any]:
        return run_full_analysis(adapter, jd, weights, cfg, deadline, observer, ascendant=ascendant)

    if cache is None:
        return compute()
    # topocentric results depend on the observer, so they bypass the shared key
    if observer is not None:
        return compute()
    return run_cached_analysis(cache, analysis_cache_key(birth_date, birth_time, timezone, weights, cfg, ascendant), compute, cfg.cache_ttl_seconds)
