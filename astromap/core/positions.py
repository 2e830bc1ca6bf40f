# astromap/core/positions.py
# -*- coding: utf-8 -*-
"""
Planet positions, obliquity resolution and declinations.

Public API
----------
calculate_all_positions(adapter, jd, observer=None, planets=PLANET_IDS)
    -> {planet: EclipticPosition}
resolve_obliquity(adapter, jd, cfg=CFG) -> (obliquity_deg, source)
calculate_equatorial_positions(positions, obliquity) -> {planet: EquatorialCoordinates}
calculate_declinations(adapter, jd, cfg=CFG, observer=None) -> {planet: declination}

Notes
-----
- `adapter` is any object exposing body_position / true_obliquity /
  mean_obliquity / sidereal_time_degrees (see ephemeris_adapter.SkyfieldEphemeris).
- Obliquity source is "true" (ephemeris, with nutation) unless the adapter
  fails AND cfg.use_approximate_obliquity is set, in which case the linear
  mean-obliquity model is used and the source is "approximate".
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Optional, Tuple
import logging

from astromap.core.constants import CFG, PLANET_IDS, SolverConfig
from astromap.core.ephemeris_adapter import (
    EclipticPosition,
    EphemerisError,
    Observer,
    approximate_mean_obliquity,
)
from astromap.core.transforms import EquatorialCoordinates, ecliptic_to_equatorial
from astromap.core.validators import require_finite, require_planet

log = logging.getLogger(__name__)

__all__ = [
    "calculate_all_positions",
    "resolve_obliquity",
    "calculate_equatorial_positions",
    "calculate_declinations",
]

OBLIQUITY_TRUE = "true"
OBLIQUITY_APPROXIMATE = "approximate"


def calculate_all_positions(
    adapter: Any,
    jd: float,
    observer: Optional[Observer] = None,
    planets: Iterable[str] = PLANET_IDS,
) -> Dict[str, EclipticPosition]:
    """One adapter call per planet; EphemerisError propagates unchanged."""
    jd = require_finite("jd", jd)
    out: Dict[str, EclipticPosition] = {}
    for p in planets:
        p = require_planet(p)
        out[p] = adapter.body_position(jd, p, observer)
    return out


def resolve_obliquity(adapter: Any, jd: float, cfg: SolverConfig = CFG) -> Tuple[float, str]:
    jd = require_finite("jd", jd)
    if adapter is not None:
        try:
            return float(adapter.true_obliquity(jd)), OBLIQUITY_TRUE
        except EphemerisError as e:
            if not cfg.use_approximate_obliquity:
                raise
            log.warning("true obliquity unavailable (%s); using approximate mean obliquity", e)
    elif not cfg.use_approximate_obliquity:
        raise EphemerisError("obliquity", "No ephemeris adapter and approximate obliquity not enabled")
    return approximate_mean_obliquity(jd), OBLIQUITY_APPROXIMATE


def calculate_equatorial_positions(
    positions: Dict[str, EclipticPosition],
    obliquity: float,
) -> Dict[str, EquatorialCoordinates]:
    return {
        p: ecliptic_to_equatorial(pos.longitude, pos.latitude, obliquity)
        for p, pos in positions.items()
    }


def calculate_declinations(
    adapter: Any,
    jd: float,
    cfg: SolverConfig = CFG,
    observer: Optional[Observer] = None,
) -> Dict[str, float]:
    positions = calculate_all_positions(adapter, jd, observer)
    obliquity, _source = resolve_obliquity(adapter, jd, cfg)
    return {p: eq.declination for p, eq in calculate_equatorial_positions(positions, obliquity).items()}
