# astromap/core/motion.py
# -*- coding: utf-8 -*-
"""
Apparent motion: numeric speeds, retrograde/stationary flags, station search.

Public API
----------
make_position_sampler(adapter, cfg=CFG, observer=None) -> Sampler
calculate_planet_speeds(get_positions, jd, step=None, cfg=CFG) -> {planet: PlanetSpeed}
calculate_single_planet_speed(get_positions, planet, jd, step=None, cfg=CFG) -> PlanetSpeed
find_next_retrograde_station(get_positions, planet, jd, max_days=730, cfg=CFG) -> float | None
find_next_direct_station(get_positions, planet, jd, max_days=365, cfg=CFG) -> float | None
can_go_retrograde(planet) -> bool
format_speed(speed) -> str

A sampler is a callable jd -> {planet: MotionSample}. Speeds are central
differences over ±step days; longitude differences are unwrapped across
0°/360° before dividing. Station searches step forward one day at a time,
then bisect the bracketing day (20 halvings ≈ 0.1 s resolution).
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Iterable, Mapping, Optional
import logging

from astromap.core.astromath import angle_difference, bisection_solve
from astromap.core.constants import CFG, EPSILON, NEVER_RETROGRADE, PLANET_IDS, SolverConfig
from astromap.core.ephemeris_adapter import Observer
from astromap.core.positions import calculate_all_positions, resolve_obliquity
from astromap.core.transforms import ecliptic_to_equatorial
from astromap.core.validators import InvalidInputError, require_finite, require_planet

log = logging.getLogger(__name__)

__all__ = [
    "MotionSample", "PlanetSpeed", "Sampler",
    "make_position_sampler",
    "calculate_planet_speeds", "calculate_single_planet_speed",
    "find_next_retrograde_station", "find_next_direct_station",
    "can_go_retrograde", "format_speed",
]

_STATION_BISECTIONS = 20


@dataclass(frozen=True)
class MotionSample:
    longitude: float
    declination: float


Sampler = Callable[[float], Mapping[str, MotionSample]]


@dataclass(frozen=True)
class PlanetSpeed:
    planet: str
    longitude_speed: float    # deg/day
    declination_speed: float  # deg/day
    is_retrograde: bool
    is_stationary: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def make_position_sampler(
    adapter: Any,
    cfg: SolverConfig = CFG,
    observer: Optional[Observer] = None,
    planets: Iterable[str] = PLANET_IDS,
) -> Sampler:
    """Sampler backed by the ephemeris: ecliptic longitude + declination of date."""
    planets = tuple(planets)

    def _sample(jd: float) -> Dict[str, MotionSample]:
        positions = calculate_all_positions(adapter, jd, observer, planets)
        obliquity, _ = resolve_obliquity(adapter, jd, cfg)
        return {
            p: MotionSample(pos.longitude, ecliptic_to_equatorial(pos.longitude, pos.latitude, obliquity).declination)
            for p, pos in positions.items()
        }
    return _sample


def _speed_from(planet: str, before: MotionSample, after: MotionSample, step: float, cfg: SolverConfig) -> PlanetSpeed:
    lon_speed = angle_difference(after.longitude, before.longitude) / (2.0 * step)
    dec_speed = (after.declination - before.declination) / (2.0 * step)
    return PlanetSpeed(
        planet=planet,
        longitude_speed=lon_speed,
        declination_speed=dec_speed,
        is_retrograde=lon_speed < -EPSILON,
        is_stationary=abs(lon_speed) < cfg.stationary_threshold(planet),
    )


def _step(step: Optional[float], cfg: SolverConfig) -> float:
    h = require_finite("step", cfg.speed_step_days if step is None else step)
    if h <= 0.0:
        raise InvalidInputError({"loc": ["step"], "msg": f"step must be > 0, got {h}", "type": "value_error"})
    return h


def calculate_planet_speeds(
    get_positions: Sampler,
    jd: float,
    step: Optional[float] = None,
    cfg: SolverConfig = CFG,
) -> Dict[str, PlanetSpeed]:
    jd = require_finite("jd", jd)
    h = _step(step, cfg)
    before = get_positions(jd - h)
    after = get_positions(jd + h)
    return {
        p: _speed_from(p, before[p], after[p], h, cfg)
        for p in PLANET_IDS
        if p in before and p in after
    }


def calculate_single_planet_speed(
    get_positions: Sampler,
    planet: str,
    jd: float,
    step: Optional[float] = None,
    cfg: SolverConfig = CFG,
) -> PlanetSpeed:
    planet = require_planet(planet)
    jd = require_finite("jd", jd)
    h = _step(step, cfg)
    return _speed_from(planet, get_positions(jd - h)[planet], get_positions(jd + h)[planet], h, cfg)


def can_go_retrograde(planet: str) -> bool:
    return require_planet(planet) not in NEVER_RETROGRADE


# ── station search ────────────────────────────────────────────────────────────
def _find_station(
    get_positions: Sampler, planet: str, jd: float, max_days: int, *, to_retrograde: bool, cfg: SolverConfig = CFG,
) -> Optional[float]:
    planet = require_planet(planet)
    jd = require_finite("jd", jd)
    if not can_go_retrograde(planet):
        return None

    def speed(t: float) -> float:
        return calculate_single_planet_speed(get_positions, planet, t, cfg=cfg).longitude_speed

    prev_jd, prev = jd, speed(jd)
    for i in range(1, int(max_days) + 1):
        cur_jd = jd + i
        cur = speed(cur_jd)
        crossed = (prev > 0.0 and cur <= 0.0) if to_retrograde else (prev < 0.0 and cur >= 0.0)
        if crossed:
            res = bisection_solve(speed, prev_jd, cur_jd, tol=1e-9, max_iter=_STATION_BISECTIONS, fa=prev, fb=cur)
            if res.root is None:
                return 0.5 * (prev_jd + cur_jd)
            return res.root
        prev_jd, prev = cur_jd, cur
    log.debug("no %s station for %s within %d days", "retrograde" if to_retrograde else "direct", planet, max_days)
    return None


def find_next_retrograde_station(
    get_positions: Sampler, planet: str, jd: float, max_days: int = 730, cfg: SolverConfig = CFG,
) -> Optional[float]:
    """JD where longitude speed turns negative; None for Sun/Moon or when not found."""
    return _find_station(get_positions, planet, jd, max_days, to_retrograde=True, cfg=cfg)


def find_next_direct_station(
    get_positions: Sampler, planet: str, jd: float, max_days: int = 365, cfg: SolverConfig = CFG,
) -> Optional[float]:
    """JD where longitude speed turns positive; None for Sun/Moon or when not found."""
    return _find_station(get_positions, planet, jd, max_days, to_retrograde=False, cfg=cfg)


def format_speed(speed: PlanetSpeed) -> str:
    sign = "+" if speed.longitude_speed >= 0 else ""
    retro = "R " if speed.is_retrograde else ""
    stat = " (Sta)" if speed.is_stationary else ""
    return f"{retro}{sign}{speed.longitude_speed:.2f}°/day{stat}"
