# astromap/core/constants.py
# -*- coding: utf-8 -*-
"""
astromap: core constants & solver configuration

Purpose
-------
Single source of truth for:
- planet ids, display names & canonical iteration order
- angular events, ACG line types and paran summary buckets
- astronomical constants (J2000, obliquity, Earth radius)
- per-planet stationary thresholds (speed engine)
- the frozen SolverConfig (env-driven defaults) used by every solver

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
- Constants are immutable by convention; SolverConfig is frozen, derive
  variants with dataclasses.replace().
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Literal, Tuple
import os

__all__ = [
    # planets
    "PlanetId", "PLANET_IDS", "PLANET_NAMES", "PLANET_INDEX",
    # events / lines
    "AngularEvent", "ANGULAR_EVENTS", "LineType", "LINE_TYPES", "PARAN_BUCKETS",
    # astronomy
    "J2000_JD", "DAYS_PER_CENTURY", "MEAN_OBLIQUITY_J2000", "OBLIQUITY_RATE_PER_CENTURY",
    "APPROX_OBLIQUITY", "EARTH_RADIUS_KM", "EPSILON", "POLE_LATITUDE",
    # motion
    "STATIONARY_THRESHOLDS", "NEVER_RETROGRADE",
    # config
    "SolverConfig", "CFG",
]

# ── planets ──────────────────────────────────────────────────────────────────
PlanetId = Literal[
    "sun", "moon", "mercury", "venus", "mars",
    "jupiter", "saturn", "uranus", "neptune", "pluto",
]

# Canonical order; paran pairs are always (PLANET_IDS[i], PLANET_IDS[j]) with i < j.
PLANET_IDS: Tuple[str, ...] = (
    "sun", "moon", "mercury", "venus", "mars",
    "jupiter", "saturn", "uranus", "neptune", "pluto",
)

PLANET_NAMES: Dict[str, str] = {p: p.capitalize() for p in PLANET_IDS}

PLANET_INDEX: Dict[str, int] = {p: i for i, p in enumerate(PLANET_IDS)}

# ── events & lines ───────────────────────────────────────────────────────────
AngularEvent = Literal["rise", "set", "culminate", "anti_culminate"]
ANGULAR_EVENTS: Tuple[str, ...] = ("rise", "set", "culminate", "anti_culminate")

LineType = Literal["ASC", "DSC", "MC", "IC"]
LINE_TYPES: Tuple[str, ...] = ("ASC", "DSC", "MC", "IC")

# Summary buckets for paran event pairs (anti_culminate folds into culminate).
PARAN_BUCKETS: Tuple[str, ...] = (
    "rise_rise", "rise_culminate", "rise_set",
    "culminate_culminate", "culminate_set", "set_set",
)

# ── astronomy ────────────────────────────────────────────────────────────────
J2000_JD: float = 2451545.0
DAYS_PER_CENTURY: float = 36525.0
MEAN_OBLIQUITY_J2000: float = 23.439291111
OBLIQUITY_RATE_PER_CENTURY: float = -0.0130042
APPROX_OBLIQUITY: float = 23.44
EARTH_RADIUS_KM: float = 6371.0

EPSILON: float = 1e-10
# |lat| at or above this is treated as the pole for horizon geometry
POLE_LATITUDE: float = 89.9

# ── motion ───────────────────────────────────────────────────────────────────
# |longitude speed| (deg/day) under which a planet counts as stationary.
# Slow outer planets get much tighter thresholds.
STATIONARY_THRESHOLDS: Dict[str, float] = {
    "sun": 0.1,
    "moon": 1.0,
    "mercury": 0.15,
    "venus": 0.1,
    "mars": 0.05,
    "jupiter": 0.02,
    "saturn": 0.01,
    "uranus": 0.005,
    "neptune": 0.003,
    "pluto": 0.002,
}

NEVER_RETROGRADE: Tuple[str, ...] = ("sun", "moon")


# ───────────────────────────── Config (single source) ─────────────────
def _bool_env(name: str, default: bool) -> bool:
    v = os.getenv(name, "")
    if v == "" or v is None:
        return default
    return str(v).strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _default_thresholds() -> Dict[str, float]:
    return dict(STATIONARY_THRESHOLDS)


@dataclass(frozen=True)
class SolverConfig:
    # Paran search
    paran_latitude_step: float = float(os.getenv("ACG_PARAN_LAT_STEP", "0.5"))
    paran_latitude_limit: float = float(os.getenv("ACG_PARAN_LAT_LIMIT", "89.0"))
    paran_bisection_tol: float = float(os.getenv("ACG_PARAN_BISECTION_TOL", "1e-6"))
    paran_max_iterations: int = int(os.getenv("ACG_PARAN_MAX_ITER", "50"))
    paran_max_residual: float = float(os.getenv("ACG_PARAN_MAX_RESIDUAL", "1.0"))  # deg of LST
    paran_strength_threshold: float = float(os.getenv("ACG_PARAN_STRENGTH_MIN", "0.5"))

    # ACG lines
    acg_latitude_step: float = float(os.getenv("ACG_LINE_LAT_STEP", "0.5"))
    acg_max_latitude: float = float(os.getenv("ACG_LINE_MAX_LAT", "89.5"))

    # Zenith / scoring
    zenith_orb: float = float(os.getenv("ACG_ZENITH_ORB", "1.0"))
    declination_sigma: float = float(os.getenv("ACG_DECLINATION_SIGMA", "3.0"))
    optimal_latitude_limit: float = float(os.getenv("ACG_OPTIMAL_LAT_LIMIT", "70.0"))

    # Speeds
    speed_step_days: float = float(os.getenv("ACG_SPEED_STEP_DAYS", "0.5"))
    stationary_thresholds: Dict[str, float] = field(default_factory=_default_thresholds)

    # Obliquity: constant fallback only when explicitly enabled
    use_approximate_obliquity: bool = _bool_env("ACG_USE_APPROX_OBLIQUITY", False)

    # Execution
    max_workers: int = int(os.getenv("ACG_MAX_WORKERS", str(min(8, os.cpu_count() or 1))))
    cache_ttl_seconds: float = float(os.getenv("ACG_CACHE_TTL_SEC", str(30 * 24 * 3600)))  # 30 days

    def stationary_threshold(self, planet: str) -> float:
        return float(self.stationary_thresholds.get(planet, 0.01))


CFG = SolverConfig()
