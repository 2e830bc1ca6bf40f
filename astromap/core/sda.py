# astromap/core/sda.py
# -*- coding: utf-8 -*-
"""
Semi-diurnal arc (SDA): rise/set hour angles and circumpolar status.

Public API
----------
calculate_sda(lat, dec)                    -> SDAResult
get_circumpolar_latitude(dec)              -> dict
get_rise_set_latitude_range(dec)           -> (min_lat, max_lat)
get_diurnal_arc_hours(lat, dec)            -> float | "always_up" | "always_down"
get_nocturnal_arc_hours(lat, dec)          -> float | "always_up" | "always_down"
hour_angle_at_altitude(lat, dec, alt)      -> float | None

Geometry
--------
cos(SDA) = −tan(φ)·tan(δ). Outside [-1, 1] the body never crosses the
horizon: cos < −1 → never sets (SDA = 180), cos > +1 → never rises (SDA = 0).

At the poles (|φ| ≥ POLE_LATITUDE) the horizon is the celestial equator:
δ > 0 never sets, δ < 0 never rises, and δ = 0 is treated as never rising
(the body grazes the horizon; no crossing is defined).

These are sentinels, not errors: callers in the hot paran loop branch on
`never_rises`/`never_sets` or on a None hour angle.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple, Union
import math

from astromap.core.astromath import clamp, to_degrees, to_radians
from astromap.core.constants import EPSILON, POLE_LATITUDE
from astromap.core.validators import require_finite, require_latitude

__all__ = [
    "SDAResult", "ALWAYS_UP", "ALWAYS_DOWN",
    "calculate_sda", "get_circumpolar_latitude", "get_rise_set_latitude_range",
    "get_diurnal_arc_hours", "get_nocturnal_arc_hours", "hour_angle_at_altitude",
]

ALWAYS_UP = "always_up"
ALWAYS_DOWN = "always_down"

ArcHours = Union[float, str]


@dataclass(frozen=True)
class SDAResult:
    sda: float                  # degrees, [0, 180]
    rise_ha: Optional[float]    # −sda, None when the body does not rise/set
    set_ha: Optional[float]     # +sda, None when the body does not rise/set
    never_rises: bool
    never_sets: bool

    @property
    def crosses_horizon(self) -> bool:
        return not (self.never_rises or self.never_sets)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_NEVER_SETS = SDAResult(sda=180.0, rise_ha=None, set_ha=None, never_rises=False, never_sets=True)
_NEVER_RISES = SDAResult(sda=0.0, rise_ha=None, set_ha=None, never_rises=True, never_sets=False)


def calculate_sda(lat: float, dec: float) -> SDAResult:
    lat = require_latitude(lat)
    dec = require_finite("declination", dec)

    if abs(lat) >= POLE_LATITUDE:
        return _NEVER_SETS if lat * dec > 0.0 else _NEVER_RISES

    cos_h = -math.tan(to_radians(lat)) * math.tan(to_radians(dec))
    if cos_h < -1.0 + EPSILON:
        return _NEVER_SETS
    if cos_h > 1.0 - EPSILON:
        return _NEVER_RISES

    sda = to_degrees(math.acos(cos_h))
    return SDAResult(sda=sda, rise_ha=-sda, set_ha=sda, never_rises=False, never_sets=False)


def get_circumpolar_latitude(dec: float) -> Dict[str, Any]:
    """
    Latitude thresholds for a declination: north of `never_sets_above` the body
    is circumpolar (for δ>0), beyond `never_rises_above` it stays below the
    horizon. For δ<0 the hemispheres swap and the thresholds carry the sign.
    """
    dec = require_finite("declination", dec)
    limit = 90.0 - abs(dec)
    sign = 1.0 if dec >= 0.0 else -1.0
    return {
        "never_sets_above": sign * limit,
        "never_rises_above": -sign * limit,
        "can_be_circumpolar": abs(dec) > EPSILON,
    }


def get_rise_set_latitude_range(dec: float) -> Tuple[float, float]:
    """Latitudes (min, max) within which the body both rises and sets."""
    dec = require_finite("declination", dec)
    limit = 90.0 - abs(dec)
    return -limit, limit


def get_diurnal_arc_hours(lat: float, dec: float) -> ArcHours:
    r = calculate_sda(lat, dec)
    if r.never_sets:
        return ALWAYS_UP
    if r.never_rises:
        return ALWAYS_DOWN
    return 2.0 * r.sda / 15.0


def get_nocturnal_arc_hours(lat: float, dec: float) -> ArcHours:
    diurnal = get_diurnal_arc_hours(lat, dec)
    if diurnal == ALWAYS_UP:
        return ALWAYS_DOWN
    if diurnal == ALWAYS_DOWN:
        return ALWAYS_UP
    return 24.0 - float(diurnal)


def hour_angle_at_altitude(lat: float, dec: float, alt: float) -> Optional[float]:
    """
    Hour angle (deg, [0,180]) at which the body reaches altitude `alt`.
    cos(H) = (sin(alt) − sinδ·sinφ) / (cosδ·cosφ); None when unreachable or at a pole.
    """
    phi = to_radians(require_latitude(lat))
    delta = to_radians(require_finite("declination", dec))
    h = to_radians(require_finite("altitude", alt))

    denom = math.cos(delta) * math.cos(phi)
    if abs(denom) < EPSILON:
        return None
    cos_h = (math.sin(h) - math.sin(delta) * math.sin(phi)) / denom
    if cos_h < -1.0 - EPSILON or cos_h > 1.0 + EPSILON:
        return None
    return to_degrees(math.acos(clamp(cos_h, -1.0, 1.0)))
