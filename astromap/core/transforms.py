# astromap/core/transforms.py
# -*- coding: utf-8 -*-
"""
Coordinate transforms (ecliptic ↔ equatorial ↔ horizontal ↔ Cartesian)

Public API
----------
ecliptic_to_equatorial(lon, lat, obliquity)  -> EquatorialCoordinates
equatorial_to_ecliptic(ra, dec, obliquity)   -> (lon, lat)
geo_to_cartesian(lat, lon, r=1.0)            -> (x, y, z)
cartesian_to_geo(x, y, z)                    -> (lat, lon)
calculate_hour_angle(lst, ra)                -> (-180, 180]
equatorial_to_horizontal(ha, dec, lat)       -> (azimuth, altitude)
great_circle_distance(lat1, lon1, lat2, lon2)     -> radians
great_circle_distance_km(lat1, lon1, lat2, lon2)  -> km
gmst_degrees(jd_ut) / local_sidereal_time(gmst, lon)
longitude_for_mc(ra, gmst) / longitude_for_ic(ra, gmst)

Notes & Conventions
-------------------
- All angles in degrees. RA/azimuth/ecliptic longitude in [0, 360).
- Azimuth: North = 0°, East = 90°.
- Cartesian frame (rendering sphere): y is the polar axis; longitude 0
  lies on +x after the 180° rotation used by the globe texture.
- Every entry point validates its inputs as finite and raises
  InvalidInputError otherwise, so NaN never reaches a sign comparison.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple
import math

from astromap.core.astromath import (
    clamp,
    normalize_degrees,
    normalize_degrees_symmetric,
    to_degrees,
    to_radians,
)
from astromap.core.constants import DAYS_PER_CENTURY, EARTH_RADIUS_KM, J2000_JD
from astromap.core.validators import require_finite

__all__ = [
    "EquatorialCoordinates",
    "ecliptic_to_equatorial", "equatorial_to_ecliptic",
    "geo_to_cartesian", "cartesian_to_geo",
    "calculate_hour_angle", "equatorial_to_horizontal",
    "great_circle_distance", "great_circle_distance_km",
    "gmst_degrees", "local_sidereal_time", "longitude_for_mc", "longitude_for_ic",
]

GMST_RATE_DEG_PER_DAY = 360.98564736629  # mean sidereal rate


@dataclass(frozen=True)
class EquatorialCoordinates:
    right_ascension: float  # [0, 360)
    declination: float      # [-90, 90]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── ecliptic ↔ equatorial ─────────────────────────────────────────────────────
def ecliptic_to_equatorial(lon: float, lat: float, obliquity: float) -> EquatorialCoordinates:
    """Ecliptic (λ,β) → Equatorial (α,δ), degrees."""
    lam = to_radians(require_finite("longitude", lon))
    beta = to_radians(require_finite("latitude", lat))
    eps = to_radians(require_finite("obliquity", obliquity))

    s = math.sin(beta) * math.cos(eps) + math.cos(beta) * math.sin(eps) * math.sin(lam)
    dec = to_degrees(math.asin(clamp(s, -1.0, 1.0)))

    y = math.sin(lam) * math.cos(eps) - math.tan(beta) * math.sin(eps)
    x = math.cos(lam)
    ra = normalize_degrees(to_degrees(math.atan2(y, x)))
    return EquatorialCoordinates(right_ascension=ra, declination=dec)


def equatorial_to_ecliptic(ra: float, dec: float, obliquity: float) -> Tuple[float, float]:
    """Equatorial (α,δ) → Ecliptic (λ,β), degrees."""
    alpha = to_radians(require_finite("right_ascension", ra))
    delta = to_radians(require_finite("declination", dec))
    eps = to_radians(require_finite("obliquity", obliquity))

    s = math.sin(delta) * math.cos(eps) - math.cos(delta) * math.sin(eps) * math.sin(alpha)
    beta = to_degrees(math.asin(clamp(s, -1.0, 1.0)))

    y = math.sin(alpha) * math.cos(eps) + math.tan(delta) * math.sin(eps)
    x = math.cos(alpha)
    lam = normalize_degrees(to_degrees(math.atan2(y, x)))
    return lam, beta


# ── geodetic ↔ cartesian ──────────────────────────────────────────────────────
def geo_to_cartesian(lat: float, lon: float, r: float = 1.0) -> Tuple[float, float, float]:
    lat = require_finite("latitude", lat)
    lon = require_finite("longitude", lon)
    r = require_finite("radius", r)
    phi = to_radians(90.0 - lat)
    theta = to_radians(lon + 180.0)
    x = -r * math.sin(phi) * math.cos(theta)
    z = r * math.sin(phi) * math.sin(theta)
    y = r * math.cos(phi)
    return x, y, z


def cartesian_to_geo(x: float, y: float, z: float) -> Tuple[float, float]:
    x = require_finite("x", x)
    y = require_finite("y", y)
    z = require_finite("z", z)
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0.0:
        return 0.0, 0.0
    lat = to_degrees(math.asin(clamp(y / r, -1.0, 1.0)))
    lon = normalize_degrees_symmetric(to_degrees(math.atan2(z, -x)) - 180.0)
    return lat, lon


# ── hour angle & horizon ──────────────────────────────────────────────────────
def calculate_hour_angle(lst: float, ra: float) -> float:
    """HA = LST − RA wrapped to (-180, 180]; positive west of the meridian."""
    return normalize_degrees_symmetric(require_finite("lst", lst) - require_finite("right_ascension", ra))


def equatorial_to_horizontal(ha: float, dec: float, lat: float) -> Tuple[float, float]:
    """Return (azimuth[N→E], altitude) in degrees."""
    H = to_radians(require_finite("hour_angle", ha))
    delta = to_radians(require_finite("declination", dec))
    phi = to_radians(require_finite("latitude", lat))

    s = math.sin(delta) * math.sin(phi) + math.cos(delta) * math.cos(phi) * math.cos(H)
    alt = to_degrees(math.asin(clamp(s, -1.0, 1.0)))

    # atan2 gives azimuth from South; +180 moves the origin to North
    az = to_degrees(math.atan2(math.sin(H), math.cos(H) * math.sin(phi) - math.tan(delta) * math.cos(phi)))
    return normalize_degrees(az + 180.0), alt


# ── distances ─────────────────────────────────────────────────────────────────
def great_circle_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine central angle in radians."""
    p1 = to_radians(require_finite("lat1", lat1))
    p2 = to_radians(require_finite("lat2", lat2))
    dphi = p2 - p1
    dlam = to_radians(require_finite("lon2", lon2) - require_finite("lon1", lon1))
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlam / 2.0) ** 2
    return 2.0 * math.atan2(math.sqrt(clamp(a, 0.0, 1.0)), math.sqrt(clamp(1.0 - a, 0.0, 1.0)))


def great_circle_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return great_circle_distance(lat1, lon1, lat2, lon2) * EARTH_RADIUS_KM


# ── sidereal time ─────────────────────────────────────────────────────────────
def gmst_degrees(jd_ut: float) -> float:
    """Greenwich mean sidereal time (Meeus 12.4), degrees in [0, 360)."""
    d = require_finite("jd", jd_ut) - J2000_JD
    T = d / DAYS_PER_CENTURY
    gmst = 280.46061837 + GMST_RATE_DEG_PER_DAY * d + 0.000387933 * (T * T) - (T * T * T) / 38710000.0
    return normalize_degrees(gmst)


def local_sidereal_time(gmst: float, longitude: float) -> float:
    return normalize_degrees(require_finite("gmst", gmst) + require_finite("longitude", longitude))


def longitude_for_mc(ra: float, gmst: float) -> float:
    """Geographic longitude where a body of right ascension `ra` culminates."""
    return normalize_degrees_symmetric(require_finite("right_ascension", ra) - require_finite("gmst", gmst))


def longitude_for_ic(ra: float, gmst: float) -> float:
    return normalize_degrees_symmetric(longitude_for_mc(ra, gmst) + 180.0)
