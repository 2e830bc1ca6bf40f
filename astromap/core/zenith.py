# astromap/core/zenith.py
# -*- coding: utf-8 -*-
"""
Zenith lines & bands

A planet passes through the zenith on the parallel whose latitude equals its
declination. The band widens that parallel by ± orb.

Public API
----------
calculate_zenith_line(planet, declination, orb=CFG.zenith_orb)   -> ZenithLine
calculate_all_zenith_lines(declinations, orb)                    -> [ZenithLine]
calculate_zenith_bands(declinations, weights, orb)               -> [ZenithBand]
score_latitude_for_zenith(latitude, zenith_lines, weights, sigma) -> dict
find_optimal_zenith_latitudes(declinations, weights, top_n=10, step=0.5) -> [dict]
find_zenith_overlaps(declinations, weights, orb)                  -> [ZenithOverlap]
generate_zenith_band_points(line, longitude_step=5)               -> [(lat, lon)]
get_zenith_band_intensity(line, weights, max_weight=10)           -> [0, 1]
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from astromap.core.astromath import clamp, gaussian, latitude_samples
from astromap.core.constants import CFG, PLANET_IDS
from astromap.core.validators import require_finite, require_planet

__all__ = [
    "ZenithLine", "ZenithBand", "ZenithOverlap",
    "calculate_zenith_line", "calculate_all_zenith_lines", "calculate_zenith_bands",
    "score_latitude_for_zenith", "find_optimal_zenith_latitudes", "find_zenith_overlaps",
    "generate_zenith_band_points", "get_zenith_band_intensity",
]


@dataclass(frozen=True)
class ZenithLine:
    planet: str
    latitude: float  # = declination at epoch
    orb_min: float
    orb_max: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ZenithBand:
    planet: str
    center_latitude: float
    min_latitude: float
    max_latitude: float
    orb: float
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ZenithOverlap:
    latitude: float
    planets: Tuple[str, ...]
    combined_weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {"latitude": self.latitude, "planets": list(self.planets), "combined_weight": self.combined_weight}


def calculate_zenith_line(planet: str, declination: float, orb: Optional[float] = None) -> ZenithLine:
    orb = CFG.zenith_orb if orb is None else require_finite("orb", orb)
    dec = require_finite("declination", declination)
    return ZenithLine(planet=require_planet(planet), latitude=dec, orb_min=dec - orb, orb_max=dec + orb)


def calculate_all_zenith_lines(declinations: Mapping[str, float], orb: Optional[float] = None) -> List[ZenithLine]:
    return [calculate_zenith_line(p, declinations[p], orb) for p in PLANET_IDS if p in declinations]


def calculate_zenith_bands(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    orb: Optional[float] = None,
) -> List[ZenithBand]:
    orb = CFG.zenith_orb if orb is None else require_finite("orb", orb)
    bands: List[ZenithBand] = []
    for p in PLANET_IDS:
        if p not in declinations:
            continue
        dec = require_finite("declination", declinations[p])
        bands.append(ZenithBand(p, dec, dec - orb, dec + orb, orb, float(weights.get(p, 0.0))))
    return bands


def score_latitude_for_zenith(
    latitude: float,
    zenith_lines: List[ZenithLine],
    weights: Mapping[str, float],
    sigma: Optional[float] = None,
) -> Dict[str, Any]:
    """Raw weighted Gaussian sum; contributions sorted highest first."""
    sigma = CFG.declination_sigma if sigma is None else sigma
    lat = require_finite("latitude", latitude)
    contributions = []
    total = 0.0
    for z in zenith_lines:
        distance = abs(lat - z.latitude)
        c = float(weights.get(z.planet, 0.0)) * gaussian(distance, 0.0, sigma)
        contributions.append({"planet": z.planet, "distance": distance, "contribution": c})
        total += c
    contributions.sort(key=lambda c: -c["contribution"])
    return {"latitude": lat, "total_score": total, "contributions": contributions}


def find_optimal_zenith_latitudes(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    top_n: int = 10,
    step: float = 0.5,
) -> List[Dict[str, Any]]:
    lines = calculate_all_zenith_lines(declinations)
    limit = CFG.optimal_latitude_limit
    scores = [score_latitude_for_zenith(lat, lines, weights) for lat in latitude_samples(-limit, limit, step)]
    # stable sort keeps the southern-most of equal scores first
    scores.sort(key=lambda s: -s["total_score"])
    return scores[: max(0, int(top_n))]


def find_zenith_overlaps(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    orb: Optional[float] = None,
) -> List[ZenithOverlap]:
    """
    Latitudes where two or more weighted bands intersect. Each intersecting pair
    contributes its overlap midpoint; midpoints within `orb` of an existing
    cluster join it (planets counted once).
    """
    orb = CFG.zenith_orb if orb is None else require_finite("orb", orb)
    active = [b for b in calculate_zenith_bands(declinations, weights, orb) if b.weight > 0.0]

    clusters: List[Dict[str, Any]] = []
    for i in range(len(active)):
        for j in range(i + 1, len(active)):
            b1, b2 = active[i], active[j]
            lo = max(b1.min_latitude, b2.min_latitude)
            hi = min(b1.max_latitude, b2.max_latitude)
            if lo > hi:
                continue
            center = (lo + hi) / 2.0
            hit = next((c for c in clusters if abs(c["latitude"] - center) < orb), None)
            if hit is None:
                clusters.append({"latitude": center, "planets": [b1.planet, b2.planet], "weight": b1.weight + b2.weight})
                continue
            for b in (b1, b2):
                if b.planet not in hit["planets"]:
                    hit["planets"].append(b.planet)
                    hit["weight"] += b.weight

    clusters.sort(key=lambda c: (-c["weight"], c["latitude"]))
    return [ZenithOverlap(c["latitude"], tuple(c["planets"]), c["weight"]) for c in clusters]


def generate_zenith_band_points(line: ZenithLine, longitude_step: float = 5.0) -> List[Tuple[float, float]]:
    return [(line.latitude, lon) for lon in latitude_samples(-180.0, 180.0, longitude_step)]


def get_zenith_band_intensity(line: ZenithLine, weights: Mapping[str, float], max_weight: float = 10.0) -> float:
    return clamp(float(weights.get(line.planet, 0.0)) / max_weight, 0.0, 1.0)
