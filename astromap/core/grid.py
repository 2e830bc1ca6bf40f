# astromap/core/grid.py
# -*- coding: utf-8 -*-
"""
Scoring grid (heatmap)

generate_scoring_grid(declinations, weights, acg_lines, parans, options) -> [GridCell]
get_top_locations(grid, top_n=10)
filter_grid_by_factor(grid, factor) / filter_grid_by_planet(grid, planet)
get_grid_statistics(grid) -> dict

Each cell combines the latitude-only zenith and paran scores with the
(lat, lon) ACG proximity score. `dominant_factor` is "mixed" when no factor
scores or when the top score is shared.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from astromap.core.acg import ACGLine
from astromap.core.astromath import latitude_samples, normalize_degrees
from astromap.core.paran import ParanPoint
from astromap.core.scoring import score_latitude, score_location_for_acg, score_paran_proximity
from astromap.core.validators import InvalidInputError, _err

log = logging.getLogger(__name__)

__all__ = [
    "GridCell", "GridOptions", "DOMINANT_FACTORS",
    "generate_scoring_grid", "get_top_locations",
    "filter_grid_by_factor", "filter_grid_by_planet", "get_grid_statistics",
]

DOMINANT_FACTORS = ("zenith", "acg", "paran", "mixed")


@dataclass(frozen=True)
class GridOptions:
    lat_step: float = 5.0
    lon_step: float = 10.0
    lat_min: float = -85.0
    lat_max: float = 85.0
    lon_min: float = -180.0
    lon_max: float = 180.0
    acg_orb: float = 2.0
    paran_orb: float = 1.0


@dataclass(frozen=True)
class GridCell:
    latitude: float
    longitude: float
    score: float
    zenith_contribution: float
    acg_contribution: float
    paran_contribution: float
    dominant_factor: str
    dominant_planet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _dominant_factor(zenith: float, acg: float, paran: float) -> str:
    top = max(zenith, acg, paran)
    if top == 0 or [zenith, acg, paran].count(top) > 1:
        return "mixed"
    if zenith == top:
        return "zenith"
    return "acg" if acg == top else "paran"


def _dominant_paran_planet(lat: float, parans: Sequence[ParanPoint], weights: Mapping[str, float], orb: float) -> Optional[str]:
    if not parans:
        return None
    best, best_c = parans[0], 0.0
    for x in parans:
        d = abs(lat - x.latitude)
        if d > orb:
            continue
        w1 = float(weights.get(x.planet1, 0.0))
        w2 = float(weights.get(x.planet2, 0.0))
        c = (1.0 - d / orb) * ((w1 + w2) / 2.0) * x.strength
        if c > best_c:
            best, best_c = x, c
    w1 = float(weights.get(best.planet1, 0.0))
    w2 = float(weights.get(best.planet2, 0.0))
    return best.planet1 if w1 >= w2 else best.planet2


def generate_scoring_grid(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    acg_lines: Sequence[ACGLine] = (),
    parans: Sequence[ParanPoint] = (),
    options: Optional[GridOptions] = None,
) -> List[GridCell]:
    opt = options or GridOptions()
    if opt.acg_orb <= 0 or opt.paran_orb <= 0:
        raise InvalidInputError([_err(["options"], "orbs must be > 0", "value_error")])

    lats = latitude_samples(opt.lat_min, opt.lat_max, opt.lat_step)
    lons = latitude_samples(opt.lon_min, opt.lon_max, opt.lon_step)
    if len(lons) > 1 and normalize_degrees(lons[-1] - lons[0]) == 0.0:
        # first and last column are the same meridian
        lons = lons[:-1]
    log.debug("scoring grid %dx%d", len(lats), len(lons))

    grid: List[GridCell] = []
    for lat in lats:
        # zenith and paran terms depend on latitude only
        zen = score_latitude(lat, declinations, weights)
        par = score_paran_proximity(lat, parans, weights, opt.paran_orb)
        for lon in lons:
            acg = score_location_for_acg(lat, lon, acg_lines, weights, opt.acg_orb)
            factor = _dominant_factor(zen["score"], acg["score"], par)

            planet: Optional[str] = None
            if factor == "zenith" and zen["contributions"]:
                planet = zen["contributions"][0]["planet"]
            elif factor == "acg":
                planet = acg["dominant_planet"]
            elif factor == "paran":
                planet = _dominant_paran_planet(lat, parans, weights, opt.paran_orb)

            grid.append(GridCell(
                latitude=lat,
                longitude=lon,
                score=zen["score"] + acg["score"] + par,
                zenith_contribution=zen["score"],
                acg_contribution=acg["score"],
                paran_contribution=par,
                dominant_factor=factor,
                dominant_planet=planet,
            ))
    return grid


def get_top_locations(grid: Sequence[GridCell], top_n: int = 10) -> List[GridCell]:
    return sorted(grid, key=lambda c: -c.score)[: max(0, int(top_n))]


def filter_grid_by_factor(grid: Sequence[GridCell], factor: str) -> List[GridCell]:
    if factor not in DOMINANT_FACTORS:
        raise InvalidInputError([_err(["factor"], f"unknown factor {factor!r}", "value_error")])
    return [c for c in grid if c.dominant_factor == factor]


def filter_grid_by_planet(grid: Sequence[GridCell], planet: str) -> List[GridCell]:
    return [c for c in grid if c.dominant_planet == planet]


def get_grid_statistics(grid: Sequence[GridCell]) -> Dict[str, Any]:
    counts = {f: 0 for f in DOMINANT_FACTORS}
    if not grid:
        return {"total_cells": 0, "avg_score": 0.0, "max_score": 0.0, "min_score": 0.0, "by_factor": counts}
    scores = [c.score for c in grid]
    for c in grid:
        counts[c.dominant_factor] += 1
    return {
        "total_cells": len(grid),
        "avg_score": sum(scores) / len(scores),
        "max_score": max(scores),
        "min_score": min(scores),
        "by_factor": counts,
    }
