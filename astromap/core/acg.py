# astromap/core/acg.py
# -*- coding: utf-8 -*-
"""
Astrocartography (ACG) lines

Public API
----------
calculate_acg_line(planet, equatorial, gmst, line_type, cfg=CFG, deadline=None) -> ACGLine
calculate_planet_acg_lines(planet, equatorial, gmst, cfg=CFG, deadline=None)  -> [MC, IC, ASC, DSC]
calculate_all_acg_lines(equatorial_by_planet, gmst, cfg=CFG, executor=None, deadline=None)
    -> 40 lines in PLANET_IDS × (MC, IC, ASC, DSC) order
find_acg_lines_near_location(lat, lon, lines, orb=2.0) -> [(line, min_distance)]
filter_lines_by_type(lines, line_type) / filter_lines_by_planet(lines, planet)
find_acg_line_intersections(line1, line2, tolerance=1.0) -> [(lat, lon)]
get_acg_line_name(line) / is_acg_line_dashed(line_type)

Geometry
--------
- MC:  longitude = RA − GMST (constant along the meridian); IC = MC + 180.
- ASC: longitude = RA − GMST + rise_ha(φ) where rise_ha = −SDA(φ, δ).
- DSC: longitude = RA − GMST + set_ha(φ)  where set_ha  = +SDA(φ, δ).
Latitudes where the body never rises/sets are skipped; a line with no
valid latitude at all is flagged `is_circumpolar`.

Points are emitted in ascending latitude. Consumers that draw polylines use
ACGLine.segments(), which splits wherever consecutive longitudes jump by
more than 180° (date-line wrap).
"""

from __future__ import annotations
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from astromap.core.astromath import latitude_samples, normalize_degrees_symmetric
from astromap.core.constants import CFG, PLANET_IDS, PLANET_NAMES, SolverConfig
from astromap.core.deadline import Deadline, check_deadline
from astromap.core.sda import calculate_sda
from astromap.core.transforms import EquatorialCoordinates, longitude_for_ic, longitude_for_mc
from astromap.core.validators import require_finite, require_line_type, require_planet

__all__ = [
    "ACGLine",
    "calculate_acg_line", "calculate_planet_acg_lines", "calculate_all_acg_lines",
    "find_acg_lines_near_location", "filter_lines_by_type", "filter_lines_by_planet",
    "find_acg_line_intersections", "get_acg_line_name", "is_acg_line_dashed",
]

_LINE_ORDER: Tuple[str, ...] = ("MC", "IC", "ASC", "DSC")

Point = Tuple[float, float]  # (latitude, longitude)


@dataclass(frozen=True)
class ACGLine:
    planet: str
    line_type: str
    is_circumpolar: bool
    points: Tuple[Point, ...]

    def segments(self) -> List[List[Point]]:
        """Split the point run wherever |Δlon| > 180° between neighbours."""
        out: List[List[Point]] = []
        cur: List[Point] = []
        for pt in self.points:
            if cur and abs(pt[1] - cur[-1][1]) > 180.0:
                out.append(cur)
                cur = []
            cur.append(pt)
        if cur:
            out.append(cur)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "planet": self.planet,
            "line_type": self.line_type,
            "is_circumpolar": self.is_circumpolar,
            "points": [{"latitude": lat, "longitude": lon} for lat, lon in self.points],
        }


# ── solvers ───────────────────────────────────────────────────────────────────
def _meridian_line(planet: str, lon: float, line_type: str, cfg: SolverConfig) -> ACGLine:
    lats = latitude_samples(-cfg.acg_max_latitude, cfg.acg_max_latitude, cfg.acg_latitude_step)
    return ACGLine(planet, line_type, False, tuple((lat, lon) for lat in lats))


def _horizon_line(
    planet: str,
    eq: EquatorialCoordinates,
    gmst: float,
    line_type: str,
    cfg: SolverConfig,
    deadline: Optional[Deadline],
) -> ACGLine:
    base = eq.right_ascension - gmst
    pts: List[Point] = []
    for lat in latitude_samples(-cfg.acg_max_latitude, cfg.acg_max_latitude, cfg.acg_latitude_step):
        check_deadline(deadline)
        sda = calculate_sda(lat, eq.declination)
        ha = sda.rise_ha if line_type == "ASC" else sda.set_ha
        if ha is None:
            continue
        pts.append((lat, normalize_degrees_symmetric(base + ha)))
    return ACGLine(planet, line_type, not pts, tuple(pts))


def calculate_acg_line(
    planet: str,
    equatorial: EquatorialCoordinates,
    gmst: float,
    line_type: str,
    cfg: SolverConfig = CFG,
    deadline: Optional[Deadline] = None,
) -> ACGLine:
    planet = require_planet(planet)
    line_type = require_line_type(line_type)
    gmst = require_finite("gmst", gmst)
    require_finite("right_ascension", equatorial.right_ascension)
    require_finite("declination", equatorial.declination)

    if line_type == "MC":
        return _meridian_line(planet, longitude_for_mc(equatorial.right_ascension, gmst), "MC", cfg)
    if line_type == "IC":
        return _meridian_line(planet, longitude_for_ic(equatorial.right_ascension, gmst), "IC", cfg)
    return _horizon_line(planet, equatorial, gmst, line_type, cfg, deadline)


def calculate_planet_acg_lines(
    planet: str,
    equatorial: EquatorialCoordinates,
    gmst: float,
    cfg: SolverConfig = CFG,
    deadline: Optional[Deadline] = None,
) -> List[ACGLine]:
    return [calculate_acg_line(planet, equatorial, gmst, lt, cfg, deadline) for lt in _LINE_ORDER]


def calculate_all_acg_lines(
    equatorial_by_planet: Mapping[str, EquatorialCoordinates],
    gmst: float,
    cfg: SolverConfig = CFG,
    executor: Optional[Executor] = None,
    deadline: Optional[Deadline] = None,
) -> List[ACGLine]:
    """All lines for the planets present, in canonical planet order."""
    planets = [p for p in PLANET_IDS if p in equatorial_by_planet]
    if executor is None:
        per_planet = [calculate_planet_acg_lines(p, equatorial_by_planet[p], gmst, cfg, deadline) for p in planets]
    else:
        futures = [
            executor.submit(calculate_planet_acg_lines, p, equatorial_by_planet[p], gmst, cfg, deadline)
            for p in planets
        ]
        # result() in submission order keeps output deterministic
        try:
            per_planet = [f.result() for f in futures]
        except BaseException:
            for f in futures:
                f.cancel()
            raise
    return [line for lines in per_planet for line in lines]


# ── queries ───────────────────────────────────────────────────────────────────
def _flat_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    # planar degrees; fine at the orb scales used here
    dlat = lat1 - lat2
    dlon = normalize_degrees_symmetric(lon1 - lon2)
    return (dlat * dlat + dlon * dlon) ** 0.5


def find_acg_lines_near_location(
    latitude: float,
    longitude: float,
    lines: List[ACGLine],
    orb: float = 2.0,
) -> List[Tuple[ACGLine, float]]:
    latitude = require_finite("latitude", latitude)
    longitude = require_finite("longitude", longitude)
    hits: List[Tuple[ACGLine, float]] = []
    for line in lines:
        if not line.points:
            continue
        d = min(_flat_distance(lat, lon, latitude, longitude) for lat, lon in line.points)
        if d <= orb:
            hits.append((line, d))
    hits.sort(key=lambda h: h[1])
    return hits


def filter_lines_by_type(lines: List[ACGLine], line_type: str) -> List[ACGLine]:
    lt = require_line_type(line_type)
    return [ln for ln in lines if ln.line_type == lt]


def filter_lines_by_planet(lines: List[ACGLine], planet: str) -> List[ACGLine]:
    p = require_planet(planet)
    return [ln for ln in lines if ln.planet == p]


def find_acg_line_intersections(line1: ACGLine, line2: ACGLine, tolerance: float = 1.0) -> List[Point]:
    """Crossing points (averaged sample pairs within `tolerance`), de-duplicated."""
    found: List[Point] = []
    for lat1, lon1 in line1.points:
        for lat2, lon2 in line2.points:
            if abs(lat1 - lat2) < tolerance and abs(normalize_degrees_symmetric(lon1 - lon2)) < tolerance:
                mid_lon = normalize_degrees_symmetric(lon2 + normalize_degrees_symmetric(lon1 - lon2) / 2.0)
                found.append(((lat1 + lat2) / 2.0, mid_lon))

    unique: List[Point] = []
    for lat, lon in found:
        if not any(abs(u[0] - lat) < tolerance and abs(normalize_degrees_symmetric(u[1] - lon)) < tolerance for u in unique):
            unique.append((lat, lon))
    return unique


def get_acg_line_name(line: ACGLine) -> str:
    return f"{PLANET_NAMES[line.planet]} {line.line_type}"


def is_acg_line_dashed(line_type: str) -> bool:
    # meridian lines draw dashed, horizon lines solid
    return require_line_type(line_type) in ("MC", "IC")
