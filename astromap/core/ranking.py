# astromap/core/ranking.py
# -*- coding: utf-8 -*-
"""
City ranking with human-readable highlights.

Public API
----------
generate_highlights(city, declinations, weights, acg_lines, parans) -> [str]
rank_cities(cities, declinations, weights, acg_lines, parans, options) -> [RankedCity]
get_safety_level(score) / meets_minimum_safety(score, level)
quick_safety_check(latitude, declinations) -> QuickSafety
filter_by_tier, filter_by_safety_level, get_top_cities, group_by_country,
get_ranking_summary

Notes
-----
- Cities without a safety score are treated as 60 ("moderate").
- Highlights only mention planets weighted >= 3.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from astromap.core.acg import ACGLine, find_acg_lines_near_location
from astromap.core.constants import PLANET_IDS, PLANET_NAMES
from astromap.core.paran import ParanPoint
from astromap.core.scoring import score_location
from astromap.core.validators import InvalidInputError, _err, require_latitude, require_longitude

log = logging.getLogger(__name__)

__all__ = [
    "City", "RankedCity", "RankingOptions",
    "CITY_TIERS", "SAFETY_LEVELS", "SAFETY_LEVEL_THRESHOLDS", "DEFAULT_SAFETY_SCORE",
    "MALEFIC_PLANETS", "BENEFIC_PLANETS", "QuickSafety",
    "get_safety_level", "meets_minimum_safety", "quick_safety_check",
    "generate_highlights", "rank_cities",
    "filter_by_tier", "filter_by_safety_level", "get_top_cities",
    "group_by_country", "get_ranking_summary",
]

CITY_TIERS: Tuple[str, ...] = ("major", "medium", "minor", "small")
SAFETY_LEVELS: Tuple[str, ...] = ("excellent", "good", "moderate", "challenging", "difficult")
SAFETY_LEVEL_THRESHOLDS: Dict[str, float] = {
    "excellent": 85.0,
    "good": 70.0,
    "moderate": 55.0,
    "challenging": 40.0,
}
DEFAULT_SAFETY_SCORE = 60.0

MALEFIC_PLANETS: Tuple[str, ...] = ("mars", "saturn", "uranus", "pluto")
BENEFIC_PLANETS: Tuple[str, ...] = ("venus", "jupiter")
MALEFIC_ZENITH_ORB = 1.0
BENEFIC_ZENITH_ORB = 2.0

ZENITH_HIGHLIGHT_ORB = 1.5
ACG_HIGHLIGHT_ORB = 2.0
PARAN_HIGHLIGHT_ORB = 1.0
HIGHLIGHT_MIN_WEIGHT = 3.0

_LINE_NAMES = {"ASC": "Ascendant", "DSC": "Descendant", "MC": "Midheaven", "IC": "Imum Coeli"}


@dataclass(frozen=True)
class City:
    id: str
    name: str
    country: str
    latitude: float
    longitude: float
    tier: str = "medium"
    population: int = 0
    safety_score: Optional[float] = None

    def __post_init__(self) -> None:
        require_latitude(self.latitude)
        require_longitude(self.longitude)
        if self.tier not in CITY_TIERS:
            raise InvalidInputError(_err(["tier"], f"unknown city tier '{self.tier}'"))


@dataclass(frozen=True)
class RankedCity:
    city_id: str
    name: str
    country: str
    latitude: float
    longitude: float
    tier: str
    score: float
    highlights: Tuple[str, ...]
    safety_level: str
    breakdown: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["highlights"] = list(self.highlights)
        return d


@dataclass(frozen=True)
class RankingOptions:
    tiers: Optional[Tuple[str, ...]] = None
    min_safety_level: Optional[str] = None
    limit: Optional[int] = None


# ── safety ────────────────────────────────────────────────────────────────────
def get_safety_level(score: float) -> str:
    for level, threshold in SAFETY_LEVEL_THRESHOLDS.items():
        if score >= threshold:
            return level
    return "difficult"


def _require_level(level: str) -> str:
    if level not in SAFETY_LEVEL_THRESHOLDS:
        raise InvalidInputError(_err(["min_safety_level"], f"unknown safety level '{level}'"))
    return level


def meets_minimum_safety(score: float, min_level: str) -> bool:
    return score >= SAFETY_LEVEL_THRESHOLDS[_require_level(min_level)]


@dataclass(frozen=True)
class QuickSafety:
    latitude: float
    risk_planets: Tuple[str, ...]
    benefits: Tuple[str, ...]

    @property
    def has_risks(self) -> bool:
        return bool(self.risk_planets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "has_risks": self.has_risks,
            "risk_planets": list(self.risk_planets),
            "benefits": list(self.benefits),
        }


def quick_safety_check(latitude: float, declinations: Mapping[str, float]) -> QuickSafety:
    """
    Zenith-proximity heuristic for a latitude, no chart needed.

    A malefic within MALEFIC_ZENITH_ORB of its zenith latitude is a risk.
    Venus or Jupiter within BENEFIC_ZENITH_ORB is a benefit. Planet weights
    play no part: proximity alone decides.
    """
    lat = require_latitude(latitude)
    risks: List[str] = []
    benefits: List[str] = []
    for p in PLANET_IDS:
        if p not in declinations:
            continue
        d = abs(lat - float(declinations[p]))
        if p in MALEFIC_PLANETS and d < MALEFIC_ZENITH_ORB:
            risks.append(p)
        if p in BENEFIC_PLANETS and d < BENEFIC_ZENITH_ORB:
            benefits.append(p)
    return QuickSafety(latitude=lat, risk_planets=tuple(risks), benefits=tuple(benefits))


# ── highlights ────────────────────────────────────────────────────────────────
def generate_highlights(
    city: City,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    acg_lines: Sequence[ACGLine] = (),
    parans: Sequence[ParanPoint] = (),
) -> List[str]:
    out: List[str] = []

    for p in PLANET_IDS:
        if p not in declinations:
            continue
        d = abs(city.latitude - declinations[p])
        if d <= ZENITH_HIGHLIGHT_ORB and float(weights.get(p, 0.0)) >= HIGHLIGHT_MIN_WEIGHT:
            if d < 0.5:
                out.append(f"{PLANET_NAMES[p]} zenith passes directly over this latitude")
            else:
                out.append(f"Near {PLANET_NAMES[p]} zenith line ({d:.1f}° away)")

    weighted = [ln for ln in acg_lines if float(weights.get(ln.planet, 0.0)) >= HIGHLIGHT_MIN_WEIGHT]
    near = {id(ln) for ln, _ in find_acg_lines_near_location(city.latitude, city.longitude, weighted, ACG_HIGHLIGHT_ORB)}
    for ln in weighted:
        if id(ln) in near:
            out.append(f"Near {PLANET_NAMES[ln.planet]} {_LINE_NAMES[ln.line_type]} line")

    involved: List[str] = []
    for x in parans:
        if abs(city.latitude - x.latitude) <= PARAN_HIGHLIGHT_ORB:
            for p in (x.planet1, x.planet2):
                if p not in involved:
                    involved.append(p)
    involved.sort(key=lambda p: -float(weights.get(p, 0.0)))
    if len(involved) >= 2:
        out.append(f"Active paran zone with {PLANET_NAMES[involved[0]]}-{PLANET_NAMES[involved[1]]} interactions")
    elif involved:
        out.append(f"Paran activity involving {PLANET_NAMES[involved[0]]}")

    return out


# ── ranking ───────────────────────────────────────────────────────────────────
def rank_cities(
    cities: Sequence[City],
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    acg_lines: Sequence[ACGLine] = (),
    parans: Sequence[ParanPoint] = (),
    options: Optional[RankingOptions] = None,
) -> List[RankedCity]:
    opt = options or RankingOptions()
    if opt.min_safety_level is not None:
        _require_level(opt.min_safety_level)

    pool = list(cities)
    if opt.tiers:
        pool = [c for c in pool if c.tier in opt.tiers]

    ranked: List[RankedCity] = []
    for city in pool:
        safety = DEFAULT_SAFETY_SCORE if city.safety_score is None else float(city.safety_score)
        if opt.min_safety_level is not None and not meets_minimum_safety(safety, opt.min_safety_level):
            continue
        s = score_location(city.latitude, city.longitude, declinations, weights, acg_lines, parans)
        ranked.append(RankedCity(
            city_id=city.id,
            name=city.name,
            country=city.country,
            latitude=city.latitude,
            longitude=city.longitude,
            tier=city.tier,
            score=s["total"],
            highlights=tuple(generate_highlights(city, declinations, weights, acg_lines, parans)),
            safety_level=get_safety_level(safety),
            breakdown={"zenith": s["zenith"], "acg": s["acg"], "paran": s["paran"]},
        ))

    ranked.sort(key=lambda r: -r.score)
    log.debug("ranked %d of %d cities", len(ranked), len(pool))
    if opt.limit and opt.limit > 0:
        return ranked[: opt.limit]
    return ranked


def filter_by_tier(cities: Sequence[RankedCity], tiers: Sequence[str]) -> List[RankedCity]:
    return [c for c in cities if c.tier in tiers]


def filter_by_safety_level(cities: Sequence[RankedCity], min_level: str) -> List[RankedCity]:
    cutoff = SAFETY_LEVELS.index(_require_level(min_level))
    return [c for c in cities if SAFETY_LEVELS.index(c.safety_level) <= cutoff]


def get_top_cities(cities: Sequence[RankedCity], n: int = 10) -> List[RankedCity]:
    return list(cities[: max(0, int(n))])


def group_by_country(cities: Sequence[RankedCity]) -> Dict[str, List[RankedCity]]:
    groups: Dict[str, List[RankedCity]] = {}
    for c in cities:
        groups.setdefault(c.country, []).append(c)
    return groups


def get_ranking_summary(cities: Sequence[RankedCity]) -> Dict[str, Any]:
    if not cities:
        return {"total_cities": 0, "avg_score": 0.0, "max_score": 0.0, "min_score": 0.0,
                "by_tier": {}, "by_safety_level": {}}
    by_tier: Dict[str, int] = {}
    by_safety: Dict[str, int] = {}
    for c in cities:
        by_tier[c.tier] = by_tier.get(c.tier, 0) + 1
        by_safety[c.safety_level] = by_safety.get(c.safety_level, 0) + 1
    scores = [c.score for c in cities]
    return {
        "total_cities": len(cities),
        "avg_score": sum(scores) / len(scores),
        "max_score": max(scores),
        "min_score": min(scores),
        "by_tier": by_tier,
        "by_safety_level": by_safety,
    }
