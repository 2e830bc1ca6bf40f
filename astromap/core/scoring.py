# astromap/core/scoring.py
# -*- coding: utf-8 -*-
"""
Latitude & location scoring

Public API
----------
Zenith (declination) scoring
  alignment_score(lat, dec, weight, sigma=3)                 -> float
  calculate_latitude_score(lat, declinations, weights)       -> dict (0–100 normalized)
  find_optimal_latitudes(declinations, weights, top_n, step) -> [dict]
  get_optimal_latitude_bands(declinations, weights, threshold=50) -> [dict]
  score_latitude(lat, declinations, weights)                 -> dict (raw Gaussian sum)
  find_optimal_latitude_in_range(lo, hi, declinations, weights, tol=0.1) -> dict
  find_high_scoring_bands(declinations, weights, threshold=0.5, step=0.5) -> [dict]
  score_cities(cities, declinations, weights)                -> [dict]

Search bands (zenith + overlaps + parans)
  calculate_zenith_latitudes(declinations, weights, orb)     -> [target]
  calculate_paran_latitudes(parans, weights, band_size=2)    -> [target]
  generate_search_bands(declinations, parans, weights, tolerance=3) -> dict
  is_in_optimal_band / find_best_band / get_query_latitude_ranges

Location scoring (lat + lon)
  score_location_for_acg(lat, lon, lines, weights, orb=2)    -> dict
  score_paran_proximity(lat, parans, weights, orb=1)         -> float
  score_location(lat, lon, declinations, weights, acg_lines, parans) -> dict
  score_locations(locations, ...)                            -> [dict]

Notes
-----
- Gaussian kernel: exp(−d²/2σ²), σ = cfg.declination_sigma (3°).
- Normalized scores divide by Σweights (the score if every planet sat exactly
  overhead) and scale to 0–100, rounded to 2 decimals.
- The golden-section refinement assumes one dominant peak in the bracket.
- All ranked outputs break score ties by latitude so results are reproducible.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import math

from astromap.core.acg import ACGLine
from astromap.core.astromath import gaussian, golden_section_max, latitude_samples
from astromap.core.constants import CFG, PLANET_IDS
from astromap.core.paran import ParanPoint, ParanResult
from astromap.core.transforms import great_circle_distance
from astromap.core.validators import require_finite
from astromap.core.zenith import find_zenith_overlaps

__all__ = [
    "alignment_score", "calculate_latitude_score", "find_optimal_latitudes",
    "get_optimal_latitude_bands", "score_latitude", "find_optimal_latitude_in_range",
    "find_high_scoring_bands", "score_cities",
    "calculate_zenith_latitudes", "calculate_paran_latitudes", "generate_search_bands",
    "is_in_optimal_band", "find_best_band", "get_query_latitude_ranges",
    "score_location_for_acg", "score_paran_proximity", "score_location", "score_locations",
]


def _round_half_up(x: float, step: float) -> float:
    return float(math.floor(x / step + 0.5) * step)


# ── zenith scoring ────────────────────────────────────────────────────────────
def alignment_score(lat: float, dec: float, weight: float, sigma: Optional[float] = None) -> float:
    if weight == 0:
        return 0.0
    sigma = CFG.declination_sigma if sigma is None else sigma
    return weight * gaussian(abs(require_finite("latitude", lat) - require_finite("declination", dec)), 0.0, sigma)


def calculate_latitude_score(
    lat: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
) -> Dict[str, Any]:
    alignments: List[Dict[str, Any]] = []
    total = 0.0
    best, dominant = 0.0, None
    for p in PLANET_IDS:
        w = float(weights.get(p, 0.0))
        if w == 0 or p not in declinations:
            continue
        dec = declinations[p]
        c = alignment_score(lat, dec, w)
        alignments.append({"planet": p, "declination": dec, "distance": abs(lat - dec), "contribution": c})
        total += c
        if c > best:
            best, dominant = c, p

    max_possible = sum(float(v) for v in weights.values())
    normalized = (total / max_possible) * 100.0 if max_possible > 0 else 0.0
    alignments.sort(key=lambda a: -a["contribution"])
    return {
        "latitude": lat,
        "score": round(normalized, 2),
        "dominant_planet": dominant,
        "alignments": alignments,
    }


def _habitable_lats(step: float) -> List[float]:
    limit = CFG.optimal_latitude_limit
    return latitude_samples(-limit, limit, step)


def find_optimal_latitudes(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    top_n: int = 10,
    step: float = 1.0,
) -> List[Dict[str, Any]]:
    scores = [calculate_latitude_score(lat, declinations, weights) for lat in _habitable_lats(step)]
    scores.sort(key=lambda s: (-s["score"], s["latitude"]))
    return scores[: max(0, int(top_n))]


def score_cities(
    cities: Iterable[Mapping[str, Any]],
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
) -> List[Dict[str, Any]]:
    out = []
    for city in cities:
        r = calculate_latitude_score(float(city["latitude"]), declinations, weights)
        out.append({
            "city_id": city["id"],
            "latitude": r["latitude"],
            "score": r["score"],
            "dominant_planet": r["dominant_planet"],
        })
    out.sort(key=lambda c: -c["score"])
    return out


def get_optimal_latitude_bands(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    threshold: float = 50.0,
    step: float = 0.5,
) -> List[Dict[str, Any]]:
    """Contiguous latitude runs whose normalized score is >= threshold."""
    bands: List[Dict[str, Any]] = []
    cur: Optional[Dict[str, Any]] = None
    for lat in _habitable_lats(step):
        s = calculate_latitude_score(lat, declinations, weights)
        if s["score"] >= threshold:
            if cur is None:
                cur = {"min": lat, "max": lat, "dominant_planet": s["dominant_planet"]}
            else:
                cur["max"] = lat
        elif cur is not None:
            bands.append(cur)
            cur = None
    if cur is not None:
        bands.append(cur)
    return bands


def score_latitude(
    lat: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    sigma: Optional[float] = None,
) -> Dict[str, Any]:
    """Raw (unnormalized) weighted Gaussian sum over positively weighted planets."""
    sigma = CFG.declination_sigma if sigma is None else sigma
    total = 0.0
    contributions = []
    for p in PLANET_IDS:
        w = float(weights.get(p, 0.0))
        if w <= 0 or p not in declinations:
            continue
        d = abs(lat - declinations[p])
        c = w * gaussian(d, 0.0, sigma)
        contributions.append({"planet": p, "distance": d, "contribution": c})
        total += c
    contributions.sort(key=lambda c: -c["contribution"])
    return {"score": total, "contributions": contributions}


def find_optimal_latitude_in_range(
    min_lat: float,
    max_lat: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    tol: float = 0.1,
) -> Dict[str, float]:
    lo = require_finite("min_lat", min_lat)
    hi = require_finite("max_lat", max_lat)
    x, fx = golden_section_max(lambda lat: score_latitude(lat, declinations, weights)["score"], lo, hi, tol)
    return {"latitude": x, "score": fx}


def find_high_scoring_bands(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    threshold: float = 0.5,
    step: float = 0.5,
) -> List[Dict[str, float]]:
    """Runs whose raw score is at least `threshold` × the best sampled score."""
    samples = [(lat, score_latitude(lat, declinations, weights)["score"]) for lat in _habitable_lats(step)]
    if not samples:
        return []
    cutoff = max(s for _, s in samples) * threshold

    bands: List[Dict[str, float]] = []
    start: Optional[float] = None
    last = 0.0
    acc, n = 0.0, 0
    for lat, s in samples:
        if s >= cutoff:
            if start is None:
                start, acc, n = lat, 0.0, 0
            acc += s
            n += 1
            last = lat
        elif start is not None:
            bands.append({"min_lat": start, "max_lat": last, "avg_score": acc / n})
            start = None
    if start is not None:
        bands.append({"min_lat": start, "max_lat": last, "avg_score": acc / n})
    return bands


# ── search bands ──────────────────────────────────────────────────────────────
def calculate_zenith_latitudes(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    orb: Optional[float] = None,
) -> List[Dict[str, Any]]:
    orb = CFG.zenith_orb if orb is None else orb
    targets: List[Dict[str, Any]] = []
    for p in PLANET_IDS:
        w = float(weights.get(p, 0.0))
        if w <= 0 or p not in declinations:
            continue
        targets.append({
            "latitude": declinations[p],
            "score": w,
            "sources": [{"type": "zenith", "planets": [p], "contribution": w}],
        })

    for ov in find_zenith_overlaps(declinations, weights, orb):
        src = {"type": "overlap", "planets": list(ov.planets), "contribution": ov.combined_weight}
        near = next((t for t in targets if abs(t["latitude"] - ov.latitude) < orb), None)
        if near is None:
            targets.append({"latitude": ov.latitude, "score": ov.combined_weight, "sources": [src]})
        else:
            near["score"] = max(near["score"], ov.combined_weight)
            near["sources"].append(src)

    targets.sort(key=lambda t: (-t["score"], t["latitude"]))
    return targets


def calculate_paran_latitudes(
    parans: ParanResult,
    weights: Mapping[str, float],
    band_size: float = 2.0,
) -> List[Dict[str, Any]]:
    bands: Dict[float, List[ParanPoint]] = {}
    for x in parans.points:
        bands.setdefault(_round_half_up(x.latitude, band_size), []).append(x)

    targets = []
    for lat, pts in bands.items():
        score = 0.0
        planets: List[str] = []
        for x in pts:
            for p in (x.planet1, x.planet2):
                if p not in planets:
                    planets.append(p)
            score += (float(weights.get(x.planet1, 0.0)) + float(weights.get(x.planet2, 0.0))) * x.strength
        targets.append({
            "latitude": lat,
            "score": score,
            "sources": [{"type": "paran", "planets": planets, "contribution": score}],
        })
    targets.sort(key=lambda t: (-t["score"], t["latitude"]))
    return targets


def generate_search_bands(
    declinations: Mapping[str, float],
    parans: ParanResult,
    weights: Mapping[str, float],
    tolerance: float = 3.0,
) -> Dict[str, Any]:
    """
    Merge zenith/overlap targets with paran targets (a paran target within
    `tolerance` of an existing one adds half its score), then cut ± tolerance
    bands around the top 20 targets, one band per 5° latitude cell.
    """
    targets = [dict(t, sources=list(t["sources"])) for t in calculate_zenith_latitudes(declinations, weights)]
    for pt in calculate_paran_latitudes(parans, weights):
        near = next((t for t in targets if abs(t["latitude"] - pt["latitude"]) < tolerance), None)
        if near is None:
            targets.append(pt)
        else:
            near["score"] += pt["score"] * 0.5
            near["sources"].extend(pt["sources"])
    targets.sort(key=lambda t: (-t["score"], t["latitude"]))

    bands: List[Dict[str, Any]] = []
    used = set()
    for t in targets[:20]:
        cell = _round_half_up(t["latitude"], 5.0)
        if cell in used:
            continue
        used.add(cell)
        all_planets: List[str] = []
        zenith_planets: List[str] = []
        paran_count = 0
        for src in t["sources"]:
            for p in src["planets"]:
                if p not in all_planets:
                    all_planets.append(p)
                if src["type"] in ("zenith", "overlap") and p not in zenith_planets:
                    zenith_planets.append(p)
            if src["type"] == "paran":
                paran_count += 1
        bands.append({
            "min_lat": t["latitude"] - tolerance,
            "max_lat": t["latitude"] + tolerance,
            "score": t["score"],
            "dominant_planets": all_planets,
            "zenith_planets": zenith_planets,
            "paran_count": paran_count,
        })

    paran_latitudes: Dict[float, List[ParanPoint]] = {}
    for x in parans.points:
        paran_latitudes.setdefault(_round_half_up(x.latitude, 2.0), []).append(x)

    return {
        "bands": bands,
        "paran_latitudes": [{"latitude": k, "parans": v} for k, v in sorted(paran_latitudes.items())],
        "optimal_latitudes": [t["latitude"] for t in targets[:10]],
    }


def is_in_optimal_band(latitude: float, bands: Sequence[Mapping[str, Any]]) -> bool:
    return any(b["min_lat"] <= latitude <= b["max_lat"] for b in bands)


def find_best_band(latitude: float, bands: Sequence[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    hits = [b for b in bands if b["min_lat"] <= latitude <= b["max_lat"]]
    if not hits:
        return None
    return max(hits, key=lambda b: b["score"])


def get_query_latitude_ranges(bands: Sequence[Mapping[str, Any]], max_bands: int = 5) -> List[Dict[str, float]]:
    top = sorted(bands, key=lambda b: -b["score"])[: max(0, int(max_bands))]
    return [{"min": b["min_lat"], "max": b["max_lat"]} for b in top]


# ── location scoring ──────────────────────────────────────────────────────────
def score_location_for_acg(
    lat: float,
    lon: float,
    lines: Sequence[ACGLine],
    weights: Mapping[str, float],
    orb: float = 2.0,
) -> Dict[str, Any]:
    """Σ (1 − d/orb)·weight over lines whose nearest point is within `orb` (great-circle degrees)."""
    lat = require_finite("latitude", lat)
    lon = require_finite("longitude", lon)
    total = 0.0
    contributions = []
    best, dominant = 0.0, None
    for line in lines:
        if not line.points:
            continue
        d = min(math.degrees(great_circle_distance(lat, lon, plat, plon)) for plat, plon in line.points)
        if d > orb:
            continue
        s = (1.0 - d / orb) * float(weights.get(line.planet, 0.0))
        total += s
        contributions.append({"planet": line.planet, "line_type": line.line_type, "distance": d})
        if s > best:
            best, dominant = s, line.planet
    return {"score": total, "contributions": contributions, "dominant_planet": dominant}


def score_paran_proximity(
    lat: float,
    parans: Sequence[ParanPoint],
    weights: Mapping[str, float],
    orb: float = 1.0,
) -> float:
    lat = require_finite("latitude", lat)
    total = 0.0
    for x in parans:
        d = abs(lat - x.latitude)
        if d <= orb:
            avg_w = (float(weights.get(x.planet1, 0.0)) + float(weights.get(x.planet2, 0.0))) / 2.0
            total += (1.0 - d / orb) * avg_w * x.strength
    return total


def score_location(
    lat: float,
    lon: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    acg_lines: Sequence[ACGLine] = (),
    parans: Sequence[ParanPoint] = (),
) -> Dict[str, Any]:
    zen = score_latitude(lat, declinations, weights)
    acg = score_location_for_acg(lat, lon, acg_lines, weights)
    par = score_paran_proximity(lat, parans, weights)

    dominant: List[str] = []
    contribs = zen["contributions"]
    if contribs:
        dominant.append(contribs[0]["planet"])
        if len(contribs) > 1 and contribs[1]["contribution"] > 0:
            dominant.append(contribs[1]["planet"])
    if acg["dominant_planet"] and acg["dominant_planet"] not in dominant:
        dominant.append(acg["dominant_planet"])

    return {
        "total": zen["score"] + acg["score"] + par,
        "zenith": zen["score"],
        "acg": acg["score"],
        "paran": par,
        "dominant_planets": dominant,
    }


def score_locations(
    locations: Iterable[Mapping[str, float]],
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    acg_lines: Sequence[ACGLine] = (),
    parans: Sequence[ParanPoint] = (),
) -> List[Dict[str, Any]]:
    return [
        score_location(float(loc["latitude"]), float(loc["longitude"]), declinations, weights, acg_lines, parans)
        for loc in locations
    ]
