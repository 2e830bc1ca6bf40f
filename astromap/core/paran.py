# astromap/core/paran.py
# -*- coding: utf-8 -*-
"""
Parans: latitudes where two planets are angular at the same sidereal time

Public API
----------
hour_angle_for_event(event, dec, lat)            -> float | None
lst_for_event(ra, dec, event, lat)               -> float | None   [0, 360)
timing_difference(eq1, event1, eq2, event2, lat) -> float | None   (-180, 180]
find_parans_for_events(planet1, eq1, event1, planet2, eq2, event2, cfg=CFG, deadline=None)
    -> [ParanPoint]
find_parans_for_pair(planet1, eq1, planet2, eq2, cfg=CFG, deadline=None)
    -> [ParanPoint]   (16 event combinations)
find_all_parans(equatorial_by_planet, cfg=CFG, *, require_all=True, executor=None, deadline=None)
    -> ParanResult    (45 pairs × 16 combinations)
classify_event_pair(event1, event2) -> bucket in PARAN_BUCKETS

Queries (thin views over a ParanResult):
get_top_parans, get_parans_for_planet, get_parans_at_latitude, get_parans_by_event,
get_parans_by_strength, group_parans_by_latitude, group_parans_by_planet_pair,
group_parans_by_event_type, get_paran_statistics

Algorithm
---------
LST(planet, event, φ) = RA + HA(event), HA = −SDA (rise), +SDA (set), 0 (culminate),
180 (anti-culminate); rise/set are undefined (None) where the body does not
cross the horizon. For each ordered event pair the timing difference
  D(φ) = wrap±180(LST₁ − LST₂)
is sampled on a fixed latitude grid. Adjacent samples with opposite signs and
both |D| < 90° bracket a genuine zero (a jump through ±180 is a wrap artefact,
not a root). Where a sample sits next to one at which rise/set is undefined,
D is also evaluated just inside the body's rise/set limit |φ| = 90 − |δ| and
that shorter segment is bracketed the same way; the SDA is steepest there.
Each bracket is refined by bisection; a root is recorded only when
bisection converged and |D(root)| is within cfg.paran_max_residual. Then
  strength = 1 − |D(root)| / 180
and roots below cfg.paran_strength_threshold are dropped.

Ordering & determinism
----------------------
- Pairs are (PLANET_IDS[i], PLANET_IDS[j]) with i < j; (B, A) never appears.
- ParanResult.points is sorted by strength descending, ties broken by planet
  order, event order, then latitude. Parallel execution does not change it.
"""

from __future__ import annotations
from concurrent.futures import Executor
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import math
import statistics

from astromap.core.astromath import (
    bisection_solve,
    clamp,
    latitude_samples,
    normalize_degrees,
    normalize_degrees_symmetric,
)
from astromap.core.constants import (
    ANGULAR_EVENTS,
    CFG,
    PARAN_BUCKETS,
    PLANET_IDS,
    PLANET_INDEX,
    SolverConfig,
)
from astromap.core.deadline import Deadline, check_deadline
from astromap.core.sda import calculate_sda
from astromap.core.transforms import EquatorialCoordinates
from astromap.core.validators import InvalidInputError, require_event, require_finite, require_planet

log = logging.getLogger(__name__)

__all__ = [
    "ParanPoint", "ParanResult",
    "hour_angle_for_event", "lst_for_event", "timing_difference",
    "find_parans_for_events", "find_parans_for_pair", "find_all_parans",
    "classify_event_pair",
    "get_top_parans", "get_parans_for_planet", "get_parans_at_latitude",
    "get_parans_by_event", "get_parans_by_strength",
    "group_parans_by_latitude", "group_parans_by_planet_pair", "group_parans_by_event_type",
    "get_paran_statistics",
]

EVENT_INDEX: Dict[str, int] = {e: i for i, e in enumerate(ANGULAR_EVENTS)}

# |D| at or beyond this on either side of a bracket means a ±180 wrap, not a root
_WRAP_GUARD_DEG = 90.0

# step inside the rise/set limit so the SDA there is still finite (cos H clears EPSILON)
_EDGE_NUDGE_DEG = 1e-6

_BUCKET_RANK = {"rise": 0, "culminate": 1, "set": 2}


# ── values ────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ParanPoint:
    planet1: str
    event1: str
    planet2: str
    event2: str
    latitude: float
    strength: float  # [0, 1]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParanResult:
    points: Tuple[ParanPoint, ...]
    summary: Dict[str, int]
    skipped_planets: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "summary": dict(self.summary),
            "skipped_planets": list(self.skipped_planets),
        }


def _sort_key(p: ParanPoint) -> Tuple[float, int, int, int, int, float]:
    return (
        -p.strength,
        PLANET_INDEX[p.planet1], PLANET_INDEX[p.planet2],
        EVENT_INDEX[p.event1], EVENT_INDEX[p.event2],
        p.latitude,
    )


# ── event geometry ────────────────────────────────────────────────────────────
def hour_angle_for_event(event: str, dec: float, lat: float) -> Optional[float]:
    if event == "culminate":
        return 0.0
    if event == "anti_culminate":
        return 180.0
    sda = calculate_sda(lat, dec)
    return sda.rise_ha if event == "rise" else sda.set_ha


def lst_for_event(ra: float, dec: float, event: str, lat: float) -> Optional[float]:
    ha = hour_angle_for_event(event, dec, lat)
    if ha is None:
        return None
    return normalize_degrees(ra + ha)


def timing_difference(
    eq1: EquatorialCoordinates,
    event1: str,
    eq2: EquatorialCoordinates,
    event2: str,
    lat: float,
) -> Optional[float]:
    lst1 = lst_for_event(eq1.right_ascension, eq1.declination, event1, lat)
    if lst1 is None:
        return None
    lst2 = lst_for_event(eq2.right_ascension, eq2.declination, event2, lat)
    if lst2 is None:
        return None
    return normalize_degrees_symmetric(lst1 - lst2)


def classify_event_pair(event1: str, event2: str) -> str:
    """Symmetric bucket; anti-culmination folds into culmination."""
    a, b = (("culminate" if e == "anti_culminate" else e) for e in (require_event(event1), require_event(event2)))
    lo, hi = sorted((a, b), key=_BUCKET_RANK.__getitem__)
    return f"{lo}_{hi}"


# ── search core ───────────────────────────────────────────────────────────────
def _lst_table(eq: EquatorialCoordinates, lats: Sequence[float]) -> Dict[str, List[Optional[float]]]:
    """LST of every event at every sample latitude (one SDA per latitude)."""
    ra = eq.right_ascension
    table: Dict[str, List[Optional[float]]] = {e: [] for e in ANGULAR_EVENTS}
    for lat in lats:
        sda = calculate_sda(lat, eq.declination)
        table["rise"].append(None if sda.rise_ha is None else normalize_degrees(ra + sda.rise_ha))
        table["set"].append(None if sda.set_ha is None else normalize_degrees(ra + sda.set_ha))
        table["culminate"].append(normalize_degrees(ra))
        table["anti_culminate"].append(normalize_degrees(ra + 180.0))
    return table


def _sample_lats(cfg: SolverConfig) -> List[float]:
    return latitude_samples(-cfg.paran_latitude_limit, cfg.paran_latitude_limit, cfg.paran_latitude_step)


def _accept(
    planet1: str, event1: str, planet2: str, event2: str,
    root: float, residual: float, cfg: SolverConfig,
) -> Optional[ParanPoint]:
    if abs(residual) > cfg.paran_max_residual:
        return None
    strength = clamp(1.0 - abs(residual) / 180.0, 0.0, 1.0)
    if strength < cfg.paran_strength_threshold:
        return None
    return ParanPoint(planet1, event1, planet2, event2, root, strength)


def _horizon_edge(decs: Sequence[float], inside: float, outside: float) -> Optional[float]:
    """
    Latitude just inside the rise/set limit (|φ| = 90 − |δ|) crossed between a
    sample where every event is defined and a neighbour where one is not.
    """
    step = 1.0 if outside > inside else -1.0
    edges = [step * (90.0 - abs(d)) for d in decs]
    crossed = [e for e in edges if (e - inside) * step > 0.0 and (e - outside) * step <= 0.0]
    if not crossed:
        return None
    edge = min(crossed, key=lambda e: abs(e - inside))
    return edge - step * _EDGE_NUDGE_DEG


def _search(
    planet1: str, eq1: EquatorialCoordinates, event1: str, lst1: Sequence[Optional[float]],
    planet2: str, eq2: EquatorialCoordinates, event2: str, lst2: Sequence[Optional[float]],
    lats: Sequence[float],
    cfg: SolverConfig,
    deadline: Optional[Deadline],
) -> List[ParanPoint]:
    diffs: List[Optional[float]] = [
        None if (a is None or b is None) else normalize_degrees_symmetric(a - b)
        for a, b in zip(lst1, lst2)
    ]
    horizon_decs = [eq.declination for eq, e in ((eq1, event1), (eq2, event2)) if e in ("rise", "set")]

    def f(lat: float) -> Optional[float]:
        return timing_difference(eq1, event1, eq2, event2, lat)

    found: List[ParanPoint] = []

    def refine(a: float, b: float, fa: float, fb: float) -> None:
        if abs(fa) >= _WRAP_GUARD_DEG or abs(fb) >= _WRAP_GUARD_DEG:
            return
        res = bisection_solve(
            f, a, b,
            tol=cfg.paran_bisection_tol, max_iter=cfg.paran_max_iterations,
            fa=fa, fb=fb,
        )
        if not res.converged or res.root is None or res.residual is None:
            log.debug(
                "paran bisection unconverged %s:%s/%s:%s in [%.6f, %.6f] after %d iterations",
                planet1, event1, planet2, event2, a, b, res.iterations,
            )
            return
        pt = _accept(planet1, event1, planet2, event2, res.root, res.residual, cfg)
        if pt is not None:
            found.append(pt)

    def refine_to_edge(inside: float, d_inside: float, outside: float) -> None:
        # the root may sit between the last defined sample and the rise/set limit
        edge = _horizon_edge(horizon_decs, inside, outside)
        if edge is None:
            return
        d_edge = f(edge)
        if d_edge is None:
            log.debug("paran edge %s:%s/%s:%s undefined at %.9f", planet1, event1, planet2, event2, edge)
            return
        if d_inside * d_edge < 0.0:
            refine(inside, edge, d_inside, d_edge)

    n = len(lats)
    for i in range(n):
        check_deadline(deadline)
        da = diffs[i]
        db = diffs[i + 1] if i + 1 < n else None
        if da is None:
            if db is not None and db != 0.0:
                refine_to_edge(lats[i + 1], db, lats[i])
            continue
        if da == 0.0:
            # exact hit on a sample counts only as a genuine crossing
            prev = diffs[i - 1] if i > 0 else None
            if (prev and db and prev * db < 0.0
                    and abs(prev) < _WRAP_GUARD_DEG and abs(db) < _WRAP_GUARD_DEG):
                pt = _accept(planet1, event1, planet2, event2, lats[i], 0.0, cfg)
                if pt is not None:
                    found.append(pt)
            continue
        if i + 1 >= n:
            continue
        if db is None:
            refine_to_edge(lats[i], da, lats[i + 1])
            continue
        if db == 0.0 or da * db > 0.0:
            continue
        refine(lats[i], lats[i + 1], da, db)

    found.sort(key=lambda p: p.latitude)
    return found


def _canonical_pair(
    planet1: str, eq1: EquatorialCoordinates, planet2: str, eq2: EquatorialCoordinates,
) -> Tuple[str, EquatorialCoordinates, str, EquatorialCoordinates]:
    p1, p2 = require_planet(planet1), require_planet(planet2)
    if p1 == p2:
        raise InvalidInputError({"loc": ["planet2"], "msg": f"paran needs two distinct planets, got {p1} twice", "type": "value_error"})
    for eq in (eq1, eq2):
        require_finite("right_ascension", eq.right_ascension)
        require_finite("declination", eq.declination)
    if PLANET_INDEX[p1] > PLANET_INDEX[p2]:
        return p2, eq2, p1, eq1
    return p1, eq1, p2, eq2


def find_parans_for_events(
    planet1: str, eq1: EquatorialCoordinates, event1: str,
    planet2: str, eq2: EquatorialCoordinates, event2: str,
    cfg: SolverConfig = CFG,
    deadline: Optional[Deadline] = None,
) -> List[ParanPoint]:
    """Parans for one event combination, sorted by latitude ascending."""
    e1, e2 = require_event(event1), require_event(event2)
    if PLANET_INDEX[require_planet(planet1)] > PLANET_INDEX[require_planet(planet2)]:
        e1, e2 = e2, e1
    p1, q1, p2, q2 = _canonical_pair(planet1, eq1, planet2, eq2)
    lats = _sample_lats(cfg)
    t1, t2 = _lst_table(q1, lats), _lst_table(q2, lats)
    return _search(p1, q1, e1, t1[e1], p2, q2, e2, t2[e2], lats, cfg, deadline)


def find_parans_for_pair(
    planet1: str, eq1: EquatorialCoordinates,
    planet2: str, eq2: EquatorialCoordinates,
    cfg: SolverConfig = CFG,
    deadline: Optional[Deadline] = None,
) -> List[ParanPoint]:
    """All 16 event combinations for one pair (canonical planet order)."""
    p1, q1, p2, q2 = _canonical_pair(planet1, eq1, planet2, eq2)
    lats = _sample_lats(cfg)
    t1, t2 = _lst_table(q1, lats), _lst_table(q2, lats)
    out: List[ParanPoint] = []
    for e1 in ANGULAR_EVENTS:
        for e2 in ANGULAR_EVENTS:
            out.extend(_search(p1, q1, e1, t1[e1], p2, q2, e2, t2[e2], lats, cfg, deadline))
    return out


def _summary(points: Sequence[ParanPoint]) -> Dict[str, int]:
    counts = {b: 0 for b in PARAN_BUCKETS}
    for p in points:
        counts[classify_event_pair(p.event1, p.event2)] += 1
    counts["total"] = len(points)
    return counts


def find_all_parans(
    equatorial_by_planet: Mapping[str, EquatorialCoordinates],
    cfg: SolverConfig = CFG,
    *,
    require_all: bool = True,
    executor: Optional[Executor] = None,
    deadline: Optional[Deadline] = None,
) -> ParanResult:
    """
    Full catalog over every i<j pair. Missing planets raise InvalidInputError
    unless require_all=False, in which case their pairs are skipped and the
    planets are listed in ParanResult.skipped_planets.
    """
    missing = tuple(p for p in PLANET_IDS if p not in equatorial_by_planet)
    if missing:
        if require_all:
            raise InvalidInputError({"loc": ["positions"], "msg": f"missing positions for: {', '.join(missing)}", "type": "value_error"})
        log.warning("paran catalog skipping planets without positions: %s", ", ".join(missing))

    present = [p for p in PLANET_IDS if p in equatorial_by_planet]
    pairs = [(present[i], present[j]) for i in range(len(present)) for j in range(i + 1, len(present))]
    log.debug("paran catalog: %d pairs × %d combinations", len(pairs), len(ANGULAR_EVENTS) ** 2)

    if executor is None:
        per_pair = [
            find_parans_for_pair(a, equatorial_by_planet[a], b, equatorial_by_planet[b], cfg, deadline)
            for a, b in pairs
        ]
    else:
        futures = [
            executor.submit(find_parans_for_pair, a, equatorial_by_planet[a], b, equatorial_by_planet[b], cfg, deadline)
            for a, b in pairs
        ]
        try:
            per_pair = [f.result() for f in futures]
        except BaseException:
            for f in futures:
                f.cancel()
            raise

    points = sorted((p for chunk in per_pair for p in chunk), key=_sort_key)
    return ParanResult(points=tuple(points), summary=_summary(points), skipped_planets=missing)


# ── queries ───────────────────────────────────────────────────────────────────
def get_top_parans(result: ParanResult, limit: int = 50) -> List[ParanPoint]:
    return list(result.points[: max(0, int(limit))])


def get_parans_for_planet(result: ParanResult, planet: str) -> List[ParanPoint]:
    p = require_planet(planet)
    return [x for x in result.points if x.planet1 == p or x.planet2 == p]


def get_parans_at_latitude(result: ParanResult, latitude: float, orb: float = 2.0) -> List[ParanPoint]:
    lat = require_finite("latitude", latitude)
    return [x for x in result.points if abs(x.latitude - lat) <= orb]


def get_parans_by_event(result: ParanResult, event: str) -> List[ParanPoint]:
    e = require_event(event)
    return [x for x in result.points if x.event1 == e or x.event2 == e]


def get_parans_by_strength(result: ParanResult, min_strength: float, max_strength: float = 1.0) -> List[ParanPoint]:
    return [x for x in result.points if min_strength <= x.strength <= max_strength]


def group_parans_by_latitude(result: ParanResult, band_size: float = 5.0) -> Dict[float, List[ParanPoint]]:
    """Bucket by nearest multiple of band_size (half-up rounding)."""
    bands: Dict[float, List[ParanPoint]] = {}
    for x in result.points:
        center = math.floor(x.latitude / band_size + 0.5) * band_size
        bands.setdefault(float(center), []).append(x)
    return bands


def group_parans_by_planet_pair(result: ParanResult) -> Dict[str, List[ParanPoint]]:
    groups: Dict[str, List[ParanPoint]] = {}
    for x in result.points:
        groups.setdefault(f"{x.planet1}-{x.planet2}", []).append(x)
    return groups


def group_parans_by_event_type(result: ParanResult) -> Dict[str, List[ParanPoint]]:
    """Key is the sorted event pair, so rise/set and set/rise share 'rise-set'."""
    groups: Dict[str, List[ParanPoint]] = {}
    for x in result.points:
        a, b = sorted((x.event1, x.event2))
        groups.setdefault(f"{a}-{b}", []).append(x)
    return groups


def get_paran_statistics(result: ParanResult) -> Dict[str, Any]:
    pts = result.points
    if not pts:
        return {
            "total": 0,
            "average_strength": 0.0,
            "median_strength": 0.0,
            "latitude_range": {"min": 0.0, "max": 0.0},
            "strongest": None,
            "by_hemisphere": {"northern": 0, "southern": 0},
        }
    strengths = [x.strength for x in pts]
    lats = [x.latitude for x in pts]
    return {
        "total": len(pts),
        "average_strength": sum(strengths) / len(strengths),
        "median_strength": statistics.median(strengths),
        "latitude_range": {"min": min(lats), "max": max(lats)},
        "strongest": pts[0],
        "by_hemisphere": {
            "northern": sum(1 for v in lats if v > 0),
            "southern": sum(1 for v in lats if v < 0),
        },
    }
