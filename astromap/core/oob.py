# astromap/core/oob.py
# -*- coding: utf-8 -*-
"""
Out-of-bounds (OOB) detection: |declination| beyond the obliquity of date.

The boundary must come from the true obliquity (mean + nutation) supplied by
the ephemeris; APPROX_OBLIQUITY is only a default for callers that have opted
into approximate obliquity upstream.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Mapping, Optional

from astromap.core.astromath import bisection_solve
from astromap.core.constants import APPROX_OBLIQUITY, PLANET_IDS
from astromap.core.validators import require_finite

__all__ = [
    "OOBStatus", "OOB_LIKELIHOOD",
    "is_out_of_bounds", "get_oob_status", "check_all_oob_status", "get_oob_planets",
    "find_next_oob_entry", "format_oob_status",
]

# How often each body leaves the obliquity band (descriptive, not used by the solver)
OOB_LIKELIHOOD: Dict[str, str] = {
    "sun": "never",       # the Sun defines the boundary
    "moon": "common",
    "mercury": "occasional",
    "venus": "occasional",
    "mars": "rare",
    "jupiter": "rare",
    "saturn": "rare",
    "uranus": "rare",
    "neptune": "rare",
    "pluto": "common",    # high orbital inclination
}


@dataclass(frozen=True)
class OOBStatus:
    is_oob: bool
    oob_degrees: float
    direction: Optional[str]  # "north" | "south" | None
    declination: float
    obliquity: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_out_of_bounds(dec: float, obliquity: float = APPROX_OBLIQUITY) -> bool:
    return abs(require_finite("declination", dec)) > require_finite("obliquity", obliquity)


def get_oob_status(dec: float, obliquity: float = APPROX_OBLIQUITY) -> OOBStatus:
    dec = require_finite("declination", dec)
    obliquity = require_finite("obliquity", obliquity)
    oob = abs(dec) > obliquity
    return OOBStatus(
        is_oob=oob,
        oob_degrees=abs(dec) - obliquity if oob else 0.0,
        direction=("north" if dec > 0 else "south") if oob else None,
        declination=dec,
        obliquity=obliquity,
    )


def check_all_oob_status(declinations: Mapping[str, float], obliquity: float) -> Dict[str, OOBStatus]:
    return {p: get_oob_status(declinations[p], obliquity) for p in PLANET_IDS if p in declinations}


def get_oob_planets(declinations: Mapping[str, float], obliquity: float) -> List[str]:
    return [p for p, st in check_all_oob_status(declinations, obliquity).items() if st.is_oob]


def find_next_oob_entry(
    get_declination: Callable[[float], float],
    jd: float,
    obliquity: float = APPROX_OBLIQUITY,
    max_days: int = 730,
) -> Optional[float]:
    """
    First JD after `jd` at which |dec| crosses above the obliquity.
    If already OOB, the search starts after the body returns in bounds.
    1-day steps, then 20 bisections of the bracketing day.
    """
    jd = require_finite("jd", jd)
    obliquity = require_finite("obliquity", obliquity)

    def excess(t: float) -> float:
        return abs(get_declination(t)) - obliquity

    t = jd
    if excess(t) > 0.0:
        for _ in range(int(max_days)):
            t += 1.0
            if excess(t) <= 0.0:
                break
        else:
            return None

    prev_t, prev = t, excess(t)
    for _ in range(int(max_days)):
        cur_t = prev_t + 1.0
        cur = excess(cur_t)
        if cur > 0.0:
            res = bisection_solve(excess, prev_t, cur_t, tol=1e-9, max_iter=20, fa=prev, fb=cur)
            return res.root if res.root is not None else 0.5 * (prev_t + cur_t)
        prev_t, prev = cur_t, cur
    return None


def format_oob_status(status: OOBStatus) -> str:
    if not status.is_oob:
        return "In bounds"
    d = "N" if status.direction == "north" else "S"
    return f"OOB +{status.oob_degrees:.1f}°{d}"
