# astromap/core/astromath.py
# -*- coding: utf-8 -*-
"""
Angle arithmetic, decay kernels and 1-D root/extremum search.

Public API
----------
to_radians(x) / to_degrees(x)
normalize_degrees(x)            -> [0, 360)
normalize_degrees_symmetric(x)  -> (-180, 180]
angle_difference(a, b)          -> signed shortest a − b, (-180, 180]
gaussian(distance, mu, sigma)   -> exp(-(d-mu)²/(2σ²))
clamp(x, lo, hi)
latitude_samples(start, stop, step) -> inclusive, drift-free sample list
bisection_solve(f, a, b, tol, max_iter) -> BisectionResult
golden_section_max(f, a, b, tol)        -> (x, f(x))

Conventions
-----------
- Non-convergence is data (BisectionResult.converged=False), never an exception.
- `f` given to bisection_solve may return None ("undefined here"); a None at
  the midpoint ends the search unconverged.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple
import math

from astromap.core.validators import InvalidInputError, require_finite

__all__ = [
    "to_radians", "to_degrees",
    "normalize_degrees", "normalize_degrees_symmetric", "angle_difference",
    "gaussian", "clamp", "latitude_samples",
    "BisectionResult", "bisection_solve", "golden_section_max",
]

_INV_PHI = (math.sqrt(5.0) - 1.0) / 2.0  # 1/φ ≈ 0.618


# ── conversions & wrapping ────────────────────────────────────────────────────
def to_radians(x: float) -> float:
    return x * math.pi / 180.0

def to_degrees(x: float) -> float:
    return x * 180.0 / math.pi

def normalize_degrees(x: float) -> float:
    """Wrap to [0, 360)."""
    y = math.fmod(x, 360.0)
    if y < 0.0:
        y += 360.0
    return 0.0 if y >= 360.0 else y

def normalize_degrees_symmetric(x: float) -> float:
    """Wrap to (-180, +180]."""
    y = (x + 180.0) % 360.0 - 180.0
    return y if y != -180.0 else 180.0

def angle_difference(a: float, b: float) -> float:
    """Shortest signed difference a − b in degrees."""
    return normalize_degrees_symmetric(a - b)

def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


# ── kernels ───────────────────────────────────────────────────────────────────
def gaussian(distance: float, mu: float = 0.0, sigma: float = 1.0) -> float:
    """Unnormalized Gaussian decay; 1.0 at distance == mu."""
    if not sigma > 0.0:
        raise InvalidInputError({"loc": ["sigma"], "msg": f"sigma must be > 0, got {sigma}", "type": "value_error"})
    d = distance - mu
    return math.exp(-(d * d) / (2.0 * sigma * sigma))


# ── sampling ──────────────────────────────────────────────────────────────────
def latitude_samples(start: float, stop: float, step: float) -> List[float]:
    """
    Inclusive samples start, start+step, ... <= stop.
    Computed as start + i*step (no accumulation drift), rounded to 1e-10.
    """
    start = require_finite("start", start)
    stop = require_finite("stop", stop)
    step = require_finite("step", step)
    if step <= 0.0:
        raise InvalidInputError({"loc": ["step"], "msg": f"step must be > 0, got {step}", "type": "value_error"})
    if stop < start:
        return []
    n = int(math.floor((stop - start) / step + 1e-9))
    return [round(start + i * step, 10) for i in range(n + 1)]


# ── bisection ─────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BisectionResult:
    root: Optional[float]
    converged: bool
    iterations: int
    residual: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def bisection_solve(
    f: Callable[[float], Optional[float]],
    a: float,
    b: float,
    tol: float = 1e-6,
    max_iter: int = 100,
    *,
    fa: Optional[float] = None,
    fb: Optional[float] = None,
) -> BisectionResult:
    """
    Bisection on [a, b].

    Caller guarantees a sign change. If the endpoints do not bracket a root,
    an endpoint already within `tol` of zero is returned; otherwise the result
    is root=None, converged=False. Halving stops when |f(mid)| < tol or the
    half-width drops below tol. Pre-computed endpoint values may be supplied
    via fa/fb to avoid re-evaluation.
    """
    if fa is None:
        fa = f(a)
    if fb is None:
        fb = f(b)
    if fa is None or fb is None:
        return BisectionResult(None, False, 0, None)

    if abs(fa) < tol:
        return BisectionResult(a, True, 0, fa)
    if abs(fb) < tol:
        return BisectionResult(b, True, 0, fb)
    if fa * fb > 0.0:
        return BisectionResult(None, False, 0, None)

    lo, hi = (a, b) if a <= b else (b, a)
    f_lo = fa if a <= b else fb
    mid, fm = lo, f_lo
    for i in range(1, max_iter + 1):
        mid = 0.5 * (lo + hi)
        fm = f(mid)
        if fm is None:
            return BisectionResult(None, False, i, None)
        if abs(fm) < tol or 0.5 * (hi - lo) < tol:
            return BisectionResult(mid, True, i, fm)
        if f_lo * fm < 0.0:
            hi = mid
        else:
            lo, f_lo = mid, fm
    return BisectionResult(mid, False, max_iter, fm)


# ── golden section ────────────────────────────────────────────────────────────
def golden_section_max(
    f: Callable[[float], float],
    a: float,
    b: float,
    tol: float = 0.1,
    max_iter: int = 200,
) -> Tuple[float, float]:
    """Local maximum of a unimodal f on [a, b]. Returns (x, f(x))."""
    lo, hi = (a, b) if a <= b else (b, a)
    x1 = hi - _INV_PHI * (hi - lo)
    x2 = lo + _INV_PHI * (hi - lo)
    f1, f2 = f(x1), f(x2)
    for _ in range(max_iter):
        if hi - lo <= tol:
            break
        if f1 < f2:
            lo, x1, f1 = x1, x2, f2
            x2 = lo + _INV_PHI * (hi - lo)
            f2 = f(x2)
        else:
            hi, x2, f2 = x2, x1, f1
            x1 = hi - _INV_PHI * (hi - lo)
            f1 = f(x1)
    x = 0.5 * (lo + hi)
    return x, f(x)
