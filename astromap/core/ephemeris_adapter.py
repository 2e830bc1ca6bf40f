# astromap/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Ephemeris Adapter (Skyfield + ERFA)
#
# Highlights
# • Stateless per call: the observer is an explicit argument, never adapter state
# • One-time, thread-safe, idempotent kernel bootstrap → immutable handle
# • Apparent ecliptic-of-date lon/lat/distance + rates from Skyfield frames
# • True obliquity (IAU 2006 + 2000A nutation) and mean obliquity via ERFA
# • Clean error taxonomy: every failure surfaces as EphemerisError(stage, ...)
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
import logging
import math
import os
import threading

import erfa  # pyERFA

from astromap.core.astromath import normalize_degrees
from astromap.core.constants import (
    DAYS_PER_CENTURY,
    J2000_JD,
    MEAN_OBLIQUITY_J2000,
    OBLIQUITY_RATE_PER_CENTURY,
    PLANET_IDS,
)

log = logging.getLogger(__name__)

__all__ = [
    "EphemerisError",
    "Observer",
    "EclipticPosition",
    "Config",
    "SkyfieldEphemeris",
    "get_default_adapter",
    "approximate_mean_obliquity",
]

# ─────────────────────────────────────────────────────────────────────────────
# Constants / environment (converted into Config defaults)
# ─────────────────────────────────────────────────────────────────────────────
EPHEMERIS_NAME_DEFAULT = "de421.bsp"

DE421_JD_MIN = float(os.getenv("ASTROMAP_DE421_JD_MIN", "2414992.5"))  # 1899-12-31
DE421_JD_MAX = float(os.getenv("ASTROMAP_DE421_JD_MAX", "2469807.5"))  # 2053-10-09
_ENFORCE_JD_RANGE_ENV = os.getenv("ASTROMAP_ENFORCE_JD_RANGE", "1").lower() in ("1", "true", "yes", "on")
_ALLOW_DOWNLOAD_ENV = os.getenv("ASTROMAP_ALLOW_DOWNLOAD", "0").lower() in ("1", "true", "yes", "on")

# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisError(RuntimeError):
    """Categorized error for adapter callers."""
    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context

# ─────────────────────────────────────────────────────────────────────────────
# Values
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Observer:
    latitude: float
    longitude: float
    elevation_m: float = 0.0


@dataclass(frozen=True)
class EclipticPosition:
    longitude: float        # [0, 360)
    latitude: float         # [-90, 90]
    distance: float         # AU
    longitude_speed: float  # deg/day
    latitude_speed: float   # deg/day
    distance_speed: float   # AU/day

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Config:
    kernel_path: Optional[str] = os.getenv("ASTROMAP_EPHEMERIS") or None
    data_dir: str = os.getenv("ASTROMAP_DATA_DIR", os.path.join(os.getcwd(), "data"))
    kernel_name: str = os.getenv("ASTROMAP_KERNEL_NAME", EPHEMERIS_NAME_DEFAULT)
    allow_download: bool = _ALLOW_DOWNLOAD_ENV

    # JD guard
    enforce_jd_range: bool = _ENFORCE_JD_RANGE_ENV
    jd_min: float = DE421_JD_MIN
    jd_max: float = DE421_JD_MAX

# ─────────────────────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────────────────────
_PLANET_KEYS: Dict[str, str] = {
    "sun": "sun",
    "moon": "moon",
    "mercury": "mercury",
    "venus": "venus",
    "mars": "mars",
    "jupiter": "jupiter barycenter",
    "saturn": "saturn barycenter",
    "uranus": "uranus barycenter",
    "neptune": "neptune barycenter",
    "pluto": "pluto barycenter",
}

# ─────────────────────────────────────────────────────────────────────────────
# Obliquity fallback (no ephemeris needed)
# ─────────────────────────────────────────────────────────────────────────────
def approximate_mean_obliquity(jd: float) -> float:
    """Linear mean obliquity; adequate within a few centuries of J2000."""
    T = (jd - J2000_JD) / DAYS_PER_CENTURY
    return MEAN_OBLIQUITY_J2000 + OBLIQUITY_RATE_PER_CENTURY * T

def _split_jd(jd: float):
    d = math.floor(jd)
    return d, jd - d

def _finite(stage: str, **values: float) -> None:
    bad = {k: v for k, v in values.items() if not math.isfinite(v)}
    if bad:
        raise EphemerisError(stage, "non-finite ephemeris output", **bad)

# ─────────────────────────────────────────────────────────────────────────────
# Adapter
# ─────────────────────────────────────────────────────────────────────────────
class SkyfieldEphemeris:
    """
    Skyfield-backed ephemeris. `initialize()` loads the timescale and kernel once;
    afterwards the handle is read-only and safe to share across threads.
    """

    def __init__(self, cfg: Optional[Config] = None):
        self.cfg = cfg or Config()
        self._lock = threading.Lock()
        self._ts = None
        self._kernel = None
        self._kernel_label = self.cfg.kernel_name

    # ---- bootstrap ----------------------------------------------------------
    def initialize(self) -> None:
        if self._kernel is not None:
            return
        with self._lock:
            if self._kernel is not None:
                return
            from skyfield.api import Loader, load

            try:
                ts = load.timescale()
            except Exception as e:
                raise EphemerisError("timescale", "Skyfield timescale unavailable", error=str(e)) from e

            path = self.cfg.kernel_path
            try:
                if path and os.path.isfile(path):
                    kernel = load(path)
                    label = os.path.basename(path)
                elif self.cfg.allow_download:
                    kernel = Loader(self.cfg.data_dir)(self.cfg.kernel_name)
                    label = self.cfg.kernel_name
                else:
                    local = os.path.join(self.cfg.data_dir, self.cfg.kernel_name)
                    if not os.path.isfile(local):
                        raise EphemerisError(
                            "kernel",
                            "No local kernel found (set ASTROMAP_EPHEMERIS or ASTROMAP_ALLOW_DOWNLOAD=1)",
                            searched=local,
                        )
                    kernel = load(local)
                    label = self.cfg.kernel_name
            except EphemerisError:
                raise
            except Exception as e:
                raise EphemerisError("kernel", f"Skyfield failed to load kernel: {path or self.cfg.kernel_name}", error=str(e)) from e

            log.info("ephemeris kernel loaded: %s", label)
            self._ts = ts
            self._kernel_label = label
            # publish last: readers check _kernel without the lock
            self._kernel = kernel

    @property
    def kernel_name(self) -> str:
        return self._kernel_label

    def _time(self, jd: float):
        if not math.isfinite(jd):
            raise EphemerisError("input", "Julian day must be finite", jd=jd)
        if self.cfg.enforce_jd_range and not (self.cfg.jd_min <= jd <= self.cfg.jd_max):
            raise EphemerisError("range", "Julian day outside kernel coverage",
                                 jd=jd, jd_min=self.cfg.jd_min, jd_max=self.cfg.jd_max)
        self.initialize()
        return self._ts.ut1_jd(jd)

    # ---- positions ----------------------------------------------------------
    def body_position(self, jd: float, planet: str, observer: Optional[Observer] = None) -> EclipticPosition:
        key = _PLANET_KEYS.get(planet)
        if key is None:
            raise EphemerisError("body", f"Unsupported body '{planet}'", supported=list(PLANET_IDS))
        t = self._time(jd)
        try:
            from skyfield.api import wgs84
            from skyfield.framelib import ecliptic_frame

            earth = self._kernel["earth"]
            origin = earth
            if observer is not None:
                origin = earth + wgs84.latlon(
                    float(observer.latitude), float(observer.longitude),
                    elevation_m=float(observer.elevation_m),
                )
            app = origin.at(t).observe(self._kernel[key]).apparent()
            lat, lon, dist, lat_rate, lon_rate, range_rate = app.frame_latlon_and_rates(ecliptic_frame)
            row = EclipticPosition(
                longitude=normalize_degrees(float(lon.degrees)),
                latitude=float(lat.degrees),
                distance=float(dist.au),
                longitude_speed=float(lon_rate.degrees.per_day),
                latitude_speed=float(lat_rate.degrees.per_day),
                distance_speed=float(range_rate.au_per_d),
            )
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("compute", f"Skyfield failed for {planet}", jd=jd, error=str(e)) from e

        _finite("compute", **row.to_dict())
        return row

    # ---- obliquity / sidereal time ------------------------------------------
    def mean_obliquity(self, jd: float) -> float:
        t = self._time(jd)
        d, f = _split_jd(float(t.tt))
        eps = math.degrees(float(erfa.obl06(d, f)))
        _finite("obliquity", mean_obliquity=eps)
        return eps

    def true_obliquity(self, jd: float) -> float:
        t = self._time(jd)
        d, f = _split_jd(float(t.tt))
        eps0 = float(erfa.obl06(d, f))
        _dpsi, deps = erfa.nut06a(d, f)
        eps = math.degrees(eps0 + float(deps))
        _finite("obliquity", true_obliquity=eps)
        return eps

    def sidereal_time_degrees(self, jd: float) -> float:
        t = self._time(jd)
        gmst = float(t.gmst) * 15.0
        _finite("sidereal", gmst=gmst)
        return normalize_degrees(gmst)

# ─────────────────────────────────────────────────────────────────────────────
# Process default (lazy)
# ─────────────────────────────────────────────────────────────────────────────
_DEFAULT: Optional[SkyfieldEphemeris] = None
_LOCK_DEFAULT = threading.Lock()

def get_default_adapter() -> SkyfieldEphemeris:
    """Shared, lazily initialized adapter built from environment Config."""
    global _DEFAULT
    if _DEFAULT is not None:
        return _DEFAULT
    with _LOCK_DEFAULT:
        if _DEFAULT is None:
            adapter = SkyfieldEphemeris()
            adapter.initialize()
            _DEFAULT = adapter
    return _DEFAULT
