# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the astromap suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (we always pass IANA zones explicitly).
- Provides an in-memory ephemeris so no kernel file or network is needed.
- Adds a 'slow' marker for the full-catalog runs.
"""

import os
from typing import Iterable, Optional

import pytest
from hypothesis import settings, HealthCheck

from astromap.core.constants import J2000_JD, PLANET_IDS
from astromap.core.ephemeris_adapter import EclipticPosition, EphemerisError, Observer
from astromap.core.transforms import gmst_degrees


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,           # avoid flaky timeouts on slower runners
        max_examples=60,         # fast local runs
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=120,        # a bit more coverage in CI
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Fake ephemeris
# ──────────────────────────────────────────────────────────────────────────────
BASE_LON = {  # arbitrary deterministic base angles per planet
    "sun": 10.0, "moon": 47.0, "mercury": 355.0, "venus": 130.0, "mars": 201.0,
    "jupiter": 262.0, "saturn": 300.0, "uranus": 33.0, "neptune": 88.0, "pluto": 160.0,
}
BASE_SPD = {  # constant speeds (deg/day)
    "sun": 0.9856, "moon": 13.1764, "mercury": 1.2, "venus": 1.0, "mars": 0.5,
    "jupiter": 0.08, "saturn": 0.03, "uranus": 0.01, "neptune": 0.006, "pluto": 0.004,
}
BASE_LAT = {  # ecliptic latitude (deg); pluto high enough to go out of bounds
    "sun": 0.0, "moon": 5.0, "mercury": -2.0, "venus": 3.0, "mars": 1.5,
    "jupiter": -1.0, "saturn": 2.0, "uranus": -0.5, "neptune": 1.0, "pluto": 15.0,
}


class FakeEphemeris:
    """Linear-motion planets, fixed 23.44° obliquity, Meeus GMST."""

    kernel_name = "fake"

    def __init__(self, missing: Iterable[str] = (), fail_obliquity: bool = False, obliquity: float = 23.44):
        self.missing = set(missing)
        self.fail_obliquity = fail_obliquity
        self.obliquity = obliquity
        self.calls = 0
        self.observers = []

    def body_position(self, jd: float, planet: str, observer: Optional[Observer] = None) -> EclipticPosition:
        self.calls += 1
        self.observers.append(observer)
        if planet in self.missing:
            raise EphemerisError("body", f"no data for {planet}", jd=jd)
        lon = (BASE_LON[planet] + BASE_SPD[planet] * (jd - J2000_JD)) % 360.0
        return EclipticPosition(lon, BASE_LAT[planet], 1.0, BASE_SPD[planet], 0.0, 0.0)

    def true_obliquity(self, jd: float) -> float:
        if self.fail_obliquity:
            raise EphemerisError("obliquity", "nutation unavailable", jd=jd)
        return self.obliquity

    def mean_obliquity(self, jd: float) -> float:
        return self.obliquity

    def sidereal_time_degrees(self, jd: float) -> float:
        return gmst_degrees(jd)


@pytest.fixture
def fake_adapter() -> FakeEphemeris:
    return FakeEphemeris()


@pytest.fixture
def make_adapter():
    def _make(**kwargs) -> FakeEphemeris:
        return FakeEphemeris(**kwargs)
    return _make


@pytest.fixture
def sample_equatorial():
    """Equatorial coordinates for all ten planets with spread RA and declination."""
    from astromap.core.transforms import EquatorialCoordinates
    ras = [10.0, 47.0, 355.0, 130.0, 201.0, 262.0, 300.0, 33.0, 88.0, 160.0]
    decs = [4.0, 18.0, -2.0, 21.5, -12.0, -23.0, -20.0, 13.0, 22.0, 8.0]
    return {p: EquatorialCoordinates(ra, dec) for p, ra, dec in zip(PLANET_IDS, ras, decs)}


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    """
    Ensure the process TZ is UTC so any library that *might* consult TZ
    (even though we pass IANA zones explicitly) is deterministic.
    """
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture(scope="session")
def ensure_erfa():
    """
    Fail early if pyERFA isn't importable or missing the functions we call.
    """
    import erfa
    for name in ("dtf2d", "obl06", "nut06a"):
        assert hasattr(erfa, name), f"ERFA.{name} not available"
    return erfa
