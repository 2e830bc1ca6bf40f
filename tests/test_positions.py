# tests/test_positions.py
from __future__ import annotations

import dataclasses
import math

import pytest
from hypothesis import given, strategies as st

from astromap.core.constants import CFG, J2000_JD, PLANET_IDS
from astromap.core.ephemeris_adapter import (
    Config,
    EphemerisError,
    SkyfieldEphemeris,
    approximate_mean_obliquity,
)
from astromap.core.positions import (
    calculate_all_positions,
    calculate_declinations,
    calculate_equatorial_positions,
    resolve_obliquity,
)
from astromap.core.validators import InvalidInputError


# ───────────────────────────── obliquity models ─────────────────────────────
def _iau2006_mean_obliquity(jd_tt: float) -> float:
    """IAU 2006 mean obliquity polynomial (arcseconds → degrees), as a reference."""
    T = (jd_tt - J2000_JD) / 36525.0
    eps0 = 84381.406 - 46.836769 * T - 0.0001831 * T**2 + 0.00200340 * T**3 \
        - 0.000000576 * T**4 - 0.0000000434 * T**5
    return eps0 / 3600.0


@given(st.floats(min_value=-36525.0, max_value=36525.0))
def test_linear_model_tracks_iau2006_within_a_century(days):
    jd = J2000_JD + days
    assert abs(approximate_mean_obliquity(jd) - _iau2006_mean_obliquity(jd)) < 1e-3


@given(st.floats(min_value=-36525.0, max_value=36525.0))
def test_erfa_mean_obliquity_is_iau2006(ensure_erfa, days):
    eps = math.degrees(float(ensure_erfa.obl06(J2000_JD, days)))
    assert eps == pytest.approx(_iau2006_mean_obliquity(J2000_JD + days), abs=1e-9)


# ───────────────────────────── positions ─────────────────────────────
def test_positions_in_canonical_order(fake_adapter):
    pos = calculate_all_positions(fake_adapter, J2000_JD)
    assert list(pos) == list(PLANET_IDS)
    assert pos["sun"].longitude == pytest.approx(10.0)


def test_positions_subset_and_unknown_planet(fake_adapter):
    pos = calculate_all_positions(fake_adapter, J2000_JD, planets=["Mars", "sun"])
    assert list(pos) == ["mars", "sun"]
    with pytest.raises(InvalidInputError):
        calculate_all_positions(fake_adapter, J2000_JD, planets=["vulcan"])


def test_positions_reject_non_finite_jd(fake_adapter):
    with pytest.raises(InvalidInputError):
        calculate_all_positions(fake_adapter, float("nan"))


def test_ephemeris_error_propagates(make_adapter):
    with pytest.raises(EphemerisError) as ei:
        calculate_all_positions(make_adapter(missing={"moon"}), J2000_JD)
    assert ei.value.stage == "body"
    assert ei.value.context["jd"] == J2000_JD


def test_sun_declination_from_ecliptic_longitude(fake_adapter):
    dec = calculate_declinations(fake_adapter, J2000_JD)
    eps = math.radians(23.44)
    expected = math.degrees(math.asin(math.sin(eps) * math.sin(math.radians(10.0))))
    assert dec["sun"] == pytest.approx(expected, abs=1e-9)


def test_equatorial_positions_keep_planet_keys(fake_adapter):
    pos = calculate_all_positions(fake_adapter, J2000_JD)
    eq = calculate_equatorial_positions(pos, 23.44)
    assert list(eq) == list(PLANET_IDS)
    assert all(0.0 <= e.right_ascension < 360.0 for e in eq.values())


# ───────────────────────────── obliquity resolution ─────────────────────────────
def test_true_obliquity_preferred(fake_adapter):
    assert resolve_obliquity(fake_adapter, J2000_JD) == (23.44, "true")


def test_no_adapter_requires_opt_in():
    with pytest.raises(EphemerisError):
        resolve_obliquity(None, J2000_JD)
    cfg = dataclasses.replace(CFG, use_approximate_obliquity=True)
    eps, source = resolve_obliquity(None, J2000_JD, cfg)
    assert source == "approximate"
    assert eps == pytest.approx(approximate_mean_obliquity(J2000_JD))


# ───────────────────────────── skyfield adapter guards ─────────────────────────────
def _offline(tmp_path) -> SkyfieldEphemeris:
    return SkyfieldEphemeris(Config(kernel_path=None, data_dir=str(tmp_path), allow_download=False))


def test_unsupported_body_rejected_before_loading(tmp_path):
    eph = _offline(tmp_path)
    with pytest.raises(EphemerisError) as ei:
        eph.body_position(J2000_JD, "chiron")
    assert ei.value.stage == "body"


def test_jd_outside_kernel_window(tmp_path):
    eph = _offline(tmp_path)
    with pytest.raises(EphemerisError) as ei:
        eph.true_obliquity(2300000.5)
    assert ei.value.stage == "range"


def test_missing_kernel_is_reported(tmp_path):
    eph = _offline(tmp_path)
    with pytest.raises(EphemerisError) as ei:
        eph.sidereal_time_degrees(J2000_JD)
    assert ei.value.stage == "kernel"
    assert ei.value.context["searched"].endswith("de421.bsp")
