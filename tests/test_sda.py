# tests/test_sda.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from astromap.core.sda import (
    ALWAYS_DOWN,
    ALWAYS_UP,
    calculate_sda,
    get_circumpolar_latitude,
    get_diurnal_arc_hours,
    get_nocturnal_arc_hours,
    get_rise_set_latitude_range,
    hour_angle_at_altitude,
)
from astromap.core.validators import InvalidInputError


@given(st.floats(min_value=-89.0, max_value=89.0))
def test_equator_declination_has_quarter_arc(lat):
    assert calculate_sda(lat, 0.0).sda == pytest.approx(90.0)


def test_summer_declination_mid_latitude():
    r = calculate_sda(40.0, 23.0)
    assert 90.0 < r.sda < 120.0
    assert r.rise_ha == pytest.approx(-r.sda)
    assert r.set_ha == pytest.approx(r.sda)
    assert r.crosses_horizon


def test_circumpolar_and_never_rising():
    up = calculate_sda(70.0, 80.0)
    assert up.never_sets and not up.never_rises
    assert up.sda == 180.0 and up.rise_ha is None

    down = calculate_sda(70.0, -80.0)
    assert down.never_rises
    assert down.sda == 0.0 and down.set_ha is None


def test_pole_uses_declination_sign():
    assert calculate_sda(90.0, 10.0).never_sets
    assert calculate_sda(90.0, -10.0).never_rises
    assert calculate_sda(-90.0, 10.0).never_rises
    assert calculate_sda(90.0, 0.0).never_rises


@given(
    st.floats(min_value=-60.0, max_value=60.0),
    st.floats(min_value=-25.0, max_value=25.0),
)
def test_diurnal_plus_nocturnal_is_a_day(lat, dec):
    assert get_diurnal_arc_hours(lat, dec) + get_nocturnal_arc_hours(lat, dec) == pytest.approx(24.0)


def test_arc_sentinels():
    assert get_diurnal_arc_hours(70.0, 80.0) == ALWAYS_UP
    assert get_nocturnal_arc_hours(70.0, 80.0) == ALWAYS_DOWN
    assert get_diurnal_arc_hours(70.0, -80.0) == ALWAYS_DOWN


def test_circumpolar_thresholds():
    north = get_circumpolar_latitude(20.0)
    assert north["never_sets_above"] == pytest.approx(70.0)
    assert north["never_rises_above"] == pytest.approx(-70.0)
    assert north["can_be_circumpolar"]
    assert not get_circumpolar_latitude(0.0)["can_be_circumpolar"]
    assert get_rise_set_latitude_range(23.0) == (pytest.approx(-67.0), pytest.approx(67.0))


def test_hour_angle_at_horizon_matches_sda():
    assert hour_angle_at_altitude(40.0, 23.0, 0.0) == pytest.approx(calculate_sda(40.0, 23.0).sda)
    assert hour_angle_at_altitude(40.0, 0.0, 80.0) is None


def test_latitude_out_of_range():
    with pytest.raises(InvalidInputError):
        calculate_sda(91.0, 0.0)
