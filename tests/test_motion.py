# tests/test_motion.py
from __future__ import annotations

import dataclasses
import math

import pytest

from astromap.core.constants import CFG, PLANET_IDS
from astromap.core.motion import (
    MotionSample,
    PlanetSpeed,
    calculate_planet_speeds,
    calculate_single_planet_speed,
    can_go_retrograde,
    find_next_direct_station,
    find_next_retrograde_station,
    format_speed,
    make_position_sampler,
)
from astromap.core.validators import InvalidInputError

OMEGA = 2.0 * math.pi / 100.0


def _mars_lon(t: float) -> float:
    # mean motion 0.1°/day plus an epicycle strong enough to turn retrograde
    return (100.0 + 0.1 * t + 2.0 * math.sin(OMEGA * t)) % 360.0


def sampler(t: float):
    return {
        "sun": MotionSample((359.9 + 0.2 * t) % 360.0, 0.0),
        "mars": MotionSample(_mars_lon(t), 0.01 * t),
    }


def test_speeds_use_central_difference():
    speeds = calculate_planet_speeds(sampler, 0.0, step=0.5)
    assert set(speeds) == {"sun", "mars"}
    assert speeds["mars"].longitude_speed == pytest.approx(0.1 + 2.0 * OMEGA, abs=1e-3)
    assert speeds["mars"].declination_speed == pytest.approx(0.01)
    assert not speeds["mars"].is_retrograde


def test_speed_across_zero_aries():
    # longitude runs 359.8 → 0.0 over the step; speed stays +0.2
    sp = calculate_single_planet_speed(sampler, "sun", 0.0, step=0.5)
    assert sp.longitude_speed == pytest.approx(0.2)


def test_retrograde_and_stationary_flags():
    sp = calculate_single_planet_speed(sampler, "mars", 50.0)
    assert sp.is_retrograde
    near_station = math.acos(-0.1 / (2.0 * OMEGA)) / OMEGA
    st = calculate_single_planet_speed(sampler, "mars", near_station)
    assert st.is_stationary


def test_step_must_be_positive():
    with pytest.raises(InvalidInputError):
        calculate_planet_speeds(sampler, 0.0, step=0.0)


def test_station_search():
    retro = math.acos(-0.1 / (2.0 * OMEGA)) / OMEGA
    direct = (2.0 * math.pi - math.acos(-0.1 / (2.0 * OMEGA))) / OMEGA
    assert find_next_retrograde_station(sampler, "mars", 0.0) == pytest.approx(retro, abs=0.01)
    assert find_next_direct_station(sampler, "mars", 45.0) == pytest.approx(direct, abs=0.01)


def test_luminaries_never_station():
    assert not can_go_retrograde("moon")
    assert can_go_retrograde("pluto")
    assert find_next_retrograde_station(sampler, "sun", 0.0) is None


def test_format_speed():
    assert format_speed(PlanetSpeed("mars", -0.5, 0.0, True, True)) == "R -0.50°/day (Sta)"
    assert format_speed(PlanetSpeed("mars", 0.5, 0.0, False, False)) == "+0.50°/day"


def test_sampler_from_adapter(fake_adapter):
    sample = make_position_sampler(fake_adapter)(2451545.0)
    assert list(sample) == list(PLANET_IDS)
    assert sample["sun"].longitude == pytest.approx(10.0)


def test_sampler_restricted_planets(fake_adapter):
    sample = make_position_sampler(fake_adapter, planets=("sun", "moon"))(2451545.0)
    assert set(sample) == {"sun", "moon"}


def test_station_search_uses_configured_step():
    seen = []

    def recording(t):
        seen.append(t)
        return sampler(t)

    cfg = dataclasses.replace(CFG, speed_step_days=2.0)
    root = find_next_retrograde_station(recording, "mars", 0.0, cfg=cfg)
    assert seen[:2] == [-2.0, 2.0]
    assert root == pytest.approx(math.acos(-0.1 / (2.0 * OMEGA)) / OMEGA, abs=0.5)
