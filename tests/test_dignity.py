# tests/test_dignity.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from astromap.core.constants import PLANET_IDS
from astromap.core.dignity import (
    DIGNITY_POINTS,
    calculate_all_dignities,
    calculate_dignity,
    dignity_indicator,
    format_dignity_score,
    get_decan_ruler,
    get_strong_planets,
    get_term_ruler,
    get_triplicity_status,
    get_weak_planets,
    is_day_chart,
    longitude_to_sign_position,
    rank_planets_by_dignity,
    sect_from_sun_altitude,
    sect_modifier,
    summary_indicator,
)
from astromap.core.validators import InvalidInputError


# ───────────────────────────── sign positions ─────────────────────────────
@pytest.mark.parametrize("lon, sign, degree, minute", [
    (0.0, "aries", 0, 0),
    (45.5, "taurus", 15, 30),
    (359.5, "pisces", 29, 30),
    (-0.5, "pisces", 29, 30),
    (360.0, "aries", 0, 0),
])
def test_longitude_to_sign_position(lon, sign, degree, minute):
    pos = longitude_to_sign_position(lon)
    assert (pos.sign, pos.degree, pos.minute) == (sign, degree, minute)


def test_non_finite_longitude_rejected():
    with pytest.raises(InvalidInputError):
        calculate_dignity("sun", float("nan"))


# ───────────────────────────── lookups ─────────────────────────────
def test_term_boundaries_are_exclusive():
    assert get_term_ruler("aries", 5.99) == "jupiter"
    assert get_term_ruler("aries", 6) == "venus"
    assert get_term_ruler("aries", 13) == "mercury"
    assert get_term_ruler("aries", 13, "ptolemaic") == "venus"
    with pytest.raises(InvalidInputError):
        get_term_ruler("aries", 3, "chaldean")


def test_decan_and_triplicity_lookups():
    assert [get_decan_ruler("aries", d) for d in (0, 10, 29.9)] == ["mars", "sun", "venus"]
    assert get_triplicity_status("sun", "leo", True) == "day"
    assert get_triplicity_status("jupiter", "leo", False) == "night"
    assert get_triplicity_status("saturn", "leo", True) == "participating"
    assert get_triplicity_status("sun", "leo", False) is None
    with pytest.raises(InvalidInputError):
        get_decan_ruler("ophiuchus", 5)


# ───────────────────────────── scoring ─────────────────────────────
def test_domicile_and_face():
    s = calculate_dignity("mars", 5.0)
    assert s.total == 6
    assert s.breakdown == ("Domicile (+5)", "Face (+1)")
    assert dignity_indicator(s) == "R"
    assert format_dignity_score(s) == "+6 (R)"


def test_exaltation_with_triplicity_and_face():
    s = calculate_dignity("sun", 10.0)
    assert s.sign == "aries"
    assert (s.exaltation, s.triplicity, s.face) == (4, 3, 1)
    assert s.total == 8
    assert summary_indicator(s) == "E"


@pytest.mark.parametrize("planet, lon, day_total, night_total", [
    ("saturn", 195.0, 8, 5),   # libra: exalted, air day ruler, own face
    ("moon", 33.0, 4, 7),      # taurus: exalted, earth night ruler
    ("mercury", 65.0, 7, 10),  # gemini: ruler, own terms, air night ruler
])
def test_triplicity_follows_sect(planet, lon, day_total, night_total):
    assert calculate_dignity(planet, lon, is_day=True).total == day_total
    assert calculate_dignity(planet, lon, is_day=False).total == night_total


def test_debilities_suppress_peregrine():
    fall = calculate_dignity("sun", 190.0)
    assert (fall.fall, fall.peregrine, fall.total) == (-4, 0, -4)
    assert summary_indicator(fall) == "f"

    detriment = calculate_dignity("sun", 310.0)
    assert (detriment.detriment, detriment.peregrine, detriment.total) == (-5, 0, -5)
    assert summary_indicator(detriment) == "d"


def test_peregrine_planet():
    s = calculate_dignity("uranus", 100.0)
    assert s.breakdown == ("Peregrine (-5)",)
    assert dignity_indicator(s) == "p"
    assert summary_indicator(s) == "-"
    assert format_dignity_score(s) == "-5 (p)"


def test_luminaries_and_modern_planets_have_no_terms():
    # 0-6 aries belongs to jupiter; 19 aries is the sun's exaltation degree
    assert calculate_dignity("sun", 19.0).terms == 0
    assert calculate_dignity("pluto", 140.0).terms == 0
    assert calculate_dignity("jupiter", 3.0).terms == DIGNITY_POINTS["terms"]


@given(
    st.sampled_from(PLANET_IDS),
    st.floats(min_value=0.0, max_value=359.999, allow_nan=False),
    st.booleans(),
)
def test_total_is_sum_of_components(planet, lon, is_day):
    s = calculate_dignity(planet, lon, is_day)
    parts = [s.domicile, s.exaltation, s.triplicity, s.terms, s.face, s.detriment, s.fall]
    assert s.total == sum(parts) + s.peregrine
    assert (s.peregrine == DIGNITY_POINTS["peregrine"]) == (not any(parts))
    assert len(s.breakdown) == sum(1 for x in parts + [s.peregrine] if x)


def test_all_dignities_and_rankings():
    lons = {"uranus": 100.0, "mars": 5.0, "sun": 190.0}
    d = calculate_all_dignities(lons)
    assert list(d) == ["sun", "mars", "uranus"]
    assert [s.planet for s in rank_planets_by_dignity(d)] == ["mars", "sun", "uranus"]
    assert get_strong_planets(d) == ["mars"]
    assert get_weak_planets(d) == ["sun", "uranus"]
    assert d["mars"].to_dict()["total"] == 6
    assert calculate_all_dignities({"vulcan": 10.0}) == {}
    with pytest.raises(InvalidInputError):
        calculate_dignity("vulcan", 10.0)


# ───────────────────────────── sect ─────────────────────────────
@pytest.mark.parametrize("sun, asc, day", [
    (100.0, 0.0, False),   # sun near the IC
    (270.0, 0.0, True),    # sun near the MC
    (0.0, 0.0, True),      # rising
    (10.0, 350.0, False),
    (300.0, 350.0, True),
])
def test_day_chart_from_ascendant(sun, asc, day):
    assert is_day_chart(sun, asc) is day


def test_sect_from_altitude_and_modifiers():
    assert sect_from_sun_altitude(0.0) == "day"
    assert sect_from_sun_altitude(-0.1) == "night"
    assert sect_modifier("sun", "day") == 1
    assert sect_modifier("sun", "night") == -1
    assert sect_modifier("venus", "night") == 1
    assert sect_modifier("mercury", "day") == 0
    with pytest.raises(InvalidInputError):
        sect_modifier("sun", "dusk")


def test_summary_indicator_ranks_fall_above_minor_dignities():
    # cancer 18 by night: mars holds the water triplicity but is in its fall
    s = calculate_dignity("mars", 108.75, is_day=False)
    assert (s.triplicity, s.fall, s.total) == (3, -4, -1)
    assert dignity_indicator(s) == "T"
    assert summary_indicator(s) == "f"
