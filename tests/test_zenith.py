# tests/test_zenith.py
from __future__ import annotations

import pytest

from astromap.core.zenith import (
    calculate_all_zenith_lines,
    calculate_zenith_bands,
    calculate_zenith_line,
    find_optimal_zenith_latitudes,
    find_zenith_overlaps,
    generate_zenith_band_points,
    get_zenith_band_intensity,
    score_latitude_for_zenith,
)


def test_zenith_line_band():
    z = calculate_zenith_line("sun", 20.0)
    assert (z.latitude, z.orb_min, z.orb_max) == (20.0, 19.0, 21.0)
    assert calculate_zenith_line("sun", 20.0, orb=2.0).orb_max == 22.0


def test_all_lines_follow_planet_order():
    lines = calculate_all_zenith_lines({"moon": 5.0, "sun": -3.0})
    assert [z.planet for z in lines] == ["sun", "moon"]


def test_bands_carry_weights():
    bands = calculate_zenith_bands({"sun": 20.0, "moon": -5.0}, {"sun": 4.0})
    assert [(b.planet, b.weight) for b in bands] == [("sun", 4.0), ("moon", 0.0)]


def test_pairwise_overlap():
    decs = {"sun": 20.0, "moon": 20.5, "mars": -10.0}
    overlaps = find_zenith_overlaps(decs, {"sun": 5.0, "moon": 3.0, "mars": 4.0})
    assert len(overlaps) == 1
    ov = overlaps[0]
    assert ov.latitude == pytest.approx(20.25)
    assert ov.planets == ("sun", "moon")
    assert ov.combined_weight == 8.0


def test_unweighted_planets_do_not_overlap():
    assert find_zenith_overlaps({"sun": 20.0, "moon": 20.5}, {"sun": 5.0, "moon": 0.0}) == []


def test_overlaps_cluster():
    decs = {"sun": 20.0, "moon": 20.5, "venus": 20.2}
    overlaps = find_zenith_overlaps(decs, {"sun": 5.0, "moon": 3.0, "venus": 2.0})
    assert len(overlaps) == 1
    assert set(overlaps[0].planets) == {"sun", "moon", "venus"}
    assert overlaps[0].combined_weight == 10.0


def test_overlaps_sorted_by_weight():
    decs = {"sun": 20.0, "moon": 20.5, "mars": -10.0, "venus": -10.4}
    overlaps = find_zenith_overlaps(decs, {"sun": 1.0, "moon": 1.0, "mars": 5.0, "venus": 5.0})
    assert [o.combined_weight for o in overlaps] == [10.0, 2.0]


def test_latitude_score_peaks_at_declination():
    lines = calculate_all_zenith_lines({"sun": 20.0, "moon": -40.0})
    s = score_latitude_for_zenith(20.0, lines, {"sun": 6.0, "moon": 1.0})
    assert s["contributions"][0]["planet"] == "sun"
    assert s["contributions"][0]["contribution"] == pytest.approx(6.0)


def test_optimal_zenith_latitudes():
    top = find_optimal_zenith_latitudes({"sun": 20.0}, {"sun": 10.0}, top_n=3)
    assert len(top) == 3
    assert top[0]["latitude"] == 20.0


def test_band_points_and_intensity():
    z = calculate_zenith_line("mars", -12.0)
    pts = generate_zenith_band_points(z)
    assert len(pts) == 73
    assert all(lat == -12.0 for lat, _ in pts)
    assert get_zenith_band_intensity(z, {"mars": 5.0}) == 0.5
    assert get_zenith_band_intensity(z, {"mars": 20.0}) == 1.0
