# tests/test_grid.py
from __future__ import annotations

import pytest

from astromap.core.acg import ACGLine
from astromap.core.grid import (
    GridOptions,
    filter_grid_by_factor,
    filter_grid_by_planet,
    generate_scoring_grid,
    get_grid_statistics,
    get_top_locations,
)
from astromap.core.paran import ParanPoint
from astromap.core.validators import InvalidInputError

OPTS = GridOptions(lat_step=10.0, lon_step=90.0, lat_min=-20.0, lat_max=20.0)
SUN_MC = ACGLine("sun", "MC", False, tuple((float(lat), 0.0) for lat in range(-80, 81)))


def _cell(grid, lat, lon):
    return next(c for c in grid if c.latitude == lat and c.longitude == lon)


def test_grid_shape():
    grid = generate_scoring_grid({"sun": 0.0}, {"sun": 5.0}, [SUN_MC], [], OPTS)
    assert len(grid) == 20
    assert grid[0].latitude == -20.0 and grid[0].longitude == -180.0


def test_dominant_factor_resolution():
    grid = generate_scoring_grid({"sun": 0.0}, {"sun": 5.0}, [SUN_MC], [], OPTS)
    tie = _cell(grid, 0.0, 0.0)
    assert tie.zenith_contribution == pytest.approx(5.0)
    assert tie.acg_contribution == pytest.approx(5.0)
    assert tie.dominant_factor == "mixed" and tie.dominant_planet is None

    zen = _cell(grid, 0.0, 90.0)
    assert (zen.dominant_factor, zen.dominant_planet) == ("zenith", "sun")

    acg = _cell(grid, 20.0, 0.0)
    assert (acg.dominant_factor, acg.dominant_planet) == ("acg", "sun")
    assert acg.score == pytest.approx(acg.zenith_contribution + acg.acg_contribution + acg.paran_contribution)


def test_paran_dominated_cell_picks_heavier_planet():
    parans = [ParanPoint("sun", "rise", "moon", "culminate", 20.0, 1.0)]
    grid = generate_scoring_grid({"sun": -60.0}, {"sun": 5.0, "moon": 3.0}, [], parans, OPTS)
    cell = _cell(grid, 20.0, 90.0)
    assert cell.paran_contribution == pytest.approx(4.0)
    assert (cell.dominant_factor, cell.dominant_planet) == ("paran", "sun")


def test_unweighted_grid_is_mixed():
    grid = generate_scoring_grid({"sun": 0.0}, {}, [SUN_MC], [], OPTS)
    assert {c.dominant_factor for c in grid} == {"mixed"}


def test_grid_queries():
    grid = generate_scoring_grid({"sun": 0.0}, {"sun": 5.0}, [SUN_MC], [], OPTS)
    top = get_top_locations(grid, 1)[0]
    assert (top.latitude, top.longitude) == (0.0, 0.0)
    assert all(c.dominant_factor == "acg" for c in filter_grid_by_factor(grid, "acg"))
    assert all(c.dominant_planet == "sun" for c in filter_grid_by_planet(grid, "sun"))
    with pytest.raises(InvalidInputError):
        filter_grid_by_factor(grid, "latitude")


def test_grid_statistics():
    grid = generate_scoring_grid({"sun": 0.0}, {"sun": 5.0}, [SUN_MC], [], OPTS)
    stats = get_grid_statistics(grid)
    assert stats["total_cells"] == 20
    assert sum(stats["by_factor"].values()) == 20
    assert stats["max_score"] == pytest.approx(10.0)
    assert get_grid_statistics([])["total_cells"] == 0


def test_full_circle_has_no_duplicate_meridian():
    grid = generate_scoring_grid({"sun": 0.0}, {"sun": 5.0}, [SUN_MC], [], OPTS)
    lons = sorted({c.longitude for c in grid if c.latitude == 0.0})
    assert lons == [-180.0, -90.0, 0.0, 90.0]
    assert len(grid) == len({(c.latitude, c.longitude) for c in grid})


def test_partial_longitude_range_keeps_both_ends():
    opts = GridOptions(lat_step=10.0, lon_step=30.0, lat_min=0.0, lat_max=0.0, lon_min=-30.0, lon_max=30.0)
    grid = generate_scoring_grid({"sun": 0.0}, {"sun": 5.0}, [], [], opts)
    assert [c.longitude for c in grid] == [-30.0, 0.0, 30.0]
