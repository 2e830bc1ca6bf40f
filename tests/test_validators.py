# tests/test_validators.py
from __future__ import annotations

import pytest

from astromap.core.constants import PLANET_IDS
from astromap.core.validators import (
    InvalidInputError,
    parse_weights,
    require_event,
    require_finite,
    require_latitude,
    require_planet,
)


def test_parse_weights_fills_missing_planets():
    w = parse_weights({"Sun": 3, "moon": "2.5"})
    assert list(w) == list(PLANET_IDS)
    assert w["sun"] == 3.0 and w["moon"] == 2.5 and w["pluto"] == 0.0
    assert parse_weights(None) == {p: 0.0 for p in PLANET_IDS}


def test_parse_weights_collects_all_errors():
    with pytest.raises(InvalidInputError) as ei:
        parse_weights({"sun": -1, "ceres": 2, "moon": float("inf")})
    locs = [e["loc"] for e in ei.value.errors()]
    assert ["weights", "sun"] in locs
    assert ["weights", "ceres"] in locs
    assert len(locs) == 3


@pytest.mark.parametrize("bad", [None, float("nan"), "abc", True])
def test_require_finite_rejects(bad):
    with pytest.raises(InvalidInputError):
        require_finite("x", bad)


def test_domain_checks():
    assert require_latitude(-90) == -90.0
    with pytest.raises(InvalidInputError):
        require_latitude(90.5)
    assert require_planet(" Mars ") == "mars"
    with pytest.raises(InvalidInputError):
        require_planet("vulcan")
    assert require_event("RISE") == "rise"
    with pytest.raises(InvalidInputError):
        require_event("noon")
