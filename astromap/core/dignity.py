# astromap/core/dignity.py
# -*- coding: utf-8 -*-
"""
Essential dignity scoring (tropical zodiac).

Public API
----------
longitude_to_sign_position(lon)                         -> SignPosition
get_triplicity_status(planet, sign, is_day)             -> "day" | "night" | "participating" | None
get_term_ruler(sign, degree, system="egyptian")         -> planet id
get_decan_ruler(sign, degree)                           -> planet id
calculate_dignity(planet, lon, is_day=True, term_system="egyptian")  -> DignityScore
calculate_all_dignities(longitudes, is_day=True, term_system="egyptian") -> {planet: DignityScore}
dignity_indicator(score) / summary_indicator(score)     -> one-character code
format_dignity_score(score)                             -> "+5 (R)"
rank_planets_by_dignity / get_strong_planets / get_weak_planets
is_day_chart(sun_lon, ascendant) / sect_from_sun_altitude(alt) / sect_modifier(planet, sect)

Points
------
domicile +5, exaltation +4, triplicity +3, terms +2, face +1,
detriment -5, fall -4, peregrine -5 (no dignity and no debility).

Triplicity follows the Dorothean rulers; terms default to the Egyptian table.
Sun, Moon and the modern planets never rule terms.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple
import math

from astromap.core.astromath import normalize_degrees
from astromap.core.constants import PLANET_IDS
from astromap.core.validators import InvalidInputError, _err, require_finite, require_planet

__all__ = [
    "ZODIAC_SIGNS", "DIGNITY_POINTS", "TERM_SYSTEMS", "SECTS",
    "DOMICILE", "EXALTATION", "DETRIMENT", "FALL", "SIGN_ELEMENTS", "TRIPLICITY",
    "EGYPTIAN_TERMS", "PTOLEMAIC_TERMS", "DECANS", "SECT_PLANETS",
    "SignPosition", "DignityScore",
    "longitude_to_sign_position", "get_triplicity_status", "get_term_ruler", "get_decan_ruler",
    "calculate_dignity", "calculate_all_dignities",
    "dignity_indicator", "summary_indicator", "format_dignity_score",
    "rank_planets_by_dignity", "get_strong_planets", "get_weak_planets",
    "is_day_chart", "sect_from_sun_altitude", "sect_modifier",
]

SECTS: Tuple[str, ...] = ("day", "night")
TERM_SYSTEMS: Tuple[str, ...] = ("egyptian", "ptolemaic")

ZODIAC_SIGNS: Tuple[str, ...] = (
    "aries", "taurus", "gemini", "cancer", "leo", "virgo",
    "libra", "scorpio", "sagittarius", "capricorn", "aquarius", "pisces",
)

DIGNITY_POINTS: Dict[str, int] = {
    "domicile": 5,
    "exaltation": 4,
    "triplicity": 3,
    "terms": 2,
    "face": 1,
    "detriment": -5,
    "fall": -4,
    "peregrine": -5,
}

# ── rulership tables ─────────────────────────────────────────────────────────
# traditional ruler first; the modern co-ruler follows
DOMICILE: Dict[str, Tuple[str, ...]] = {
    "aries": ("mars",),
    "taurus": ("venus",),
    "gemini": ("mercury",),
    "cancer": ("moon",),
    "leo": ("sun",),
    "virgo": ("mercury",),
    "libra": ("venus",),
    "scorpio": ("mars", "pluto"),
    "sagittarius": ("jupiter",),
    "capricorn": ("saturn",),
    "aquarius": ("saturn", "uranus"),
    "pisces": ("jupiter", "neptune"),
}

# planet → (sign, exact degree)
EXALTATION: Dict[str, Tuple[str, int]] = {
    "sun": ("aries", 19),
    "moon": ("taurus", 3),
    "mercury": ("virgo", 15),
    "venus": ("pisces", 27),
    "mars": ("capricorn", 28),
    "jupiter": ("cancer", 15),
    "saturn": ("libra", 21),
    "uranus": ("scorpio", 15),
    "neptune": ("cancer", 15),
    "pluto": ("leo", 15),
}

DETRIMENT: Dict[str, Tuple[str, ...]] = {
    "sun": ("aquarius",),
    "moon": ("capricorn",),
    "mercury": ("sagittarius", "pisces"),
    "venus": ("aries", "scorpio"),
    "mars": ("taurus", "libra"),
    "jupiter": ("gemini", "virgo"),
    "saturn": ("cancer", "leo"),
    "uranus": ("leo",),
    "neptune": ("virgo",),
    "pluto": ("taurus",),
}

FALL: Dict[str, str] = {
    "sun": "libra",
    "moon": "scorpio",
    "mercury": "pisces",
    "venus": "virgo",
    "mars": "cancer",
    "jupiter": "capricorn",
    "saturn": "aries",
    "uranus": "taurus",
    "neptune": "capricorn",
    "pluto": "aquarius",
}

SIGN_ELEMENTS: Dict[str, str] = {
    s: ("fire", "earth", "air", "water")[i % 4] for i, s in enumerate(ZODIAC_SIGNS)
}

# element → (day ruler, night ruler, participating ruler)
TRIPLICITY: Dict[str, Tuple[str, str, str]] = {
    "fire": ("sun", "jupiter", "saturn"),
    "earth": ("venus", "moon", "mars"),
    "air": ("saturn", "mercury", "jupiter"),
    "water": ("venus", "mars", "moon"),
}

# ── terms (bounds) ───────────────────────────────────────────────────────────
# sign → ((ruler, end degree exclusive), ...) covering 0..30
EGYPTIAN_TERMS: Dict[str, Tuple[Tuple[str, int], ...]] = {
    "aries": (("jupiter", 6), ("venus", 12), ("mercury", 20), ("mars", 25), ("saturn", 30)),
    "taurus": (("venus", 8), ("mercury", 14), ("jupiter", 22), ("saturn", 27), ("mars", 30)),
    "gemini": (("mercury", 6), ("jupiter", 12), ("venus", 17), ("mars", 24), ("saturn", 30)),
    "cancer": (("mars", 7), ("venus", 13), ("mercury", 19), ("jupiter", 26), ("saturn", 30)),
    "leo": (("jupiter", 6), ("venus", 11), ("saturn", 18), ("mercury", 24), ("mars", 30)),
    "virgo": (("mercury", 7), ("venus", 17), ("jupiter", 21), ("mars", 28), ("saturn", 30)),
    "libra": (("saturn", 6), ("mercury", 14), ("jupiter", 21), ("venus", 28), ("mars", 30)),
    "scorpio": (("mars", 7), ("venus", 11), ("mercury", 19), ("jupiter", 24), ("saturn", 30)),
    "sagittarius": (("jupiter", 12), ("venus", 17), ("mercury", 21), ("saturn", 26), ("mars", 30)),
    "capricorn": (("mercury", 7), ("jupiter", 14), ("venus", 22), ("saturn", 26), ("mars", 30)),
    "aquarius": (("mercury", 7), ("venus", 13), ("jupiter", 20), ("mars", 25), ("saturn", 30)),
    "pisces": (("venus", 12), ("jupiter", 16), ("mercury", 19), ("mars", 28), ("saturn", 30)),
}

PTOLEMAIC_TERMS: Dict[str, Tuple[Tuple[str, int], ...]] = {
    "aries": (("jupiter", 6), ("venus", 14), ("mercury", 21), ("mars", 26), ("saturn", 30)),
    "taurus": (("venus", 8), ("mercury", 15), ("jupiter", 22), ("saturn", 26), ("mars", 30)),
    "gemini": (("mercury", 7), ("jupiter", 14), ("venus", 21), ("saturn", 25), ("mars", 30)),
    "cancer": (("mars", 6), ("jupiter", 13), ("mercury", 20), ("venus", 27), ("saturn", 30)),
    "leo": (("saturn", 6), ("mercury", 13), ("venus", 19), ("jupiter", 25), ("mars", 30)),
    "virgo": (("mercury", 7), ("venus", 13), ("jupiter", 18), ("saturn", 24), ("mars", 30)),
    "libra": (("saturn", 6), ("venus", 11), ("jupiter", 19), ("mercury", 24), ("mars", 30)),
    "scorpio": (("mars", 6), ("jupiter", 14), ("venus", 21), ("mercury", 27), ("saturn", 30)),
    "sagittarius": (("jupiter", 8), ("venus", 14), ("mercury", 19), ("saturn", 25), ("mars", 30)),
    "capricorn": (("venus", 6), ("mercury", 12), ("jupiter", 19), ("mars", 25), ("saturn", 30)),
    "aquarius": (("saturn", 6), ("mercury", 12), ("venus", 20), ("jupiter", 25), ("mars", 30)),
    "pisces": (("venus", 8), ("jupiter", 14), ("mercury", 20), ("mars", 26), ("saturn", 30)),
}

_TERM_TABLES = {"egyptian": EGYPTIAN_TERMS, "ptolemaic": PTOLEMAIC_TERMS}
_NO_TERMS = frozenset({"sun", "moon", "uranus", "neptune", "pluto"})

# ── faces (decans) ───────────────────────────────────────────────────────────
DECANS: Dict[str, Tuple[str, str, str]] = {
    "aries": ("mars", "sun", "venus"),
    "taurus": ("mercury", "moon", "saturn"),
    "gemini": ("jupiter", "mars", "sun"),
    "cancer": ("venus", "mercury", "moon"),
    "leo": ("saturn", "jupiter", "mars"),
    "virgo": ("sun", "venus", "mercury"),
    "libra": ("moon", "saturn", "jupiter"),
    "scorpio": ("mars", "sun", "venus"),
    "sagittarius": ("mercury", "moon", "saturn"),
    "capricorn": ("jupiter", "mars", "sun"),
    "aquarius": ("venus", "mercury", "moon"),
    "pisces": ("saturn", "jupiter", "mars"),
}

# ── sect ─────────────────────────────────────────────────────────────────────
SECT_PLANETS: Dict[str, Optional[str]] = {
    "sun": "day", "jupiter": "day", "saturn": "day",
    "moon": "night", "venus": "night", "mars": "night",
    "mercury": None, "uranus": None, "neptune": None, "pluto": None,
}


# ── values ───────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SignPosition:
    sign: str
    sign_index: int
    degree: int
    minute: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DignityScore:
    planet: str
    sign: str
    domicile: int = 0
    exaltation: int = 0
    triplicity: int = 0
    terms: int = 0
    face: int = 0
    detriment: int = 0
    fall: int = 0
    peregrine: int = 0
    breakdown: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return (self.domicile + self.exaltation + self.triplicity + self.terms + self.face
                + self.detriment + self.fall + self.peregrine)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["breakdown"] = list(self.breakdown)
        d["total"] = self.total
        return d


# ── lookups ──────────────────────────────────────────────────────────────────
def _require_sign(sign: str) -> str:
    if sign not in DOMICILE:
        raise InvalidInputError(_err(["sign"], f"unknown zodiac sign '{sign}'"))
    return sign


def longitude_to_sign_position(lon: float) -> SignPosition:
    L = normalize_degrees(require_finite("longitude", lon))
    idx = int(L // 30.0) % 12
    within = L - 30.0 * idx
    degree = int(math.floor(within))
    minute = int(math.floor((within - degree) * 60.0))
    return SignPosition(sign=ZODIAC_SIGNS[idx], sign_index=idx, degree=degree, minute=minute)


def get_triplicity_status(planet: str, sign: str, is_day: bool) -> Optional[str]:
    day, night, participating = TRIPLICITY[SIGN_ELEMENTS[_require_sign(sign)]]
    if is_day and planet == day:
        return "day"
    if not is_day and planet == night:
        return "night"
    if planet == participating:
        return "participating"
    return None


def get_term_ruler(sign: str, degree: float, system: str = "egyptian") -> str:
    table = _TERM_TABLES.get(system)
    if table is None:
        raise InvalidInputError(_err(["term_system"], f"unknown term system '{system}'"))
    bounds = table[_require_sign(sign)]
    for ruler, end in bounds:
        if degree < end:
            return ruler
    return bounds[-1][0]


def get_decan_ruler(sign: str, degree: float) -> str:
    return DECANS[_require_sign(sign)][min(int(degree // 10.0), 2)]


# ── scoring ──────────────────────────────────────────────────────────────────
def calculate_dignity(
    planet: str,
    lon: float,
    is_day: bool = True,
    term_system: str = "egyptian",
) -> DignityScore:
    p = require_planet(planet)
    pos = longitude_to_sign_position(lon)
    sign, degree = pos.sign, pos.degree

    pts: Dict[str, int] = {}
    if p in DOMICILE[sign]:
        pts["domicile"] = DIGNITY_POINTS["domicile"]
    if EXALTATION[p][0] == sign:
        pts["exaltation"] = DIGNITY_POINTS["exaltation"]
    if get_triplicity_status(p, sign, is_day) is not None:
        pts["triplicity"] = DIGNITY_POINTS["triplicity"]
    if p not in _NO_TERMS and get_term_ruler(sign, degree, term_system) == p:
        pts["terms"] = DIGNITY_POINTS["terms"]
    if get_decan_ruler(sign, degree) == p:
        pts["face"] = DIGNITY_POINTS["face"]
    if sign in DETRIMENT[p]:
        pts["detriment"] = DIGNITY_POINTS["detriment"]
    if FALL[p] == sign:
        pts["fall"] = DIGNITY_POINTS["fall"]
    if not pts:
        pts["peregrine"] = DIGNITY_POINTS["peregrine"]

    breakdown = tuple(f"{k.capitalize()} ({v:+d})" for k, v in pts.items())
    return DignityScore(planet=p, sign=sign, breakdown=breakdown, **pts)


def calculate_all_dignities(
    longitudes: Mapping[str, float],
    is_day: bool = True,
    term_system: str = "egyptian",
) -> Dict[str, DignityScore]:
    """Score every planet present in `longitudes`, in canonical order."""
    return {
        p: calculate_dignity(p, longitudes[p], is_day, term_system)
        for p in PLANET_IDS if p in longitudes
    }


# ── display ──────────────────────────────────────────────────────────────────
def dignity_indicator(score: DignityScore) -> str:
    """R ruler, E exalted, T triplicity, t terms, F face, d detriment, f fall, p peregrine."""
    for attr, code in (
        ("domicile", "R"), ("exaltation", "E"), ("triplicity", "T"), ("terms", "t"),
        ("face", "F"), ("detriment", "d"), ("fall", "f"), ("peregrine", "p"),
    ):
        if getattr(score, attr):
            return code
    return "-"


def summary_indicator(score: DignityScore) -> str:
    """Major dignities only: R, E, d, f, else '-'."""
    for attr, code in (("domicile", "R"), ("exaltation", "E"), ("detriment", "d"), ("fall", "f")):
        if getattr(score, attr):
            return code
    return "-"


def format_dignity_score(score: DignityScore) -> str:
    return f"{score.total:+d} ({dignity_indicator(score)})"


def rank_planets_by_dignity(dignities: Mapping[str, DignityScore]) -> List[DignityScore]:
    ordered = [dignities[p] for p in PLANET_IDS if p in dignities]
    return sorted(ordered, key=lambda s: -s.total)


def get_strong_planets(dignities: Mapping[str, DignityScore]) -> List[str]:
    return [p for p in PLANET_IDS if p in dignities and dignities[p].total > 0]


def get_weak_planets(dignities: Mapping[str, DignityScore]) -> List[str]:
    return [p for p in PLANET_IDS if p in dignities and dignities[p].total < 0]


# ── sect ─────────────────────────────────────────────────────────────────────
def is_day_chart(sun_lon: float, ascendant: float) -> bool:
    """
    True when the Sun is above the horizon, i.e. in houses 7..12.

    Ecliptic longitude increases from the ASC down through the IC, so the
    upper hemisphere is the arc from the DSC forward to the ASC. A Sun
    exactly on the ASC counts as risen.
    """
    d = normalize_degrees(require_finite("sun_longitude", sun_lon) - require_finite("ascendant", ascendant))
    return d == 0.0 or d >= 180.0


def sect_from_sun_altitude(altitude: float) -> str:
    return "day" if require_finite("altitude", altitude) >= 0.0 else "night"


def sect_modifier(planet: str, sect: str) -> int:
    """+1 in sect, -1 out of sect, 0 for Mercury and the modern planets."""
    if sect not in SECTS:
        raise InvalidInputError(_err(["sect"], f"unknown sect '{sect}'"))
    home = SECT_PLANETS[require_planet(planet)]
    if home is None:
        return 0
    return 1 if home == sect else -1
