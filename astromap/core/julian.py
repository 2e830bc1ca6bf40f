# astromap/core/julian.py
# -----------------------------------------------------------------------------
# Julian Day helpers (civil calendar ↔ JD, zone-aware birth time → JD UT)
#
# Public API:
#   calendar_to_julian_day(year, month, day, hour=0.0) -> float
#   julian_day_to_calendar(jd) -> CalendarDate
#   date_to_julian_day(date_str, time_str, tz_name) -> float
#
# Guarantees:
#   • Meeus ch. 7; Julian calendar before 1582-10-15, Gregorian from it on.
#   • Civil time → UTC via zoneinfo (DST-aware); UTC → JD via erfa.dtf2d.
#   • JD returned is UT (the solver's only time representation).
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import math
import re

import erfa  # pyERFA

from astromap.core.validators import InvalidInputError, require_finite

__all__ = [
    "CalendarDate",
    "calendar_to_julian_day",
    "julian_day_to_calendar",
    "date_to_julian_day",
]

_DATE_RE = re.compile(r"^\s*(-?\d{1,4})-(\d{2})-(\d{2})\s*$")
_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2})(?:\.(?P<f>\d+))?)?\s*$")

# First Gregorian day, as a comparable (y, m, d) key
_GREGORIAN_START: Tuple[int, int, int] = (1582, 10, 15)


@dataclass(frozen=True)
class CalendarDate:
    year: int
    month: int
    day: int
    hour: float  # decimal hours, UT

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calendar_to_julian_day(year: int, month: int, day: int, hour: float = 0.0) -> float:
    hour = require_finite("hour", hour)
    y, m = int(year), int(month)
    if not 1 <= m <= 12:
        raise InvalidInputError({"loc": ["month"], "msg": f"month out of range: {m}", "type": "value_error"})
    if m <= 2:
        y -= 1
        m += 12
    if (int(year), int(month), int(day)) >= _GREGORIAN_START:
        a = math.floor(y / 100)
        b = 2 - a + math.floor(a / 4)
    else:
        b = 0
    return (
        math.floor(365.25 * (y + 4716))
        + math.floor(30.6001 * (m + 1))
        + int(day)
        + hour / 24.0
        + b
        - 1524.5
    )


def julian_day_to_calendar(jd: float) -> CalendarDate:
    jd = require_finite("jd", jd)
    z_f = jd + 0.5
    z = math.floor(z_f)
    f = z_f - z
    if z < 2299161:
        a = z
    else:
        alpha = math.floor((z - 1867216.25) / 36524.25)
        a = z + 1 + alpha - math.floor(alpha / 4)
    b = a + 1524
    c = math.floor((b - 122.1) / 365.25)
    d = math.floor(365.25 * c)
    e = math.floor((b - d) / 30.6001)

    day_f = b - d - math.floor(30.6001 * e) + f
    day = int(math.floor(day_f))
    hour = (day_f - day) * 24.0
    month = e - 1 if e < 14 else e - 13
    year = c - 4716 if month > 2 else c - 4715
    return CalendarDate(year=int(year), month=int(month), day=day, hour=hour)


def _parse_civil(date_str: str, time_str: str) -> Tuple[int, int, int, int, int, float]:
    dm = _DATE_RE.match(date_str or "")
    if not dm:
        raise InvalidInputError({"loc": ["date"], "msg": f"Invalid date '{date_str}': expected YYYY-MM-DD", "type": "value_error"})
    tm = _TIME_RE.match(time_str or "")
    if not tm:
        raise InvalidInputError({"loc": ["time"], "msg": f"Invalid time '{time_str}': expected HH:MM[:SS[.frac]]", "type": "value_error"})
    iy, im, iday = int(dm.group(1)), int(dm.group(2)), int(dm.group(3))
    ih, imin = int(tm.group("h")), int(tm.group("m"))
    sec = float(f"{tm.group('s') or '0'}.{tm.group('f') or '0'}")
    if not (0 <= ih <= 23 and 0 <= imin <= 59 and 0.0 <= sec < 60.0):
        raise InvalidInputError({"loc": ["time"], "msg": f"Invalid time fields in '{time_str}'", "type": "value_error"})
    return iy, im, iday, ih, imin, sec


def date_to_julian_day(date_str: str, time_str: str, tz_name: str = "UTC") -> float:
    """Civil date/time in an IANA zone → Julian Day (UT)."""
    iy, im, iday, ih, imin, sec = _parse_civil(date_str, time_str)
    try:
        tz = ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidInputError({"loc": ["timezone"], "msg": f"Unknown timezone '{tz_name}'", "type": "value_error"}) from None

    try:
        whole = int(sec)
        local = datetime(iy, im, iday, ih, imin, whole, int(round((sec - whole) * 1e6)) % 1_000_000, tzinfo=tz)
    except ValueError as e:
        raise InvalidInputError({"loc": ["date"], "msg": str(e), "type": "value_error"}) from None
    utc = local.astimezone(timezone.utc)

    d1, d2 = erfa.dtf2d(
        "UTC", utc.year, utc.month, utc.day, utc.hour, utc.minute,
        utc.second + utc.microsecond / 1e6,
    )
    return float(d1) + float(d2)
