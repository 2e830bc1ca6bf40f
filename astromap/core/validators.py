# astromap/core/validators.py
from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Union

from astromap.core.constants import PLANET_IDS, ANGULAR_EVENTS, LINE_TYPES

__all__ = [
    "InvalidInputError",
    "require_finite",
    "require_latitude",
    "require_longitude",
    "require_planet",
    "require_event",
    "require_line_type",
    "parse_weights",
]

# ───────────────────────── errors ─────────────────────────

class InvalidInputError(ValueError):
    """Non-finite or out-of-domain input. Carries structured details via .errors()."""
    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
            super().__init__(details)
        elif isinstance(details, dict):
            self._details = [details]
            super().__init__(details.get("msg", "invalid_input"))
        elif isinstance(details, list):
            self._details = details
            super().__init__(self._details[0]["msg"] if self._details else "invalid_input")
        else:
            self._details = [{"loc": [], "msg": "invalid_input", "type": "value_error"}]
            super().__init__("invalid_input")

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


# ───────────────────────── helpers ─────────────────────────

def _err(loc: List[str] | str, msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}

def require_finite(name: str, value: Any) -> float:
    """Return value as float or raise InvalidInputError for None/NaN/inf/non-numeric."""
    if isinstance(value, bool):
        raise InvalidInputError(_err(name, f"{name} must be a number, got bool", "type_error"))
    try:
        x = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(_err(name, f"{name} must be a number, got {value!r}", "type_error")) from None
    if not math.isfinite(x):
        raise InvalidInputError(_err(name, f"{name} must be finite, got {x!r}"))
    return x

def require_latitude(value: Any, name: str = "latitude") -> float:
    lat = require_finite(name, value)
    if not -90.0 <= lat <= 90.0:
        raise InvalidInputError(_err(name, f"{name} must be within [-90, 90], got {lat}"))
    return lat

def require_longitude(value: Any, name: str = "longitude") -> float:
    # any finite longitude is accepted; callers normalize
    return require_finite(name, value)

def require_planet(value: Any) -> str:
    p = str(value or "").strip().lower()
    if p not in PLANET_IDS:
        raise InvalidInputError(_err("planet", f"unknown planet '{value}'"))
    return p

def require_event(value: Any) -> str:
    e = str(value or "").strip().lower()
    if e not in ANGULAR_EVENTS:
        raise InvalidInputError(_err("event", f"unknown angular event '{value}'"))
    return e

def require_line_type(value: Any) -> str:
    t = str(value or "").strip().upper()
    if t not in LINE_TYPES:
        raise InvalidInputError(_err("line_type", f"unknown line type '{value}'"))
    return t

def parse_weights(weights: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """
    Normalize a planet → weight mapping.

    - keys are canonicalized to lower-case planet ids (unknown ids rejected)
    - values must be finite and >= 0
    - planets absent from the mapping get weight 0
    """
    out: Dict[str, float] = {p: 0.0 for p in PLANET_IDS}
    if not weights:
        return out
    errors: List[Dict[str, Any]] = []
    for key, raw in weights.items():
        p = str(key or "").strip().lower()
        if p not in PLANET_IDS:
            errors.append(_err(["weights", str(key)], f"unknown planet '{key}'"))
            continue
        try:
            w = require_finite(f"weights.{p}", raw)
        except InvalidInputError as e:
            errors.extend(e.errors())
            continue
        if w < 0.0:
            errors.append(_err(["weights", p], f"weight must be >= 0, got {w}"))
            continue
        out[p] = w
    if errors:
        raise InvalidInputError(errors)
    return out
