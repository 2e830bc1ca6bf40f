# astromap/core/vibes.py
# -*- coding: utf-8 -*-
"""
Goal presets ("vibes") that map a life goal onto planet weights.

Public API
----------
DEFAULT_WEIGHTS / VIBE_CATEGORIES
get_vibe_by_id(vibe_id)                    -> VibeCategory | None
match_vibe_from_query(query)               -> VibeCategory | None
find_matching_vibes(query)                 -> [(VibeCategory, score)]
blend_vibes([(vibe, ratio), ...])          -> weights
combine_vibe_weights(primary, secondary)   -> weights (70/30)
normalize_weights(weights, target_sum=100) -> weights
describe_weights(weights)                  -> "Prioritizes Jupiter, Venus, Mercury"

Query matching is plain substring scoring: id +10, display name +8,
each keyword +2. A query needs at least 2 points to match anything.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from astromap.core.constants import PLANET_IDS, PLANET_NAMES
from astromap.core.validators import InvalidInputError, _err, parse_weights, require_finite

__all__ = [
    "VibeCategory", "DEFAULT_WEIGHTS", "VIBE_CATEGORIES", "MIN_MATCH_SCORE",
    "zero_weights", "get_vibe_by_id", "get_all_vibes",
    "match_vibe_from_query", "find_matching_vibes",
    "blend_vibes", "combine_vibe_weights", "normalize_weights", "describe_weights",
]

MIN_MATCH_SCORE = 2

DEFAULT_WEIGHTS: Dict[str, float] = {p: 1.0 for p in PLANET_IDS}


def zero_weights() -> Dict[str, float]:
    return {p: 0.0 for p in PLANET_IDS}


@dataclass(frozen=True)
class VibeCategory:
    id: str
    name: str
    description: str
    keywords: Tuple[str, ...]
    primary_planets: Tuple[str, ...]
    weights: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "keywords": list(self.keywords),
            "primary_planets": list(self.primary_planets),
            "weights": dict(self.weights),
        }


def _w(*values: float) -> Dict[str, float]:
    return {p: float(v) for p, v in zip(PLANET_IDS, values)}


# weights in PLANET_IDS order: sun moon mercury venus mars jupiter saturn uranus neptune pluto
VIBE_CATEGORIES: Tuple[VibeCategory, ...] = (
    VibeCategory(
        "wealth", "Wealth & Abundance",
        "Financial prosperity, material success, and abundance",
        ("wealth", "money", "rich", "financial", "prosperity", "abundance",
         "fortune", "income", "profitable"),
        ("jupiter", "venus"),
        _w(3, 1, 4, 7, 2, 10, 3, 2, 1, 4),
    ),
    VibeCategory(
        "career", "Career & Achievement",
        "Professional success, recognition, and accomplishment",
        ("career", "job", "work", "professional", "success", "achievement",
         "promotion", "business", "leadership", "ambition"),
        ("sun", "saturn", "mars"),
        _w(10, 2, 5, 2, 7, 5, 8, 3, 1, 4),
    ),
    VibeCategory(
        "love", "Love & Relationships",
        "Romantic love, partnerships, and deep connections",
        ("love", "romance", "relationship", "marriage", "partner", "dating",
         "soulmate", "connection", "intimacy"),
        ("venus", "moon"),
        _w(3, 8, 4, 10, 5, 4, 2, 2, 6, 5),
    ),
    VibeCategory(
        "spirituality", "Spirituality & Enlightenment",
        "Spiritual growth, inner peace, and transcendence",
        ("spiritual", "meditation", "enlightenment", "peace", "mindfulness",
         "consciousness", "awakening", "mystical", "sacred", "divine"),
        ("neptune", "jupiter", "moon"),
        _w(3, 7, 2, 3, 1, 8, 4, 5, 10, 6),
    ),
    VibeCategory(
        "creativity", "Creativity & Art",
        "Artistic expression, imagination, and creative flow",
        ("creative", "art", "artist", "music", "writing", "design",
         "imagination", "inspiration", "expression"),
        ("venus", "neptune", "moon"),
        _w(5, 7, 6, 9, 3, 4, 2, 7, 10, 3),
    ),
    VibeCategory(
        "health", "Health & Vitality",
        "Physical health, energy, and well-being",
        ("health", "fitness", "energy", "vitality", "wellness", "healing",
         "strength", "longevity"),
        ("sun", "mars", "moon"),
        _w(10, 6, 3, 4, 8, 5, 4, 2, 3, 4),
    ),
    VibeCategory(
        "adventure", "Adventure & Travel",
        "Exploration, travel, and new experiences",
        ("adventure", "travel", "explore", "journey", "freedom", "excitement",
         "discovery", "wanderlust"),
        ("jupiter", "uranus", "mars"),
        _w(4, 2, 6, 4, 7, 10, 1, 8, 5, 3),
    ),
    VibeCategory(
        "knowledge", "Knowledge & Wisdom",
        "Learning, education, and intellectual growth",
        ("knowledge", "learning", "education", "study", "wisdom",
         "intellectual", "research", "understanding", "teaching"),
        ("mercury", "jupiter", "saturn"),
        _w(3, 2, 10, 2, 3, 8, 7, 6, 4, 4),
    ),
    VibeCategory(
        "transformation", "Transformation & Rebirth",
        "Personal transformation and profound change",
        ("transformation", "change", "rebirth", "evolution", "growth",
         "healing", "crisis", "phoenix", "renewal"),
        ("pluto", "uranus", "saturn"),
        _w(4, 5, 2, 2, 5, 3, 7, 8, 5, 10),
    ),
    VibeCategory(
        "stability", "Stability & Security",
        "Groundedness, security, and solid foundations",
        ("stability", "security", "grounded", "safe", "home", "foundation",
         "routine", "reliable", "steady"),
        ("saturn", "moon", "venus"),
        _w(4, 8, 3, 6, 2, 4, 10, 1, 2, 3),
    ),
)

_BY_ID: Dict[str, VibeCategory] = {v.id: v for v in VIBE_CATEGORIES}


# ── lookup ───────────────────────────────────────────────────────────────────
def get_vibe_by_id(vibe_id: str) -> Optional[VibeCategory]:
    return _BY_ID.get(str(vibe_id or "").strip().lower())


def get_all_vibes() -> List[VibeCategory]:
    return list(VIBE_CATEGORIES)


# ── query matching ───────────────────────────────────────────────────────────
def _query_score(vibe: VibeCategory, q: str) -> int:
    score = 0
    if vibe.id in q:
        score += 10
    if vibe.name.lower() in q:
        score += 8
    score += 2 * sum(1 for k in vibe.keywords if k in q)
    return score


def find_matching_vibes(query: str) -> List[Tuple[VibeCategory, int]]:
    """All vibes scoring >= MIN_MATCH_SCORE, best first (ties keep preset order)."""
    q = str(query or "").lower()
    scored = [(v, _query_score(v, q)) for v in VIBE_CATEGORIES]
    hits = [(v, s) for v, s in scored if s >= MIN_MATCH_SCORE]
    hits.sort(key=lambda vs: -vs[1])
    return hits


def match_vibe_from_query(query: str) -> Optional[VibeCategory]:
    hits = find_matching_vibes(query)
    return hits[0][0] if hits else None


# ── weight arithmetic ────────────────────────────────────────────────────────
def blend_vibes(parts: Sequence[Tuple[VibeCategory, float]]) -> Dict[str, float]:
    """Ratio-weighted mean of vibe weights; ratios are normalized to sum to 1."""
    ratios = []
    for i, (_vibe, ratio) in enumerate(parts):
        r = require_finite(f"ratio[{i}]", ratio)
        if r < 0.0:
            raise InvalidInputError(_err(["ratio", str(i)], f"ratio must be >= 0, got {r}"))
        ratios.append(r)
    total = sum(ratios)
    if total == 0.0:
        return dict(DEFAULT_WEIGHTS)
    out = zero_weights()
    for (vibe, _), r in zip(parts, ratios):
        for p in PLANET_IDS:
            out[p] += vibe.weights[p] * (r / total)
    return out


def combine_vibe_weights(primary: VibeCategory, secondary: Optional[VibeCategory] = None) -> Dict[str, float]:
    if secondary is None:
        return dict(primary.weights)
    return blend_vibes([(primary, 0.7), (secondary, 0.3)])


def normalize_weights(weights: Mapping[str, Any], target_sum: float = 100.0) -> Dict[str, float]:
    w = parse_weights(weights)
    current = sum(w.values())
    if current == 0.0:
        return dict(DEFAULT_WEIGHTS)
    factor = require_finite("target_sum", target_sum) / current
    return {p: w[p] * factor for p in PLANET_IDS}


def describe_weights(weights: Mapping[str, Any]) -> str:
    w = parse_weights(weights)
    top = sorted(PLANET_IDS, key=lambda p: -w[p])[:3]
    return "Prioritizes " + ", ".join(PLANET_NAMES[p] for p in top)
