"""
Candidate Ranker.

Orders providers by a quality/proximity policy:
    1. rating >= 4        → by distance, at most max_top of them
    2. 3 <= rating < 4    → by distance
    3. the rest (or None) → by rating desc, distance when tied or unrated
"""

import logging
import math
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
DEFAULT_MAX_TOP_RATED = 5


@dataclass
class Candidate:
    id: str
    rating: float | None
    distance_km: float
    # Provider data carried through for presentation
    data: dict[str, Any] = field(default_factory=dict)


def _coord(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def haversine_km(lat1: Any, lon1: Any, lat2: Any, lon2: Any) -> float:
    """Great-circle distance in km. Invalid coordinates give infinity (sorted last)."""
    coords = [_coord(v) for v in (lat1, lon1, lat2, lon2)]
    if any(c is None for c in coords):
        logger.warning(f"Invalid coordinates for distance: {(lat1, lon1, lat2, lon2)}")
        return math.inf
    la1, lo1, la2, lo2 = (math.radians(c) for c in coords)

    a = math.sin((la2 - la1) / 2) ** 2 + math.cos(la1) * math.cos(la2) * math.sin((lo2 - lo1) / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def format_distance(distance_km: float) -> str:
    """850 meter / 3.4 km / 12 km."""
    if math.isinf(distance_km):
        return "onbekend"
    if distance_km < 1:
        return f"{round(distance_km * 1000)} meter"
    if distance_km < 10:
        return f"{distance_km:.1f} km"
    return f"{round(distance_km)} km"


def _by_distance(c: Candidate) -> float:
    return c.distance_km


def _cmp(a: float, b: float) -> int:
    if a == b:
        return 0
    return -1 if a < b else 1


def _unrated(c: Candidate) -> bool:
    return c.rating is None or math.isnan(c.rating)


def _compare_rest(a: Candidate, b: Candidate) -> int:
    if _unrated(a) or _unrated(b) or a.rating == b.rating:
        return _cmp(a.distance_km, b.distance_km)
    return _cmp(b.rating, a.rating)


def rank_candidates(candidates: list[Candidate], max_top: int = DEFAULT_MAX_TOP_RATED) -> list[Candidate]:
    """
    Tiered ranking. Tier-1 candidates beyond max_top are left out; the other
    tiers are returned in full.
    """
    if not candidates:
        return []

    top = sorted((c for c in candidates if not _unrated(c) and c.rating >= 4), key=_by_distance)
    good = sorted((c for c in candidates if not _unrated(c) and 3 <= c.rating < 4), key=_by_distance)
    rest = sorted(
        (c for c in candidates if _unrated(c) or c.rating < 3),
        key=cmp_to_key(_compare_rest),
    )

    if len(top) > max_top:
        logger.debug(f"Capping top-rated candidates at {max_top} (had {len(top)})")
    return top[:max_top] + good + rest
