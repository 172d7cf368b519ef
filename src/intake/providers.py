"""
Provider presentation.

Glue between the collaborator's raw provider list and the pure matcher and
ranker: distance per provider, daypart verdicts, eligibility filter, ranking.
"""

import logging
import math
from typing import Any, Iterable

from .availability import daypart_availability, matches_any
from .ranking import DEFAULT_MAX_TOP_RATED, Candidate, format_distance, haversine_km, rank_candidates

logger = logging.getLogger(__name__)


def _rating(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(rating) else rating


def to_candidate(provider: dict, customer_lat: Any, customer_lon: Any) -> Candidate:
    distance = haversine_km(customer_lat, customer_lon, provider.get("latitude"), provider.get("longitude"))
    return Candidate(
        id=str(provider.get("id", "")),
        rating=_rating(provider.get("rating")),
        distance_km=distance,
        data=provider,
    )


def present_candidates(
    providers: Any,
    customer_lat: Any,
    customer_lon: Any,
    required_hours: float,
    selected_dayparts: Iterable[str] | None = None,
    max_top: int = DEFAULT_MAX_TOP_RATED,
) -> list[dict]:
    """
    Rank eligible providers for display.

    A provider is eligible when at least one selected daypart (any daypart
    when nothing is selected) is satisfiable for required_hours. Returned
    dicts are the provider data plus distance_km, distance_text and
    availability.
    """
    if not isinstance(providers, list):
        logger.warning(f"Provider list is not a list ({type(providers).__name__}), nothing to present")
        return []

    selected = list(selected_dayparts or [])
    eligible: list[Candidate] = []

    for provider in providers:
        if not isinstance(provider, dict):
            logger.debug(f"Skipping malformed provider entry: {provider!r}")
            continue
        availability = daypart_availability(provider.get("beschikbaarheid", []), required_hours)
        if not matches_any(availability, selected):
            continue
        candidate = to_candidate(provider, customer_lat, customer_lon)
        candidate.data = {
            **provider,
            "distance_km": candidate.distance_km,
            "distance_text": format_distance(candidate.distance_km),
            "availability": availability,
        }
        eligible.append(candidate)

    ranked = rank_candidates(eligible, max_top=max_top)
    logger.info(f"Presenting {len(ranked)} of {len(providers)} providers ({required_hours}h, dayparts={selected or 'any'})")
    return [c.data for c in ranked]
