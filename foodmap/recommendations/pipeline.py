"""
Ranked place search.

Responsibilities:
- Normalise the raw filter fields into :class:`FilterParams`.
- Fetch the nearby candidate pool from the place store (capped).
- Annotate each place with its distance and weekly availability flag.
- Score, apply the ``open_now`` post-filter, and sort best-first.
"""
from __future__ import annotations

import time
from datetime import datetime
from typing import Any

from ..analytics.store import record_event
from ..config import DEFAULT_CONFIG, AppConfig
from .data_store import PlaceStore
from .errors import NotFoundError
from .geo import distance
from .models import Candidate, FilterParams, Place, ScoringWeights
from .open_hours import open_status
from .query import build_filter_params
from .scoring import score_place


def to_candidate(
    place: Place,
    lat: float,
    lng: float,
    weights: ScoringWeights,
    now: datetime,
) -> Candidate:
    distance_m = round(distance(lat, lng, place.lat, place.lng))
    is_open = open_status(place.open_hours, now)
    score, breakdown = score_place(
        place, lat, lng, weights, distance_m=distance_m, is_open=is_open,
    )
    return Candidate(
        **place.model_dump(),
        distance_m=distance_m,
        is_open=is_open,
        score=score,
        score_breakdown=breakdown,
    )


def gather_candidates(
    params: FilterParams,
    store: PlaceStore,
    *,
    limit: int | None,
    weights: ScoringWeights,
    now: datetime,
) -> list[Candidate]:
    """Fetch, annotate and score every place matching *params*.

    Store failures propagate as :class:`InternalError`.
    """
    places = store.find(params, limit=limit)
    return [to_candidate(p, params.lat, params.lng, weights, now) for p in places]


def event_filters(params: FilterParams) -> dict[str, Any]:
    return {
        "lat": params.lat,
        "lng": params.lng,
        "radius": params.radius,
        "price_max": params.price_max,
        "rating_min": params.rating_min,
        "categories": params.categories,
        "features": params.features,
        "open_now": params.open_now,
    }


def rank_places(
    raw_params: dict[str, Any],
    store: PlaceStore,
    config: AppConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> list[Candidate]:
    """Return every matching place, best score first.

    An empty result is a valid answer, never an error. Order among equal
    scores is not guaranteed.
    """
    start_time = time.time()
    now = now or datetime.now()

    params = build_filter_params(raw_params)
    candidates = gather_candidates(
        params, store, limit=config.fetch_limit, weights=config.weights, now=now,
    )
    total_candidates = len(candidates)

    if params.open_now:
        candidates = [c for c in candidates if c.is_open is True]

    candidates.sort(key=lambda c: c.score, reverse=True)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("search", {
        **event_filters(params),
        "total_candidates": total_candidates,
        "results_returned": len(candidates),
        "response_time_ms": elapsed_ms,
    })
    return candidates


def get_place_detail(
    place_id: str,
    raw_center: dict[str, Any],
    store: PlaceStore,
    config: AppConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> Candidate:
    """Score a single place against the caller's (validated) centre."""
    place = store.get(place_id)
    if place is None:
        raise NotFoundError("Place not found")
    params = build_filter_params(raw_center)
    return to_candidate(place, params.lat, params.lng, config.weights, now or datetime.now())
