from __future__ import annotations

import math

from .geo import distance
from .models import Place, ScoreBreakdown, ScoringWeights

DEFAULT_WEIGHTS = ScoringWeights()

DISPLAY_SCALE = 10.0
DISTANCE_DECAY_KM = 2.0
POPULARITY_CAP = 10_000

OPEN_SCORE = 1.0
CLOSED_SCORE = 0.3
UNKNOWN_OPEN_SCORE = 0.5

CONTEXT_BASE = 0.5
CONTEXT_BONUSES = {"vegetarian": 0.15, "wifi": 0.10}


def _rating_score(rating: float) -> float:
    return rating / 5.0


def _distance_score(distance_m: float) -> float:
    return math.exp(-(distance_m / 1000.0) / DISTANCE_DECAY_KM)


def _popularity_score(rating_count: int) -> float:
    return min(math.log(rating_count + 1) / math.log(POPULARITY_CAP + 1), 1.0)


def _open_score(is_open: bool | None) -> float:
    if is_open is True:
        return OPEN_SCORE
    if is_open is False:
        return CLOSED_SCORE
    return UNKNOWN_OPEN_SCORE


def _context_score(features: list[str]) -> float:
    score = CONTEXT_BASE
    for feature, bonus in CONTEXT_BONUSES.items():
        if feature in features:
            score += bonus
    return min(score, 1.0)


def score_place(
    place: Place,
    user_lat: float,
    user_lng: float,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    *,
    distance_m: float | None = None,
    is_open: bool | None = None,
) -> tuple[float, ScoreBreakdown]:
    """
    Compute the weighted desirability score of *place* for a user.

    Returns ``(score, breakdown)``. ``score`` is the raw weighted sum in
    [0, 1] for weights summing to 1; every breakdown field is that
    component's weighted contribution scaled by 10, so the five
    components add up to ``breakdown.total``.

    ``distance_m`` is computed from the user's coordinates unless the
    caller has already annotated it. ``is_open=None`` means unknown.
    """
    if distance_m is None:
        distance_m = distance(user_lat, user_lng, place.lat, place.lng)

    components = {
        "rating": _rating_score(place.rating) * weights.rating,
        "distance": _distance_score(distance_m) * weights.distance,
        "popularity": _popularity_score(place.rating_count) * weights.popularity,
        "open": _open_score(is_open) * weights.open,
        "context": _context_score(place.features) * weights.context,
    }
    total = sum(components.values())

    breakdown = ScoreBreakdown(
        **{name: value * DISPLAY_SCALE for name, value in components.items()},
        total=total * DISPLAY_SCALE,
    )
    return total, breakdown
