"""
Roulette: pick one matching place uniformly at random.

The candidate pool is the whole matching set (no fetch cap) and, unlike
the ranked list, it is NOT narrowed by ``open_now``. Clients rely on this
asymmetry; the flag is accepted and recorded but has no effect here.
"""
from __future__ import annotations

import random
import time
from datetime import datetime
from typing import Protocol

from ..analytics.store import record_event
from ..config import DEFAULT_CONFIG, AppConfig
from .data_store import PlaceStore
from .errors import NotFoundError, ValidationError
from .models import Candidate, RouletteRequest
from .pipeline import event_filters, gather_candidates
from .query import build_filter_params


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


_default_rng = random.Random()


def spin(
    request: RouletteRequest,
    store: PlaceStore,
    rng: RandomSource | None = None,
    config: AppConfig = DEFAULT_CONFIG,
    now: datetime | None = None,
) -> Candidate:
    if request.lat is None or request.lng is None:
        raise ValidationError("lat and lng are required")

    start_time = time.time()
    rng = rng or _default_rng

    params = build_filter_params({**request.filters, "lat": request.lat, "lng": request.lng})
    candidates = gather_candidates(
        params, store, limit=None, weights=config.weights, now=now or datetime.now(),
    )
    if not candidates:
        raise NotFoundError("No places found matching filters")

    chosen = candidates[rng.randrange(len(candidates))]

    record_event("roulette", {
        **event_filters(params),
        "total_candidates": len(candidates),
        "place_id": chosen.id,
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })
    return chosen
