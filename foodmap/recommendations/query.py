"""
Filter parameter normalisation.

``build_filter_params`` never rejects a request: every field that fails
validation is replaced by its default (or dropped, for optional bounds),
so the ranked-list endpoint stays permissive towards sloppy clients.
"""
from __future__ import annotations

import math
from typing import Any

from .models import FilterParams

DEFAULT_LAT = 25.0170
DEFAULT_LNG = 121.5395
DEFAULT_RADIUS_M = 2000
MAX_RADIUS_M = 50_000
MAX_TAG_LENGTH = 50


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    number = _as_float(value)
    if number is not None and number.is_integer():
        return int(number)
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _in_range(value: float | None, low: float, high: float) -> bool:
    return value is not None and low <= value <= high


def _tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    return [t for t in value if isinstance(t, str) and t and len(t) <= MAX_TAG_LENGTH]


def build_filter_params(raw: dict[str, Any]) -> FilterParams:
    """Validate and clamp raw request fields into :class:`FilterParams`."""
    lat = _as_float(raw.get("lat"))
    if not _in_range(lat, -90.0, 90.0):
        lat = DEFAULT_LAT

    lng = _as_float(raw.get("lng"))
    if not _in_range(lng, -180.0, 180.0):
        lng = DEFAULT_LNG

    radius = _as_int(raw.get("radius"))
    if radius is None or not 0 < radius <= MAX_RADIUS_M:
        radius = DEFAULT_RADIUS_M

    price_max = _as_int(raw.get("price_max"))
    if price_max is not None and not 1 <= price_max <= 4:
        price_max = None

    rating_min = _as_float(raw.get("rating_min"))
    if not _in_range(rating_min, 0.0, 5.0):
        rating_min = None

    return FilterParams(
        lat=lat,
        lng=lng,
        radius=radius,
        price_max=price_max,
        rating_min=rating_min,
        categories=_tags(raw.get("categories")),
        features=_tags(raw.get("features")),
        open_now=_as_bool(raw.get("open_now")),
    )


def build_mongo_query(params: FilterParams) -> dict[str, Any]:
    """Translate :class:`FilterParams` into a MongoDB filter document.

    Relies on a ``2dsphere`` index over ``location`` (GeoJSON, ``[lng, lat]``).
    ``$near`` returns matches nearest-first.
    """
    query: dict[str, Any] = {
        "location": {
            "$near": {
                "$geometry": {"type": "Point", "coordinates": [params.lng, params.lat]},
                "$maxDistance": params.radius,
            }
        }
    }
    if params.price_max is not None:
        query["price_level"] = {"$lte": params.price_max}
    if params.rating_min is not None:
        query["rating"] = {"$gte": params.rating_min}
    if params.categories:
        query["categories"] = {"$in": params.categories}
    if params.features:
        query["features"] = {"$in": params.features}
    return query
