from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


# Missing price levels rank as the most expensive tier.
UNKNOWN_PRICE_LEVEL = 4


class ScoringWeights(BaseModel, frozen=True):
    rating: float = 0.30
    distance: float = 0.25
    popularity: float = 0.20
    open: float = 0.15
    context: float = 0.10


class Place(BaseModel):
    id: str
    name_zh: str | None = None
    name_en: str | None = None
    address_zh: str | None = None
    address_en: str | None = None
    phone: str | None = None
    price_level: int = UNKNOWN_PRICE_LEVEL
    rating: float = 0.0
    rating_count: int = 0
    lat: float
    lng: float
    categories: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    open_hours: dict[str, list[str]] | None = None
    photos: list[str] | None = None
    website: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _zero_missing_counts(cls, data: Any) -> Any:
        # Stores may hand back null rating fields; scoring expects numbers.
        if isinstance(data, dict):
            data = dict(data)
            if data.get("rating") is None:
                data["rating"] = 0.0
            if data.get("rating_count") is None:
                data["rating_count"] = 0
            for key in ("categories", "features"):
                if data.get(key) is None:
                    data[key] = []
        return data


class FilterParams(BaseModel):
    lat: float
    lng: float
    radius: int
    price_max: int | None = None
    rating_min: float | None = None
    categories: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    open_now: bool = False


class ScoreBreakdown(BaseModel):
    rating: float
    distance: float
    popularity: float
    open: float
    context: float
    total: float


class Candidate(Place):
    distance_m: int
    is_open: bool | None = None
    score: float
    score_breakdown: ScoreBreakdown


class RouletteRequest(BaseModel):
    # Unparsed so a malformed centre falls back like the other filters.
    lat: Any = None
    lng: Any = None
    filters: dict[str, Any] = Field(default_factory=dict)
