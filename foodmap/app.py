from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .config import DEFAULT_CONFIG
from .recommendations.data_store import PlaceStore, get_place_store
from .recommendations.errors import PlaceFinderError
from .recommendations.models import Candidate, RouletteRequest
from .recommendations.pipeline import get_place_detail, rank_places
from .recommendations.roulette import RandomSource, spin

logging.basicConfig(level=DEFAULT_CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="NTU Food Map API", version="1.0.0")


@app.exception_handler(PlaceFinderError)
def place_finder_error(request: Request, exc: PlaceFinderError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def place_store() -> PlaceStore:
    return get_place_store()


def roulette_rng() -> RandomSource | None:
    return None


def _tag_list(request: Request, name: str) -> list[str] | None:
    # Clients send either ``categories=a&categories=b`` or ``categories[]=a``.
    values = request.query_params.getlist(name) + request.query_params.getlist(f"{name}[]")
    return values or None


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "message": "NTU Food Map API is running"}


@app.get("/metadata")
def metadata(store: PlaceStore = Depends(place_store)) -> dict:
    return store.distinct_tags()


@app.get("/places", response_model=list[Candidate], response_model_exclude_none=True)
def places(request: Request, store: PlaceStore = Depends(place_store)) -> list[Candidate]:
    params = request.query_params
    raw = {
        "lat": params.get("lat"),
        "lng": params.get("lng"),
        "radius": params.get("radius"),
        "price_max": params.get("price_max"),
        "rating_min": params.get("rating_min"),
        "categories": _tag_list(request, "categories"),
        "features": _tag_list(request, "features"),
        "open_now": params.get("open_now"),
    }
    return rank_places(raw, store)


@app.get("/places/{place_id}", response_model=Candidate, response_model_exclude_none=True)
def place_detail(
    place_id: str,
    lat: str | None = None,
    lng: str | None = None,
    store: PlaceStore = Depends(place_store),
) -> Candidate:
    return get_place_detail(place_id, {"lat": lat, "lng": lng}, store)


@app.post("/roulette", response_model=Candidate, response_model_exclude_none=True)
def roulette(
    body: RouletteRequest,
    store: PlaceStore = Depends(place_store),
    rng: RandomSource | None = Depends(roulette_rng),
) -> Candidate:
    return spin(body, store, rng)


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
