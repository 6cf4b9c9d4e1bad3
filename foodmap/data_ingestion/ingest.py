from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

import pandas as pd
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from ..config import DEFAULT_CONFIG, AppConfig
from ..recommendations.data_store import MongoPlaceStore
from ..recommendations.errors import InternalError
from ..recommendations.models import UNKNOWN_PRICE_LEVEL
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS: List[str] = [
    "id",
    "name_zh",
    "name_en",
    "address_zh",
    "address_en",
    "phone",
    "price_level",
    "rating",
    "rating_count",
    "lat",
    "lng",
    "categories",
    "features",
    "open_hours",
    "photos",
    "website",
]

FOOD_TYPES = ("restaurant", "food", "cafe", "meal_takeaway", "bakery", "bar", "meal_delivery")

_WEEKDAY_LINE = re.compile(r"^([^:]+):\s*(.+)$")


def _normalize_price_level(value: Any) -> int:
    # Google uses 0-4; the canonical scale is 1-4.
    try:
        level = int(value)
    except (TypeError, ValueError):
        return UNKNOWN_PRICE_LEVEL
    return min(max(level, 1), 4)


def _normalize_rating(rating: Any) -> float:
    try:
        value = float(rating)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(5.0, value))


def _weekday_text_to_hours(weekday_text: list[str]) -> dict[str, list[str]] | None:
    """``["Monday: 11:00 AM – 9:00 PM", ...]`` -> ``{"Monday": ["11:00 AM – 9:00 PM"]}``.

    Days listed as "Closed" get no entry.
    """
    hours: dict[str, list[str]] = {}
    for line in weekday_text:
        match = _WEEKDAY_LINE.match(line.strip())
        if not match:
            continue
        day, ranges = match.group(1).strip(), match.group(2)
        slots = [r.strip() for r in ranges.split(",") if r.strip()]
        slots = [s for s in slots if s.lower() != "closed"]
        if slots:
            hours[day] = slots
    return hours or None


def _food_categories(types: list[str]) -> list[str]:
    return [t for t in types if any(food in t for food in FOOD_TYPES)][:5]


def _from_google(raw: dict[str, Any]) -> dict[str, Any]:
    location = (raw.get("geometry") or {}).get("location") or {}
    name = raw.get("name") or ""
    address = raw.get("formatted_address") or ""
    opening = raw.get("opening_hours") or {}
    return {
        "id": raw["place_id"],
        "name_zh": name,
        "name_en": name,
        "address_zh": address,
        "address_en": address,
        "phone": raw.get("formatted_phone_number"),
        "price_level": _normalize_price_level(raw.get("price_level")),
        "rating": _normalize_rating(raw.get("rating")),
        "rating_count": int(raw.get("user_ratings_total") or 0),
        "lat": location.get("lat"),
        "lng": location.get("lng"),
        "categories": _food_categories(raw.get("types") or []),
        "features": [],
        "open_hours": _weekday_text_to_hours(opening.get("weekday_text") or []),
        "photos": [p["photo_reference"] for p in raw.get("photos") or [] if p.get("photo_reference")][:5],
        "website": raw.get("website"),
    }


def normalize_place(raw: dict[str, Any]) -> dict[str, Any]:
    """Map a raw record onto the canonical place schema.

    Accepts either a Google Place Details result (has ``place_id``) or a
    record already shaped like the canonical schema.
    """
    if "place_id" in raw:
        return _from_google(raw)

    return {
        "id": str(raw["id"]),
        "name_zh": raw.get("name_zh") or "",
        "name_en": raw.get("name_en") or "",
        "address_zh": raw.get("address_zh") or "",
        "address_en": raw.get("address_en") or "",
        "phone": raw.get("phone"),
        "price_level": _normalize_price_level(raw.get("price_level")),
        "rating": _normalize_rating(raw.get("rating")),
        "rating_count": int(raw.get("rating_count") or 0),
        "lat": raw.get("lat"),
        "lng": raw.get("lng"),
        "categories": list(raw.get("categories") or []),
        "features": list(raw.get("features") or []),
        "open_hours": raw.get("open_hours") or None,
        "photos": list(raw.get("photos") or []),
        "website": raw.get("website"),
    }


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> Path:
    """
    Normalise the raw place dump into the canonical seed file.

    Records without coordinates are skipped; later duplicates of an ``id``
    replace earlier ones.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    with open(config.raw_path, encoding="utf-8") as fh:
        raw_records = json.load(fh)

    records = [normalize_place(r) for r in raw_records]
    canonical = pd.DataFrame(records, columns=CANONICAL_COLUMNS)
    canonical = canonical.dropna(subset=["lat", "lng"])
    canonical = canonical.drop_duplicates(subset="id", keep="last")

    output_path = config.processed_path
    canonical.to_json(output_path, orient="records", force_ascii=False, indent=2)
    logger.info("Wrote %d places to %s", len(canonical), output_path)
    return output_path


def import_to_mongo(
    path: Path,
    collection: Collection | None = None,
    config: AppConfig = DEFAULT_CONFIG,
) -> dict[str, int]:
    """Upsert the seed file into MongoDB keyed by ``id``.

    Adds the GeoJSON ``location`` (``[lng, lat]``) the ``$near`` query
    needs and makes sure the indexes exist.
    """
    if collection is None:
        store = MongoPlaceStore.from_config(config)
    else:
        store = MongoPlaceStore(collection)
    store.ensure_indexes()
    target = store.collection

    with open(path, encoding="utf-8") as fh:
        records = json.load(fh)

    counts = {"imported": 0, "updated": 0, "skipped": 0}
    now = datetime.now(timezone.utc)
    for record in records:
        document = normalize_place(record)
        if document["lat"] is None or document["lng"] is None:
            logger.warning("Skipping place %s without coordinates", document["id"])
            counts["skipped"] += 1
            continue
        document["location"] = {"type": "Point", "coordinates": [document["lng"], document["lat"]]}
        document["updated_at"] = now
        try:
            result = target.update_one(
                {"id": document["id"]},
                {"$set": document, "$setOnInsert": {"created_at": now}},
                upsert=True,
            )
        except PyMongoError as exc:
            logger.exception("Upsert failed for place %s", document["id"])
            raise InternalError("Failed to import places") from exc
        if result.upserted_id is not None:
            counts["imported"] += 1
        else:
            counts["updated"] += 1

    logger.info("Imported %(imported)d places, updated %(updated)d, skipped %(skipped)d", counts)
    return counts


if __name__ == "__main__":
    logging.basicConfig(level=DEFAULT_CONFIG.log_level)
    path = run_ingestion()
    print(f"Ingestion complete. Seed data saved to: {path}")
    if DEFAULT_CONFIG.storage_mode == "mongodb":
        print(f"MongoDB import: {import_to_mongo(path)}")
