import json
from pathlib import Path
from unittest.mock import MagicMock

import pandas as pd
import pytest
from pymongo.errors import WriteError

from foodmap.data_ingestion.config import IngestionConfig
from foodmap.recommendations.errors import InternalError
from foodmap.data_ingestion.ingest import (
    CANONICAL_COLUMNS,
    import_to_mongo,
    normalize_place,
    run_ingestion,
)

GOOGLE_RESULT = {
    "place_id": "ChIJ123",
    "name": "Sample Restaurant",
    "formatted_address": "No. 100, Sec. 4, Roosevelt Rd., Taipei",
    "formatted_phone_number": "02 1234 5678",
    "price_level": 0,
    "rating": 4.3,
    "user_ratings_total": 150,
    "geometry": {"location": {"lat": 25.016, "lng": 121.538}},
    "types": ["restaurant", "food", "point_of_interest", "establishment"],
    "opening_hours": {
        "weekday_text": [
            "Monday: 11:00 AM – 2:00 PM, 5:00 – 9:00 PM",
            "Tuesday: Closed",
            "Wednesday: 11:00 AM – 9:00 PM",
        ]
    },
    "photos": [{"photo_reference": "ref1"}, {"width": 10}],
    "website": "https://example.tw",
}

CANONICAL = {
    "id": "ntu_x",
    "name_zh": "示例",
    "name_en": "Example",
    "price_level": 2,
    "rating": 6.2,
    "lat": 25.02,
    "lng": 121.54,
    "categories": ["cafe"],
}


def test_normalize_google_result():
    place = normalize_place(GOOGLE_RESULT)
    assert place["id"] == "ChIJ123"
    assert place["name_en"] == place["name_zh"] == "Sample Restaurant"
    assert place["price_level"] == 1  # Google 0 -> 1
    assert place["rating_count"] == 150
    assert (place["lat"], place["lng"]) == (25.016, 121.538)
    assert place["categories"] == ["restaurant", "food"]
    assert place["open_hours"] == {
        "Monday": ["11:00 AM – 2:00 PM", "5:00 – 9:00 PM"],
        "Wednesday": ["11:00 AM – 9:00 PM"],
    }
    assert place["photos"] == ["ref1"]


def test_normalize_google_result_without_price_or_hours():
    raw = {**GOOGLE_RESULT, "price_level": None, "opening_hours": None}
    place = normalize_place(raw)
    assert place["price_level"] == 4
    assert place["open_hours"] is None


def test_normalize_canonical_record():
    place = normalize_place(CANONICAL)
    assert place["rating"] == 5.0  # clamped
    assert place["rating_count"] == 0
    assert place["features"] == []
    assert place["open_hours"] is None
    assert set(place) == set(CANONICAL_COLUMNS)


def test_run_ingestion_writes_canonical_seed(tmp_path: Path):
    raw_dir = tmp_path / "raw"
    raw_dir.mkdir()
    no_coords = {"id": "lost", "name_en": "Nowhere"}
    duplicate = {**CANONICAL, "rating": 3.0}
    (raw_dir / "places_raw.json").write_text(
        json.dumps([GOOGLE_RESULT, CANONICAL, no_coords, duplicate]), encoding="utf-8"
    )
    cfg = IngestionConfig(raw_data_dir=raw_dir, processed_data_dir=tmp_path / "processed")

    output_path = run_ingestion(config=cfg)

    assert output_path.is_file()
    df = pd.read_json(output_path, orient="records", dtype={"id": str})
    assert list(df.columns) == CANONICAL_COLUMNS
    assert sorted(df["id"]) == ["ChIJ123", "ntu_x"]
    assert df.loc[df["id"] == "ntu_x", "rating"].item() == 3.0


def test_import_to_mongo_upserts_with_location(tmp_path: Path):
    seed = tmp_path / "places.json"
    seed.write_text(json.dumps([CANONICAL, {**CANONICAL, "id": "ntu_y"}]), encoding="utf-8")

    collection = MagicMock()
    inserted, updated = MagicMock(upserted_id="new"), MagicMock(upserted_id=None)
    collection.update_one.side_effect = [inserted, updated]

    counts = import_to_mongo(seed, collection=collection)

    assert counts == {"imported": 1, "updated": 1, "skipped": 0}
    assert collection.create_index.call_count == 5
    filter_doc, update = collection.update_one.call_args_list[0].args
    assert filter_doc == {"id": "ntu_x"}
    assert update["$set"]["location"] == {"type": "Point", "coordinates": [121.54, 25.02]}
    assert "created_at" in update["$setOnInsert"]
    assert collection.update_one.call_args_list[0].kwargs["upsert"] is True


def test_import_to_mongo_skips_records_without_coordinates(tmp_path: Path):
    seed = tmp_path / "places.json"
    no_coords = {"id": "lost", "name_en": "Nowhere"}
    seed.write_text(json.dumps([no_coords, CANONICAL]), encoding="utf-8")

    collection = MagicMock()
    collection.update_one.return_value = MagicMock(upserted_id="new")

    counts = import_to_mongo(seed, collection=collection)

    assert counts == {"imported": 1, "updated": 0, "skipped": 1}
    collection.update_one.assert_called_once()
    assert collection.update_one.call_args.args[0] == {"id": "ntu_x"}


def test_import_to_mongo_write_failure_is_internal_error(tmp_path: Path):
    seed = tmp_path / "places.json"
    seed.write_text(json.dumps([CANONICAL]), encoding="utf-8")

    collection = MagicMock()
    collection.update_one.side_effect = WriteError("can't extract geo keys")

    with pytest.raises(InternalError) as excinfo:
        import_to_mongo(seed, collection=collection)
    assert "geo keys" not in excinfo.value.message
