from __future__ import annotations

import logging
from typing import Any, Protocol

import numpy as np
import pandas as pd
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from ..config import DEFAULT_CONFIG, AppConfig
from .errors import InternalError
from .geo import distances_from
from .models import UNKNOWN_PRICE_LEVEL, FilterParams, Place
from .query import build_mongo_query

logger = logging.getLogger(__name__)

PLACE_FIELDS = list(Place.model_fields)


class PlaceStore(Protocol):
    def find(self, params: FilterParams, limit: int | None = None) -> list[Place]:
        """Places within ``params.radius`` of the centre matching the attribute
        predicates, nearest first, at most ``limit`` of them."""

    def get(self, place_id: str) -> Place | None: ...

    def distinct_tags(self) -> dict[str, list[str]]: ...


def _row_to_place(row: dict[str, Any]) -> Place:
    data = {}
    for key in PLACE_FIELDS:
        value = row.get(key)
        # pandas fills absent scalars with NaN
        if value is None or (isinstance(value, float) and np.isnan(value)):
            continue
        data[key] = value
    return Place(**data)


def _overlaps(requested: set[str]):
    return lambda tags: isinstance(tags, list) and bool(requested & set(tags))


class DataFramePlaceStore:
    """In-memory place store over a pandas DataFrame."""

    def __init__(self, df: pd.DataFrame) -> None:
        self._df = df.reset_index(drop=True)

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> DataFramePlaceStore:
        return cls(pd.DataFrame(records, columns=PLACE_FIELDS))

    @classmethod
    def from_json(cls, path) -> DataFramePlaceStore:
        try:
            df = pd.read_json(path, orient="records", dtype={"id": str})
        except (OSError, ValueError) as exc:
            logger.exception("Could not load places from %s", path)
            raise InternalError("Failed to load places") from exc
        return cls(df.reindex(columns=PLACE_FIELDS))

    def __len__(self) -> int:
        return len(self._df)

    def find(self, params: FilterParams, limit: int | None = None) -> list[Place]:
        df = self._df
        if df.empty:
            return []

        dist = distances_from(params.lat, params.lng, df["lat"].to_numpy(), df["lng"].to_numpy())
        mask = pd.Series(dist <= params.radius, index=df.index)

        if params.price_max is not None:
            mask &= df["price_level"].fillna(UNKNOWN_PRICE_LEVEL) <= params.price_max
        if params.rating_min is not None:
            mask &= df["rating"].fillna(0) >= params.rating_min
        if params.categories:
            mask &= df["categories"].apply(_overlaps(set(params.categories)))
        if params.features:
            mask &= df["features"].apply(_overlaps(set(params.features)))

        order = np.argsort(dist[mask.to_numpy()], kind="stable")
        matches = df.loc[mask].iloc[order]
        if limit is not None:
            matches = matches.head(limit)
        return [_row_to_place(row) for row in matches.to_dict(orient="records")]

    def get(self, place_id: str) -> Place | None:
        hits = self._df[self._df["id"] == place_id]
        if hits.empty:
            return None
        return _row_to_place(hits.head(1).to_dict(orient="records")[0])

    def distinct_tags(self) -> dict[str, list[str]]:
        result = {}
        for column in ("categories", "features"):
            tags: set[str] = set()
            for value in self._df[column].dropna():
                tags.update(value)
            result[column] = sorted(tags)
        return result


def _document_to_place(doc: dict[str, Any]) -> Place:
    data = {k: doc[k] for k in PLACE_FIELDS if doc.get(k) is not None}
    coordinates = (doc.get("location") or {}).get("coordinates")
    if coordinates:
        data["lng"], data["lat"] = coordinates[0], coordinates[1]
    return Place(**data)


class MongoPlaceStore:
    """Place store backed by a MongoDB collection with a 2dsphere index."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    @classmethod
    def from_config(cls, config: AppConfig = DEFAULT_CONFIG) -> MongoPlaceStore:
        client: MongoClient = MongoClient(
            config.mongo_uri, serverSelectionTimeoutMS=config.mongo_timeout_ms
        )
        return cls(client[config.db_name][config.collection])

    @property
    def collection(self) -> Collection:
        return self._collection

    def ensure_indexes(self) -> None:
        try:
            self._collection.create_index([("location", "2dsphere")])
            self._collection.create_index([("rating", -1)])
            self._collection.create_index("price_level")
            self._collection.create_index("categories")
            self._collection.create_index("features")
        except PyMongoError as exc:
            logger.exception("Could not create place indexes")
            raise InternalError("Failed to prepare place store") from exc
        logger.info("Place indexes ensured on %s", self._collection.name)

    def find(self, params: FilterParams, limit: int | None = None) -> list[Place]:
        query = build_mongo_query(params)
        logger.debug("Place query: %s", query)
        try:
            cursor = self._collection.find(query)
            if limit is not None:
                cursor = cursor.limit(limit)
            documents = list(cursor)
        except PyMongoError as exc:
            logger.exception("Place query failed")
            raise InternalError("Failed to fetch places") from exc
        return [_document_to_place(doc) for doc in documents]

    def get(self, place_id: str) -> Place | None:
        try:
            doc = self._collection.find_one({"id": place_id})
        except PyMongoError as exc:
            logger.exception("Place lookup failed for %s", place_id)
            raise InternalError("Failed to fetch place") from exc
        return _document_to_place(doc) if doc else None

    def distinct_tags(self) -> dict[str, list[str]]:
        try:
            return {
                column: sorted(self._collection.distinct(column))
                for column in ("categories", "features")
            }
        except PyMongoError as exc:
            logger.exception("Tag lookup failed")
            raise InternalError("Failed to fetch metadata") from exc


_store: PlaceStore | None = None


def get_place_store(config: AppConfig = DEFAULT_CONFIG) -> PlaceStore:
    """Return the configured place store, creating it on first call."""
    global _store
    if _store is None:
        if config.storage_mode == "mongodb":
            _store = MongoPlaceStore.from_config(config)
        else:
            _store = DataFramePlaceStore.from_json(config.places_path)
    return _store
