from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .recommendations.models import ScoringWeights

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_PROCESSED_DIR = Path(__file__).resolve().parent / "data" / "processed"


@dataclass(frozen=True)
class AppConfig:
    storage_mode: str = os.getenv("STORAGE_MODE", "local")  # "local" or "mongodb"
    mongo_uri: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017/ntu_food_map")
    db_name: str = os.getenv("DB_NAME", "ntu_food_map")
    collection: str = "places"
    places_path: Path = Path(os.getenv("PLACES_PATH", str(_PROCESSED_DIR / "places.json")))
    fetch_limit: int = 100
    mongo_timeout_ms: int = 5000
    max_events: int = int(os.getenv("MAX_EVENTS", "10000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    weights: ScoringWeights = field(default_factory=ScoringWeights)


DEFAULT_CONFIG = AppConfig()
