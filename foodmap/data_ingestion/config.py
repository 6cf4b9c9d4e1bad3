from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for turning raw place records into the canonical seed file.
    """

    raw_data_dir: Path = Path("foodmap/data/raw")
    processed_data_dir: Path = Path("foodmap/data/processed")
    raw_filename: str = "places_raw.json"
    processed_filename: str = "places.json"

    @property
    def raw_path(self) -> Path:
        return self.raw_data_dir / self.raw_filename

    @property
    def processed_path(self) -> Path:
        return self.processed_data_dir / self.processed_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
