"""
Catalog import configuration.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for importing a restaurant catalog CSV.
    """

    source_csv: Path = Path("menusafe/data/raw/restaurants.csv")
    source: str = "manual"


DEFAULT_INGESTION_CONFIG = IngestionConfig()
