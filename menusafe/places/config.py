from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class PlacesConfig:
    api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    base_url: str = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    verify_radius_meters: int = 100
    nearby_radius_meters: int = 500
    similarity_threshold: float = 0.8
    timeout: float = 10.0
    enabled: bool = True


DEFAULT_PLACES_CONFIG = PlacesConfig()
