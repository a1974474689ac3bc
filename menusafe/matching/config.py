from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class MatchConfig:
    """Thresholds that must both hold for two restaurants to be the same entity."""

    name_threshold: float = float(os.getenv("MATCH_NAME_THRESHOLD", "0.8"))
    distance_threshold_meters: float = float(os.getenv("MATCH_DISTANCE_METERS", "100"))


DEFAULT_MATCH_CONFIG = MatchConfig()
