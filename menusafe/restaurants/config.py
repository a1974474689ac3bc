from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from ..matching.config import DEFAULT_MATCH_CONFIG, MatchConfig

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

# "tag": create a bookkeeping record tagged with the verified place.
# "menu_only": create a record whose identity comes from the verified place,
# attaching only the observed menu content.
VERIFIED_POLICIES = ("tag", "menu_only")
MENU_MERGE_MODES = ("merge", "replace")


@dataclass(frozen=True)
class StoreConfig:
    backend: str = os.getenv("MENUSAFE_STORE", "sqlite")
    db_path: Path = Path(os.getenv("MENUSAFE_DB_PATH", "menusafe/data/restaurants.db"))


@dataclass(frozen=True)
class ResolverConfig:
    match: MatchConfig = field(default_factory=lambda: DEFAULT_MATCH_CONFIG)
    exact_radius_meters: float = 100.0
    verified_policy: str = os.getenv("MENUSAFE_VERIFIED_POLICY", "tag")
    menu_merge: str = os.getenv("MENUSAFE_MENU_MERGE", "merge")
    menu_item_threshold: float = 0.8

    def __post_init__(self) -> None:
        if self.verified_policy not in VERIFIED_POLICIES:
            raise ValueError(f"Unknown verified_policy: {self.verified_policy!r}")
        if self.menu_merge not in MENU_MERGE_MODES:
            raise ValueError(f"Unknown menu_merge: {self.menu_merge!r}")


DEFAULT_STORE_CONFIG = StoreConfig()
DEFAULT_RESOLVER_CONFIG = ResolverConfig()
