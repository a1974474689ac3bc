from __future__ import annotations

import json
import logging
from typing import List

import pandas as pd

from ..matching.geo import is_valid_coordinate
from ..restaurants.errors import InvalidObservationError
from ..restaurants.models import Location, MenuItem, MenuObservation, ResolutionAction, Source
from ..restaurants.resolver import RestaurantResolver
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)


def _first_present(df: pd.DataFrame, columns: List[str]) -> str | None:
    for col in columns:
        if col in df.columns:
            return col
    return None


def _parse_menu(raw) -> list[MenuItem]:
    """
    Menu cells hold either a JSON list of ``{name, allergens}`` objects or a
    ``;``-separated list of dish names.
    """
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return []
    text = str(raw).strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            return [MenuItem(**item) for item in json.loads(text)]
        except (ValueError, TypeError):
            logger.warning("Unparseable menu JSON, ignoring: %.60s", text)
            return []
    return [MenuItem(name=part.strip()) for part in text.split(";") if part.strip()]


def canonicalize(df: pd.DataFrame) -> pd.DataFrame:
    """Map raw catalog columns to ``name, lat, lng, menu`` and drop unusable rows."""
    col_name = _first_present(df, ["name", "restaurant_name", "restaurantName"])
    col_lat = _first_present(df, ["lat", "latitude"])
    col_lng = _first_present(df, ["lng", "lon", "longitude"])
    col_menu = _first_present(df, ["menu", "menu_items", "menuItems"])
    if not (col_name and col_lat and col_lng):
        raise ValueError("Catalog CSV needs name, latitude and longitude columns")

    canonical = pd.DataFrame()
    canonical["name"] = df[col_name].fillna("").astype(str).str.strip()
    canonical["lat"] = pd.to_numeric(df[col_lat], errors="coerce")
    canonical["lng"] = pd.to_numeric(df[col_lng], errors="coerce")
    canonical["menu"] = df[col_menu] if col_menu else None
    if canonical.empty:
        return canonical

    valid = canonical["name"].ne("") & canonical.apply(
        lambda row: is_valid_coordinate(row["lat"], row["lng"]), axis=1
    )
    dropped = int((~valid).sum())
    if dropped:
        logger.warning("Dropping %d catalog rows with blank names or bad coordinates", dropped)
    return canonical.loc[valid].reset_index(drop=True)


def run_ingestion(
    resolver: RestaurantResolver,
    config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
) -> dict[str, int]:
    """
    Import the catalog through ``resolver``.

    Returns counts per resolution action plus ``skipped`` for rows dropped
    during loading or rejected by the resolver.
    """
    raw = pd.read_csv(config.source_csv)
    catalog = canonicalize(raw)

    counts = {action.value: 0 for action in ResolutionAction}
    counts["skipped"] = len(raw) - len(catalog)

    for row in catalog.itertuples(index=False):
        observation = MenuObservation(
            name=row.name,
            location=Location(lat=row.lat, lng=row.lng),
            menu_items=_parse_menu(row.menu),
            source=Source(config.source),
        )
        try:
            outcome = resolver.resolve(observation)
        except InvalidObservationError:
            counts["skipped"] += 1
            continue
        counts[outcome.action.value] += 1

    return counts


if __name__ == "__main__":
    from ..restaurants.store import build_store

    summary = run_ingestion(RestaurantResolver(build_store()))
    print(f"Catalog import complete: {summary}")
