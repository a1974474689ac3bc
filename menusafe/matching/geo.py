from __future__ import annotations

import math
from typing import Sequence

import numpy as np

EARTH_RADIUS_METERS = 6_371_000.0


def is_valid_coordinate(lat: float, lng: float) -> bool:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def distance_meters(p1, p2) -> float:
    """Haversine great-circle distance in meters between two ``lat``/``lng`` points."""
    lat1, lng1 = math.radians(p1.lat), math.radians(p1.lng)
    lat2, lng2 = math.radians(p2.lat), math.radians(p2.lng)
    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


def distances_meters(origin, lats: Sequence[float], lngs: Sequence[float]) -> np.ndarray:
    """Vectorized haversine from ``origin`` to every (lat, lng) pair."""
    lat_arr = np.radians(np.asarray(lats, dtype=float))
    lng_arr = np.radians(np.asarray(lngs, dtype=float))
    lat0 = math.radians(origin.lat)
    lng0 = math.radians(origin.lng)

    h = (
        np.sin((lat_arr - lat0) / 2) ** 2
        + math.cos(lat0) * np.cos(lat_arr) * np.sin((lng_arr - lng0) / 2) ** 2
    )
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(h))


def bounding_box(origin, radius_meters: float) -> tuple[float, float, float, float]:
    """
    Return ``(min_lat, max_lat, min_lng, max_lng)`` enclosing a circle of
    ``radius_meters`` around ``origin``. Used to prefilter rows before the
    exact haversine check.
    """
    dlat = math.degrees(radius_meters / EARTH_RADIUS_METERS)
    cos_lat = math.cos(math.radians(origin.lat))
    if cos_lat < 1e-9:
        dlng = 180.0
    else:
        dlng = math.degrees(radius_meters / (EARTH_RADIUS_METERS * cos_lat))

    min_lng = origin.lng - dlng
    max_lng = origin.lng + dlng
    # Boxes that wrap the antimeridian fall back to the full longitude range
    if min_lng < -180.0 or max_lng > 180.0:
        min_lng, max_lng = -180.0, 180.0

    return (
        max(-90.0, origin.lat - dlat),
        min(90.0, origin.lat + dlat),
        min_lng,
        max_lng,
    )
