from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from ..matching.similarity import similarity
from ..restaurants.models import Location
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig

logger = logging.getLogger(__name__)


class MatchedPlace(BaseModel):
    place_id: str | None = None
    name: str
    location: Location


class VerificationResult(BaseModel):
    found: bool
    matched_place: MatchedPlace | None = None


NOT_FOUND = VerificationResult(found=False)


def _to_place(result: dict[str, Any]) -> MatchedPlace:
    loc = result["geometry"]["location"]
    return MatchedPlace(
        place_id=result.get("place_id"),
        name=result["name"],
        location=Location(lat=loc["lat"], lng=loc["lng"]),
    )


class GooglePlacesVerifier:
    """
    Thin client over the Places Nearby Search endpoint.

    The ``httpx.Client`` is created once and reused; pass one in to share a
    connection pool or to inject a mock transport.
    """

    def __init__(
        self,
        config: PlacesConfig = DEFAULT_PLACES_CONFIG,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def _nearby_search(self, location: Location, radius: int, keyword: str | None = None) -> list[dict]:
        params = {
            "location": f"{location.lat},{location.lng}",
            "radius": str(radius),
            "type": "restaurant",
            "key": self.config.api_key,
        }
        if keyword:
            params["keyword"] = keyword

        response = self._client.get(self.config.base_url, params=params)
        response.raise_for_status()
        data = response.json()

        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise ValueError(f"Places API returned status {status!r}")
        return data.get("results", [])

    def verify(self, name: str, location: Location) -> VerificationResult:
        """
        Return ``found=True`` when a nearby place's name is similar enough to
        ``name``. Never raises; failures read as not found.
        """
        if not self.config.enabled or not self.config.api_key:
            return NOT_FOUND

        try:
            results = self._nearby_search(location, self.config.verify_radius_meters, keyword=name)

            best: dict | None = None
            best_score = 0.0
            for place in results:
                score = similarity(place.get("name", ""), name)
                if score > best_score:
                    best, best_score = place, score

            logger.info("Places best match for %r: %.2f", name, best_score)
            if best is not None and best_score >= self.config.similarity_threshold:
                return VerificationResult(found=True, matched_place=_to_place(best))
            return NOT_FOUND

        except (httpx.HTTPError, ValueError, KeyError, TypeError):
            logger.warning("Place verification failed for %r, treating as not found", name, exc_info=True)
            return NOT_FOUND

    def nearby_restaurants(self, location: Location) -> list[MatchedPlace]:
        """Restaurants within ``nearby_radius_meters``; empty list on failure."""
        if not self.config.enabled or not self.config.api_key:
            return []

        try:
            results = self._nearby_search(location, self.config.nearby_radius_meters)
            return [_to_place(r) for r in results]
        except (httpx.HTTPError, ValueError, KeyError, TypeError):
            logger.warning("Nearby restaurant lookup failed", exc_info=True)
            return []
