from __future__ import annotations

import logging

from ..matching.geo import distance_meters
from ..matching.matcher import best_match
from ..matching.menu_items import merge_menu_items
from ..places.google_maps import NOT_FOUND, MatchedPlace, VerificationResult
from .config import DEFAULT_RESOLVER_CONFIG, ResolverConfig
from .errors import InvalidObservationError
from .models import (
    ExternalMatch,
    Location,
    MenuItem,
    MenuObservation,
    ResolutionAction,
    ResolutionOutcome,
    RestaurantRecord,
    utcnow,
)

logger = logging.getLogger(__name__)


class RestaurantResolver:
    """
    Decide whether an observation belongs to a known restaurant and persist it.

    Resolution is a single pass:

    1. exact name within ``exact_radius_meters`` (store query)  -> update
    2. fuzzy match over every stored record                    -> update
    3. external place verification                             -> menu-only update
       (onto the record already linked to that place, if any)
    4. otherwise                                               -> create

    Every branch performs exactly one store write. Store errors propagate;
    verifier errors are treated as "not verified".
    """

    def __init__(self, store, verifier=None, config: ResolverConfig = DEFAULT_RESOLVER_CONFIG) -> None:
        self.store = store
        self.verifier = verifier
        self.config = config

    # ── Validation ───────────────────────────────────────────────────────

    @staticmethod
    def _validate(observation: MenuObservation) -> str:
        name = (observation.name or "").strip()
        if not name:
            raise InvalidObservationError("Restaurant name is required")
        return name

    # ── Lookup ───────────────────────────────────────────────────────────

    def _find_local(self, name: str, location: Location):
        """Return ``(record, similarity, distance)`` for a local match, or ``None``."""
        exact = self.store.find_exact_near(name, location, self.config.exact_radius_meters)
        if exact is not None:
            logger.info("Exact match for %r -> %s", name, exact.id)
            return exact, 1.0, distance_meters(exact.location, location)

        match = best_match(name, location, self.store.list_all(), self.config.match)
        if match is not None:
            logger.info(
                "Fuzzy match for %r -> %s (similarity=%.2f, distance=%.1fm)",
                name, match.record.id, match.name_similarity, match.distance_meters,
            )
            return match.record, match.name_similarity, match.distance_meters

        return None

    def _verify(self, name: str, location: Location) -> VerificationResult:
        if self.verifier is None:
            return NOT_FOUND
        try:
            return self.verifier.verify(name, location)
        except Exception:
            logger.warning("Verifier raised for %r, proceeding as unverified", name, exc_info=True)
            return NOT_FOUND

    def _find_linked(self, place: MatchedPlace) -> RestaurantRecord | None:
        """Record already stored for a verified place, by place id or by its own name and location."""
        if place.place_id:
            for record in self.store.list_all():
                if record.external_match and record.external_match.place_id == place.place_id:
                    return record
        return self.store.find_exact_near(place.name, place.location, self.config.exact_radius_meters)

    def menu_context(self, name: str, location: Location) -> list[MenuItem] | None:
        """Stored menu for the restaurant at ``location``, without writing anything."""
        name = self._validate(MenuObservation(name=name, location=location))
        found = self._find_local(name, location)
        if found is None:
            return None
        return found[0].menu_items

    # ── Resolution ───────────────────────────────────────────────────────

    def _merged_menu(self, existing: list[MenuItem], incoming: list[MenuItem]) -> list[MenuItem]:
        if self.config.menu_merge == "replace":
            return list(incoming)
        return merge_menu_items(existing, incoming, self.config.menu_item_threshold)

    def resolve(self, observation: MenuObservation) -> ResolutionOutcome:
        name = self._validate(observation)
        location = observation.location

        found = self._find_local(name, location)
        if found is not None:
            record, name_sim, dist = found
            record.menu_items = self._merged_menu(record.menu_items, observation.menu_items)
            record.updated_at = utcnow()
            saved = self.store.upsert(record)
            return ResolutionOutcome(
                action=ResolutionAction.update,
                record=saved,
                name_similarity=name_sim,
                distance_meters=dist,
                verified=saved.external_match is not None,
            )

        verification = self._verify(name, location)
        if verification.found and verification.matched_place is not None:
            place = verification.matched_place
            external = ExternalMatch(
                place_id=place.place_id, name=place.name, location=place.location,
            )
            linked = self._find_linked(place)
            if linked is not None:
                linked.menu_items = self._merged_menu(linked.menu_items, observation.menu_items)
                linked.external_match = linked.external_match or external
                linked.updated_at = utcnow()
                saved = self.store.upsert(linked)
                logger.info("Verified %r as %r, already stored as %s", name, place.name, saved.id)
                return ResolutionOutcome(
                    action=ResolutionAction.menu_only_update, record=saved, verified=True,
                )

            if self.config.verified_policy == "menu_only":
                record = RestaurantRecord(
                    name=place.name,
                    location=place.location,
                    menu_items=list(observation.menu_items),
                    source=observation.source,
                    external_match=external,
                )
            else:
                record = RestaurantRecord(
                    name=name,
                    location=location,
                    menu_items=list(observation.menu_items),
                    source=observation.source,
                    external_match=external,
                )
            saved = self.store.upsert(record)
            logger.info(
                "No local match for %r; verified as %r, stored %s (policy=%s)",
                name, place.name, saved.id, self.config.verified_policy,
            )
            return ResolutionOutcome(
                action=ResolutionAction.menu_only_update, record=saved, verified=True,
            )

        saved = self.store.upsert(
            RestaurantRecord(
                name=name,
                location=location,
                menu_items=list(observation.menu_items),
                source=observation.source,
            )
        )
        logger.info("Created restaurant %s for %r", saved.id, name)
        return ResolutionOutcome(action=ResolutionAction.create, record=saved)
