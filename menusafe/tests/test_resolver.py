from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from menusafe.places.google_maps import MatchedPlace, VerificationResult
from menusafe.restaurants.config import ResolverConfig
from menusafe.restaurants.errors import InvalidObservationError, StoreError
from menusafe.restaurants.models import (
    Location,
    MenuItem,
    MenuObservation,
    ResolutionAction,
    RestaurantRecord,
    Source,
)
from menusafe.restaurants.resolver import RestaurantResolver
from menusafe.restaurants.store import InMemoryRestaurantStore

ORIGIN = Location(lat=37.7749, lng=-122.4194)
STORED_LOCATION = Location(lat=37.7750, lng=-122.4195)  # ~14 m from ORIGIN
FAR_AWAY = Location(lat=37.7749 + 500 / 111_195, lng=-122.4194)

PIZZA_MENU = [
    MenuItem(name="Margherita Pizza", allergens=["dairy", "gluten"]),
    MenuItem(name="Caesar Salad", allergens=["dairy", "fish"]),
]


class FakeVerifier:
    def __init__(self, result: VerificationResult | None = None, exc: Exception | None = None):
        self.result = result or VerificationResult(found=False)
        self.exc = exc
        self.calls: list[tuple[str, Location]] = []

    def verify(self, name, location):
        self.calls.append((name, location))
        if self.exc:
            raise self.exc
        return self.result


class SpyStore(InMemoryRestaurantStore):
    def __init__(self, records=None):
        self.writes = 0
        self.reads = 0
        super().__init__(records)
        self.writes = 0

    def find_exact_near(self, *args, **kwargs):
        self.reads += 1
        return super().find_exact_near(*args, **kwargs)

    def list_all(self):
        self.reads += 1
        return super().list_all()

    def upsert(self, record):
        self.writes += 1
        return super().upsert(record)


class BrokenStore:
    def find_exact_near(self, *args):
        raise StoreError("database unreachable")

    def list_all(self):
        raise StoreError("database unreachable")

    def upsert(self, record):
        raise StoreError("database unreachable")


def _stored_pizza_palace(store) -> RestaurantRecord:
    return store.upsert(
        RestaurantRecord(
            name="Pizza Palace",
            location=STORED_LOCATION,
            menu_items=PIZZA_MENU,
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    )


def _verified(name="Pizza Palace", location=STORED_LOCATION) -> VerificationResult:
    return VerificationResult(
        found=True,
        matched_place=MatchedPlace(place_id="gp-123", name=name, location=location),
    )


# ── Local matches ────────────────────────────────────────────────────────


def test_typo_observation_updates_existing_record():
    store = SpyStore()
    existing = _stored_pizza_palace(store)
    verifier = FakeVerifier()
    resolver = RestaurantResolver(store, verifier)

    outcome = resolver.resolve(MenuObservation(name="Pizza Palce", location=ORIGIN))

    assert outcome.action == ResolutionAction.update
    assert outcome.record.id == existing.id
    assert outcome.name_similarity >= 0.8
    assert outcome.distance_meters <= 100
    assert len(store.list_all()) == 1
    assert verifier.calls == []


def test_exact_name_nearby_takes_cheap_path():
    store = SpyStore()
    existing = _stored_pizza_palace(store)
    resolver = RestaurantResolver(store, FakeVerifier())

    outcome = resolver.resolve(MenuObservation(name="Pizza Palace", location=ORIGIN))

    assert outcome.action == ResolutionAction.update
    assert outcome.record.id == existing.id
    assert outcome.name_similarity == 1.0
    assert 0 < outcome.distance_meters < 20
    assert store.reads == 1  # list_all never needed


def test_update_refreshes_timestamp_and_merges_menu():
    store = InMemoryRestaurantStore()
    existing = _stored_pizza_palace(store)
    resolver = RestaurantResolver(store)

    outcome = resolver.resolve(
        MenuObservation(
            name="Pizza Palace",
            location=ORIGIN,
            menu_items=[
                MenuItem(name="Margherita Pizza", allergens=["dairy", "gluten"], certainty=0.5),
                MenuItem(name="Tiramisu", allergens=["dairy", "eggs"]),
            ],
        )
    )

    assert outcome.record.updated_at > existing.updated_at
    names = [m.name for m in outcome.record.menu_items]
    assert names == ["Margherita Pizza", "Caesar Salad", "Tiramisu"]
    assert outcome.record.menu_items[0].certainty == 0.5


def test_replace_mode_overwrites_menu():
    store = InMemoryRestaurantStore()
    _stored_pizza_palace(store)
    resolver = RestaurantResolver(store, config=ResolverConfig(menu_merge="replace"))

    outcome = resolver.resolve(
        MenuObservation(
            name="Pizza Palace",
            location=ORIGIN,
            menu_items=[MenuItem(name="Calzone", allergens=["gluten"])],
        )
    )

    assert [m.name for m in outcome.record.menu_items] == ["Calzone"]


# ── No local match ───────────────────────────────────────────────────────


def test_same_name_far_away_creates_new_record():
    store = InMemoryRestaurantStore()
    _stored_pizza_palace(store)
    resolver = RestaurantResolver(store, FakeVerifier())

    outcome = resolver.resolve(
        MenuObservation(name="Pizza Palace", location=FAR_AWAY, source=Source.scrape)
    )

    assert outcome.action == ResolutionAction.create
    assert outcome.record.source == Source.scrape
    assert len(store.list_all()) == 2


def test_verified_place_tags_new_record():
    store = InMemoryRestaurantStore()
    resolver = RestaurantResolver(store, FakeVerifier(_verified()))

    outcome = resolver.resolve(MenuObservation(name="Pizza Palce", location=ORIGIN, menu_items=PIZZA_MENU))

    assert outcome.action == ResolutionAction.menu_only_update
    assert outcome.verified
    assert outcome.record.name == "Pizza Palce"
    assert outcome.record.location == ORIGIN
    assert outcome.record.external_match.place_id == "gp-123"
    assert outcome.record.external_match.name == "Pizza Palace"
    assert len(outcome.record.menu_items) == 2


def test_menu_only_policy_takes_identity_from_verified_place():
    store = InMemoryRestaurantStore()
    resolver = RestaurantResolver(
        store,
        FakeVerifier(_verified()),
        ResolverConfig(verified_policy="menu_only"),
    )

    outcome = resolver.resolve(MenuObservation(name="Pizza Palce", location=ORIGIN, menu_items=PIZZA_MENU))

    assert outcome.action == ResolutionAction.menu_only_update
    assert outcome.record.name == "Pizza Palace"
    assert outcome.record.location == STORED_LOCATION
    assert [m.name for m in outcome.record.menu_items] == ["Margherita Pizza", "Caesar Salad"]


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        ResolverConfig(verified_policy="guess")


def test_verifier_failure_fails_open_to_create():
    store = InMemoryRestaurantStore()
    verifier = FakeVerifier(exc=RuntimeError("maps down"))
    resolver = RestaurantResolver(store, verifier)

    outcome = resolver.resolve(MenuObservation(name="Taco Town", location=ORIGIN))

    assert outcome.action == ResolutionAction.create
    assert not outcome.verified
    assert len(verifier.calls) == 1


def test_no_verifier_configured_creates():
    resolver = RestaurantResolver(InMemoryRestaurantStore())
    outcome = resolver.resolve(MenuObservation(name="Taco Town", location=ORIGIN))
    assert outcome.action == ResolutionAction.create


def test_menu_only_policy_resolves_repeat_observation_to_same_record():
    # the verified place sits 150 m from where the menu was photographed
    place_location = Location(lat=37.7749 + 150 / 111_195, lng=-122.4194)
    store = SpyStore()
    verifier = FakeVerifier(_verified(location=place_location))
    resolver = RestaurantResolver(store, verifier, ResolverConfig(verified_policy="menu_only"))
    observation = MenuObservation(name="Pizza Palce", location=ORIGIN, menu_items=PIZZA_MENU)

    first = resolver.resolve(observation)
    store.writes = 0
    second = resolver.resolve(observation)

    assert first.action == second.action == ResolutionAction.menu_only_update
    assert second.record.id == first.record.id
    assert len(store.list_all()) == 1
    assert store.writes == 1


def test_verified_place_already_linked_by_place_id_is_updated():
    store = InMemoryRestaurantStore()
    resolver = RestaurantResolver(store, FakeVerifier(_verified()))

    first = resolver.resolve(MenuObservation(name="Pizza Palace", location=ORIGIN, menu_items=PIZZA_MENU))
    # different spelling and far enough to miss every local match
    second = resolver.resolve(
        MenuObservation(
            name="Pizzeria Palace Downtown",
            location=FAR_AWAY,
            menu_items=[MenuItem(name="Tiramisu", allergens=["dairy", "eggs"])],
        )
    )

    assert second.action == ResolutionAction.menu_only_update
    assert second.record.id == first.record.id
    assert second.record.name == "Pizza Palace"
    assert [m.name for m in second.record.menu_items][-1] == "Tiramisu"
    assert len(store.list_all()) == 1


# ── Invariants ───────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "existing, verifier",
    [
        (True, FakeVerifier()),
        (False, FakeVerifier(_verified())),
        (False, FakeVerifier()),
    ],
)
def test_every_branch_writes_exactly_once(existing, verifier):
    store = SpyStore()
    if existing:
        _stored_pizza_palace(store)
        store.writes = 0
    resolver = RestaurantResolver(store, verifier)

    resolver.resolve(MenuObservation(name="Pizza Palace", location=ORIGIN))

    assert store.writes == 1


def test_resolving_twice_stores_one_record():
    store = InMemoryRestaurantStore()
    resolver = RestaurantResolver(store, FakeVerifier())
    observation = MenuObservation(name="Sushi Zen", location=ORIGIN, menu_items=PIZZA_MENU)

    first = resolver.resolve(observation)
    second = resolver.resolve(observation)

    assert first.action == ResolutionAction.create
    assert second.action == ResolutionAction.update
    assert second.record.id == first.record.id
    assert len(store.list_all()) == 1


def test_blank_name_rejected_before_store_access():
    store = SpyStore()
    resolver = RestaurantResolver(store, FakeVerifier())

    with pytest.raises(InvalidObservationError):
        resolver.resolve(MenuObservation(name="   ", location=ORIGIN))

    assert store.reads == 0
    assert store.writes == 0


def test_malformed_coordinates_rejected():
    with pytest.raises(ValidationError):
        MenuObservation(name="Pizza Palace", location={"lat": 123.0, "lng": 0.0})


def test_store_errors_propagate():
    resolver = RestaurantResolver(BrokenStore(), FakeVerifier())
    with pytest.raises(StoreError):
        resolver.resolve(MenuObservation(name="Pizza Palace", location=ORIGIN))


# ── Menu context ─────────────────────────────────────────────────────────


def test_menu_context_reads_without_writing():
    store = SpyStore()
    _stored_pizza_palace(store)
    store.writes = 0
    resolver = RestaurantResolver(store)

    menu = resolver.menu_context("Pizza Palce", ORIGIN)

    assert [m.name for m in menu] == ["Margherita Pizza", "Caesar Salad"]
    assert store.writes == 0
    assert resolver.menu_context("Unknown Diner", ORIGIN) is None
