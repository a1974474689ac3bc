from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from .llm.groq_client import AllergenExtractor
from .places.config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .places.google_maps import GooglePlacesVerifier
from .restaurants.config import (
    DEFAULT_RESOLVER_CONFIG,
    DEFAULT_STORE_CONFIG,
    ResolverConfig,
    StoreConfig,
)
from .restaurants.resolver import RestaurantResolver
from .restaurants.store import build_store
from .scraping.config import DEFAULT_SCRAPE_CONFIG, ScrapeConfig
from .scraping.orchestrator import ScrapeOrchestrator


@dataclass
class Services:
    """Collaborators created once at startup and shared by request handlers."""

    store: Any
    resolver: RestaurantResolver
    scraper: ScrapeOrchestrator
    extractor: AllergenExtractor
    verifier: GooglePlacesVerifier | None = None
    closers: list = field(default_factory=list)

    def close(self) -> None:
        for close in self.closers:
            close()


def build_services(
    store_config: StoreConfig = DEFAULT_STORE_CONFIG,
    resolver_config: ResolverConfig = DEFAULT_RESOLVER_CONFIG,
    places_config: PlacesConfig = DEFAULT_PLACES_CONFIG,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
    scrape_config: ScrapeConfig = DEFAULT_SCRAPE_CONFIG,
) -> Services:
    store = build_store(store_config)
    verifier = GooglePlacesVerifier(places_config)
    return Services(
        store=store,
        resolver=RestaurantResolver(store, verifier, resolver_config),
        scraper=ScrapeOrchestrator(scrape_config),
        extractor=AllergenExtractor(llm_config),
        verifier=verifier,
        closers=[verifier.close],
    )
