from __future__ import annotations

import base64
import binascii
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .logging_config import setup_logging
from .restaurants.errors import InvalidObservationError, StoreError
from .restaurants.models import (
    CameraUploadRequest,
    ExternalMatch,
    Location,
    MapsLookupRequest,
    MapsLookupResponse,
    MenuDetails,
    MenuObservation,
    ResolutionOutcome,
    RestaurantDetail,
    RestaurantSummary,
    Source,
)
from .scraping.classifier import ClassificationResult, classify
from .scraping.models import ClassifyRequest, ScrapeRequest, ScrapeResponse
from .services import Services, build_services


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Tests install their own services before the app starts
    owned = getattr(app.state, "services", None) is None
    if owned:
        app.state.services = build_services()
    try:
        yield
    finally:
        if owned:
            app.state.services.close()
            app.state.services = None


app = FastAPI(title="Menu Resolution API", version="1.0.0", lifespan=lifespan)


def get_services(request: Request) -> Services:
    return request.app.state.services


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(InvalidObservationError)
async def invalid_observation_handler(request: Request, exc: InvalidObservationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=503, content={"detail": "Could not process observation"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Restaurant endpoints ─────────────────────────────────────────────────


@app.post("/restaurants/resolve", response_model=ResolutionOutcome)
def resolve_restaurant(
    body: MenuObservation,
    services: Services = Depends(get_services),
) -> ResolutionOutcome:
    return services.resolver.resolve(body)


@app.get("/restaurants", response_model=list[RestaurantSummary])
def list_restaurants(services: Services = Depends(get_services)) -> list[RestaurantSummary]:
    return [RestaurantSummary(id=r.id, name=r.name) for r in services.store.list_all()]


@app.get("/restaurants/{restaurant_id}", response_model=RestaurantDetail)
def restaurant_detail(
    restaurant_id: str,
    services: Services = Depends(get_services),
) -> RestaurantDetail:
    record = services.store.get(restaurant_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return RestaurantDetail(name=record.name, menu_items=record.menu_items)


@app.get("/menu-details/{restaurant_id}", response_model=MenuDetails)
def menu_details(
    restaurant_id: str,
    services: Services = Depends(get_services),
) -> MenuDetails:
    record = services.store.get(restaurant_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return MenuDetails(id=record.id, name=record.name, menu_items=record.menu_items)


def _nearby_places(services: Services, location: Location) -> list[ExternalMatch]:
    if services.verifier is None:
        return []
    return [
        ExternalMatch(place_id=p.place_id, name=p.name, location=p.location)
        for p in services.verifier.nearby_restaurants(location)
    ]


@app.post("/maps", response_model=MapsLookupResponse)
def maps_lookup(
    body: MapsLookupRequest,
    services: Services = Depends(get_services),
) -> MapsLookupResponse:
    """Known menu for a place picked on the map, or a request to photograph it."""
    menu = services.resolver.menu_context(body.name, body.location)
    if menu:
        return MapsLookupResponse(
            name=body.name, location=body.location, status="found", menu=menu,
        )
    return MapsLookupResponse(
        name=body.name,
        location=body.location,
        status="camera_requested",
        message="Menu capture has been requested",
        nearby=_nearby_places(services, body.location),
    )


@app.post("/camera/upload", response_model=ResolutionOutcome)
def camera_upload(
    body: CameraUploadRequest,
    services: Services = Depends(get_services),
) -> ResolutionOutcome:
    try:
        image_bytes = base64.b64decode(body.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=422, detail="image_base64 is not valid base64")

    menu_items = services.extractor.extract_allergens(image_bytes)
    if not menu_items:
        raise HTTPException(status_code=422, detail="No menu items found in image")

    observation = MenuObservation(
        name=body.name,
        location=body.location,
        menu_items=menu_items,
        source=Source.camera,
    )
    return services.resolver.resolve(observation)


# ── Menu text endpoints ──────────────────────────────────────────────────


@app.post("/menu/classify", response_model=ClassificationResult)
def classify_text(body: ClassifyRequest) -> ClassificationResult:
    return classify(body.text)


@app.post("/menu/scrape", response_model=ScrapeResponse)
async def scrape_menu(
    body: ScrapeRequest,
    services: Services = Depends(get_services),
) -> ScrapeResponse:
    results = await services.scraper.extract_many(body.urls)
    found = [text for r in results for text in r.items]

    if not found:
        return ScrapeResponse(results=results, message="No menu content found")

    summary = None
    if body.summarize:
        summary = await run_in_threadpool(services.extractor.summarize_menu_items, found)

    menu_items = None
    if body.extract_allergens:
        menu_items = await run_in_threadpool(services.extractor.extract_allergens_from_text, found)

    return ScrapeResponse(
        results=results,
        message=f"Found {len(found)} menu items",
        summary=summary,
        menu_items=menu_items,
    )
