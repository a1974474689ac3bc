from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Source(str, Enum):
    camera = "camera"
    manual = "manual"
    scrape = "scrape"


class ResolutionAction(str, Enum):
    create = "create"
    update = "update"
    menu_only_update = "menu_only_update"


class Location(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class MenuItem(BaseModel):
    name: str = Field(..., min_length=1)
    allergens: list[str] = Field(default_factory=list)
    certainty: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("allergens")
    @classmethod
    def _normalize_allergens(cls, value: list[str]) -> list[str]:
        # Set semantics, but keep first-seen order for stable output
        seen: list[str] = []
        for tag in value:
            tag = str(tag).strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ExternalMatch(BaseModel):
    place_id: str | None = None
    name: str
    location: Location | None = None


class RestaurantRecord(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1)
    location: Location
    menu_items: list[MenuItem] = Field(default_factory=list)
    source: Source = Source.manual
    external_match: ExternalMatch | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MenuObservation(BaseModel):
    name: str = Field(..., description="Restaurant name as observed")
    location: Location
    menu_items: list[MenuItem] = Field(default_factory=list)
    source: Source = Source.camera


class ResolutionOutcome(BaseModel):
    action: ResolutionAction
    record: RestaurantRecord
    name_similarity: float | None = None
    distance_meters: float | None = None
    verified: bool = False


class RestaurantSummary(BaseModel):
    id: str
    name: str


class RestaurantDetail(BaseModel):
    name: str
    menu_items: list[MenuItem]


class MenuDetails(BaseModel):
    id: str
    name: str
    menu_items: list[MenuItem]


class MapsLookupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    location: Location


class MapsLookupResponse(BaseModel):
    name: str
    location: Location
    status: str
    menu: list[MenuItem] | None = None
    message: str | None = None
    nearby: list[ExternalMatch] = Field(default_factory=list)


class CameraUploadRequest(BaseModel):
    name: str = Field(..., min_length=1)
    location: Location
    image_base64: str = Field(..., min_length=1)
