from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ..restaurants.models import MenuItem


class Tier(str, Enum):
    static = "static"
    dynamic = "dynamic"
    none = "none"


class ScrapeResult(BaseModel):
    url: str
    tier: Tier
    items: list[str] = Field(default_factory=list)

    def pairs(self) -> list[tuple[str, Tier]]:
        return [(text, self.tier) for text in self.items]


class ClassifyRequest(BaseModel):
    text: str = Field(..., max_length=2000)


class ScrapeRequest(BaseModel):
    urls: list[str] = Field(..., min_length=1, max_length=20)
    summarize: bool = False
    extract_allergens: bool = False


class ScrapeResponse(BaseModel):
    results: list[ScrapeResult]
    message: str
    summary: str | None = None
    menu_items: list[MenuItem] | None = None
