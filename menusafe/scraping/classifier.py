from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field

PRICE_RE = re.compile(r"\$\s?\d{1,3}(\.\d{2})?")

BLACKLIST: tuple[str, ...] = (
    "home", "about", "location", "press", "careers", "contact", "privacy",
    "instagram", "facebook", "linkedin", "terms", "hours", "reservation",
    "gift card", "event", "newsletter", "our story", "follow us", "shop",
    "accessibility", "error", "sign up", "login",
)

PRICE_WEIGHT = 0.5
LENGTH_WEIGHT = 0.2
WORDS_WEIGHT = 0.2
BLACKLIST_PENALTY = 0.7

MENU_CUTOFF = 0.75
NOT_MENU_CUTOFF = 0.3


class Label(str, Enum):
    menu = "menu"
    maybe = "maybe"
    not_menu = "not_menu"


class ClassificationResult(BaseModel):
    text: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    label: Label


def classify(text: str) -> ClassificationResult:
    """Heuristic menu-item score for a single text fragment. Never raises."""
    cleaned = (text or "").strip()
    lower = cleaned.lower()

    score = 0.0
    if PRICE_RE.search(cleaned):
        score += PRICE_WEIGHT
    if 5 <= len(cleaned) <= 100:
        score += LENGTH_WEIGHT
    if len(cleaned.split()) >= 2:
        score += WORDS_WEIGHT
    if any(term in lower for term in BLACKLIST):
        score -= BLACKLIST_PENALTY

    confidence = round(max(0.0, min(1.0, score)), 2)

    if confidence >= MENU_CUTOFF:
        label = Label.menu
    elif confidence < NOT_MENU_CUTOFF:
        label = Label.not_menu
    else:
        label = Label.maybe

    return ClassificationResult(text=cleaned, confidence=confidence, label=label)


def is_menu_text(result: ClassificationResult) -> bool:
    return result.label == Label.menu or (
        result.label == Label.maybe and result.confidence >= MENU_CUTOFF
    )
