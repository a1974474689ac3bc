from __future__ import annotations

import base64
import json
import logging
from typing import Any

from groq import Groq
from pydantic import ValidationError

from ..restaurants.models import MenuItem
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

ALLERGEN_PROMPT = (
    "You read restaurant menus for people with food allergies. "
    "List every dish on the menu and the common allergens it likely contains "
    "(dairy, eggs, fish, shellfish, tree nuts, peanuts, wheat, gluten, soy, sesame, pork). "
    "Give each dish a certainty between 0 and 1 for its allergen list.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"menu_items": [{"name": "<dish>", "allergens": ["<allergen>"], "certainty": 0.8}]}'
)

SUMMARY_PROMPT = (
    "You are a helpful assistant. Categorize and summarize the following menu items "
    "by type (e.g., appetizers, entrees, desserts, drinks), and make it easy for "
    "users with food allergies to understand."
)

EMPTY_SUMMARY = "No menu items available to summarize."
FALLBACK_SUMMARY = "Unable to summarize menu items at this time."


def _parse_menu_items(content: str) -> list[MenuItem]:
    parsed = json.loads(content or "{}")
    items: list[MenuItem] = []
    for raw in parsed.get("menu_items", []):
        try:
            items.append(MenuItem(**raw))
        except (TypeError, ValidationError):
            logger.debug("Skipping malformed menu item from LLM: %r", raw)
    return items


class AllergenExtractor:
    """
    Groq-backed allergen extraction.

    Built once at startup and passed to whoever needs it. All public methods
    swallow API and parsing failures and return an empty result instead.
    """

    def __init__(self, config: LLMConfig = DEFAULT_LLM_CONFIG, client: Groq | None = None) -> None:
        self.config = config
        self._client = client
        if self._client is None and self.enabled:
            self._client = Groq(api_key=config.api_key, timeout=config.timeout)

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.api_key)

    def _complete_json(self, model: str, messages: list[dict[str, Any]]) -> str:
        response = self._client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=self.config.max_tokens,
            temperature=0.1,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""

    def extract_allergens(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> list[MenuItem]:
        """Menu items with allergen tags read from a menu photo."""
        if not self.enabled or not image_bytes:
            return []

        data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode()}"
        try:
            content = self._complete_json(
                self.config.vision_model,
                [
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": ALLERGEN_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
            )
            return _parse_menu_items(content)
        except Exception:
            logger.warning("Groq allergen extraction from image failed", exc_info=True)
            return []

    def extract_allergens_from_text(self, lines: list[str]) -> list[MenuItem]:
        """Same as :meth:`extract_allergens` but for scraped menu text."""
        if not self.enabled or not lines:
            return []

        try:
            content = self._complete_json(
                self.config.model,
                [
                    {"role": "system", "content": ALLERGEN_PROMPT},
                    {"role": "user", "content": "\n".join(lines)},
                ],
            )
            return _parse_menu_items(content)
        except Exception:
            logger.warning("Groq allergen extraction from text failed", exc_info=True)
            return []

    def summarize_menu_items(self, items: list[str]) -> str:
        if not items:
            return EMPTY_SUMMARY
        if not self.enabled:
            return FALLBACK_SUMMARY

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SUMMARY_PROMPT},
                    {"role": "user", "content": "\n".join(items)},
                ],
                max_tokens=self.config.max_tokens,
                temperature=0.3,
            )
            return (response.choices[0].message.content or "").strip() or FALLBACK_SUMMARY
        except Exception:
            logger.warning("Groq menu summary failed", exc_info=True)
            return FALLBACK_SUMMARY
