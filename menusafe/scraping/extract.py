from __future__ import annotations

from typing import Iterable

from bs4 import BeautifulSoup

from .classifier import classify, is_menu_text


def extract_candidates(
    html: str,
    selectors: Iterable[str],
    min_length: int = 1,
    max_length: int | None = None,
) -> set[str]:
    """Whitespace-collapsed text of every element matching ``selectors``, de-duplicated."""
    soup = BeautifulSoup(html or "", "html.parser")
    found: set[str] = set()
    for selector in selectors:
        for el in soup.select(selector):
            text = " ".join(el.get_text(separator=" ").split())
            if len(text) < min_length:
                continue
            if max_length is not None and len(text) > max_length:
                continue
            found.add(text)
    return found


def filter_menu_text(candidates: Iterable[str]) -> list[str]:
    """Keep fragments that classify as menu text. Sorted so output is reproducible."""
    return sorted(text for text in set(candidates) if is_menu_text(classify(text)))
