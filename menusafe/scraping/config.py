from __future__ import annotations

from dataclasses import dataclass

MENU_SELECTORS: tuple[str, ...] = (
    ".menu-item",
    ".item-name",
    ".dish-name",
    ".food-name",
    ".menu_section_item_name",
    ".menu__item__title",
    ".dishTitle",
    "h2", "h3", "h4", "li", "p", "strong",
)


@dataclass(frozen=True)
class ScrapeConfig:
    selectors: tuple[str, ...] = MENU_SELECTORS
    request_timeout: float = 15.0
    navigation_timeout_ms: int = 30_000
    scroll_step_px: int = 200
    scroll_interval_ms: int = 200
    # Rendered pages surface a lot of long body copy; the dynamic tier drops it
    min_fragment_length: int = 3
    max_fragment_length: int = 100
    concurrency: int = 3
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )


DEFAULT_SCRAPE_CONFIG = ScrapeConfig()
