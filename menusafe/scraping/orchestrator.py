from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

import httpx
from playwright.async_api import async_playwright

from .config import DEFAULT_SCRAPE_CONFIG, ScrapeConfig
from .extract import extract_candidates, filter_menu_text
from .models import ScrapeResult, Tier

logger = logging.getLogger(__name__)

# Scrolls in fixed steps until the bottom of the page (or maxSteps) is reached,
# giving lazy-loaded sections a chance to render.
AUTO_SCROLL_JS = """
async ([step, interval, maxSteps]) => {
    await new Promise((resolve) => {
        let total = 0;
        let steps = 0;
        const timer = setInterval(() => {
            window.scrollBy(0, step);
            total += step;
            steps += 1;
            if (total >= document.body.scrollHeight || steps >= maxSteps) {
                clearInterval(timer);
                resolve();
            }
        }, interval);
    });
}
"""
MAX_SCROLL_STEPS = 150


@asynccontextmanager
async def chromium_browser(config: ScrapeConfig = DEFAULT_SCRAPE_CONFIG):
    """Launch a headless Chromium for one scrape; always closed on exit."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=["--disable-dev-shm-usage"])
        try:
            yield browser
        finally:
            await browser.close()


class ScrapeOrchestrator:
    """
    Two-tier menu text extraction.

    The static tier is a plain HTTP GET; the dynamic tier renders the page in
    a headless browser and only runs when the static tier keeps nothing.
    ``browser_factory`` must return an async context manager yielding a
    Playwright-like browser; each call gets its own session.
    """

    def __init__(
        self,
        config: ScrapeConfig = DEFAULT_SCRAPE_CONFIG,
        http_client: httpx.AsyncClient | None = None,
        browser_factory: Callable | None = None,
    ) -> None:
        self.config = config
        self._http_client = http_client
        self._browser_factory = browser_factory or (lambda: chromium_browser(config))

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=self.config.request_timeout,
            follow_redirects=True,
            headers={"User-Agent": self.config.user_agent},
        ) as client:
            yield client

    # ── Tiers ────────────────────────────────────────────────────────────

    async def scrape_static(self, url: str) -> list[str]:
        # CancelledError is not an Exception subclass, so caller timeouts still propagate
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                html = response.text
            candidates = extract_candidates(html, self.config.selectors)
            return filter_menu_text(candidates)
        except Exception:
            logger.warning("Static scrape failed for %s", url, exc_info=True)
            return []

    async def _render(self, url: str) -> str:
        async with self._browser_factory() as browser:
            page = await browser.new_page(user_agent=self.config.user_agent)
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout_ms,
            )
            await page.evaluate(
                AUTO_SCROLL_JS,
                [self.config.scroll_step_px, self.config.scroll_interval_ms, MAX_SCROLL_STEPS],
            )
            return await page.content()

    async def scrape_dynamic(self, url: str) -> list[str]:
        try:
            html = await self._render(url)
            candidates = extract_candidates(
                html,
                self.config.selectors,
                min_length=self.config.min_fragment_length,
                max_length=self.config.max_fragment_length,
            )
            return filter_menu_text(candidates)
        except Exception:
            logger.warning("Dynamic scrape failed for %s", url, exc_info=True)
            return []

    # ── Public API ───────────────────────────────────────────────────────

    async def extract_menu_text(self, url: str) -> ScrapeResult:
        items = await self.scrape_static(url)
        if items:
            logger.info("Static tier kept %d fragments from %s", len(items), url)
            return ScrapeResult(url=url, tier=Tier.static, items=items)

        logger.info("Static tier empty for %s, rendering page", url)
        items = await self.scrape_dynamic(url)
        if items:
            logger.info("Dynamic tier kept %d fragments from %s", len(items), url)
            return ScrapeResult(url=url, tier=Tier.dynamic, items=items)

        return ScrapeResult(url=url, tier=Tier.none, items=[])

    async def extract_many(self, urls: list[str]) -> list[ScrapeResult]:
        """Scrape ``urls`` with at most ``config.concurrency`` in flight, preserving order."""
        sem = asyncio.Semaphore(self.config.concurrency)

        async def _one(url: str) -> ScrapeResult:
            async with sem:
                return await self.extract_menu_text(url)

        return list(await asyncio.gather(*(_one(u) for u in urls)))
