from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page as PlaywrightPageHandle
from playwright.async_api import async_playwright

from scraper_service.core.errors import BrowserLaunchError
from scraper_service.scrapers.config import DEFAULT_USER_AGENT, env_int

LOGGER = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class Page(Protocol):
    async def navigate(self, url: str, timeout_ms: int) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def wait(self, ms: int) -> None: ...


class PlaywrightPage:
    def __init__(self, page: PlaywrightPageHandle) -> None:
        self._page = page

    async def navigate(self, url: str, timeout_ms: int) -> None:
        await self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def wait(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)


@asynccontextmanager
async def browser_session(
    headless: bool | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> AsyncIterator[PlaywrightPage]:
    """
    One Chromium instance and page for a whole scrape run, closed on every exit path.
    """
    if headless is None:
        headless = env_int("SCRAPER_HEADLESS", 1) != 0
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=headless, args=CHROMIUM_ARGS)
        except PlaywrightError as exc:
            raise BrowserLaunchError(f"Could not launch Chromium: {exc}") from exc
        try:
            context = await browser.new_context(
                user_agent=user_agent,
                viewport={"width": 1920, "height": 1080},
                locale="fr-FR",
            )
            page = await context.new_page()
            yield PlaywrightPage(page)
        finally:
            await browser.close()
            LOGGER.info("Browser session closed")
