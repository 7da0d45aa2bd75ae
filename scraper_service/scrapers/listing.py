from __future__ import annotations

import logging
from typing import Any

from scraper_service.core.models import ImageCandidate, ListingCard
from scraper_service.scrapers.browser import Page
from scraper_service.scrapers.config import SourceConfig, absolutize
from scraper_service.scrapers.dom_scripts import LISTING_CARDS_SCRIPT, SCROLL_TO_BOTTOM, SCROLL_TO_TOP
from scraper_service.scrapers.progress import COLLECTING_URLS, ProgressCallback, notify

LOGGER = logging.getLogger(__name__)


async def crawl_listing(
    page: Page,
    config: SourceConfig,
    search_url: str,
    max_pages: int,
    on_progress: ProgressCallback | None = None,
) -> dict[str, str | None]:
    """
    Walk listing pages 1..max_pages and return detail URL -> hero image, in
    discovery order. An empty page ends the catalog; a failing page ends the crawl
    but keeps what was collected.
    """
    found: dict[str, str | None] = {}
    for page_number in range(1, max_pages + 1):
        page_url = config.page_url(search_url, page_number)
        try:
            payload = await _load_listing_page(page, config, page_url)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Error on %s listing page %s (%s): %s", config.name, page_number, page_url, exc)
            break

        page_cards = collapse_cards(parse_listing_cards(payload, config), config)
        if not page_cards:
            LOGGER.info("Reached end of %s listings at page %s", config.name, page_number - 1)
            break

        added = 0
        for url, hero_image in page_cards.items():
            if url in found:
                continue
            found[url] = hero_image
            added += 1
        notify(
            on_progress,
            COLLECTING_URLS,
            page=page_number,
            links=len(page_cards),
            new=added,
            with_hero=sum(1 for hero in page_cards.values() if hero),
            total=len(found),
        )
    return found


async def _load_listing_page(page: Page, config: SourceConfig, page_url: str) -> Any:
    await page.navigate(page_url, timeout_ms=config.listing_timeout_ms)
    await page.wait(config.listing_settle_ms)
    if config.scroll_listing:
        # Lazy-loaded card images only get a src once scrolled into view.
        await page.evaluate(SCROLL_TO_BOTTOM)
        await page.wait(config.scroll_settle_ms)
        await page.evaluate(SCROLL_TO_TOP)
        await page.wait(config.scroll_settle_ms // 2)
    return await page.evaluate(
        LISTING_CARDS_SCRIPT,
        {"linkSelector": config.listing_link_selector, "cardSelector": config.listing_card_selector},
    )


def parse_listing_cards(payload: Any, config: SourceConfig) -> list[ListingCard]:
    if not isinstance(payload, list):
        return []
    cards: list[ListingCard] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        url = clean_listing_url(entry.get("url"))
        if not url or not config.listing_link_pattern.search(url):
            continue
        images = [ImageCandidate.from_dom(img) for img in entry.get("images") or [] if isinstance(img, dict)]
        cards.append(ListingCard(url=url, images=images))
    return cards


def collapse_cards(cards: list[ListingCard], config: SourceConfig) -> dict[str, str | None]:
    """One entry per URL on a page; a later anchor to the same URL may fill a missing hero."""
    out: dict[str, str | None] = {}
    for card in cards:
        hero = pick_hero_image(card.images, config)
        if card.url not in out or (out[card.url] is None and hero):
            out[card.url] = hero
    return out


def pick_hero_image(images: list[ImageCandidate], config: SourceConfig) -> str | None:
    for image in images:
        if not image.complete or not image.natural_width:
            continue
        src = image.current_src or image.src
        if config.accepts_hero(src):
            return absolutize(src)
    for image in images:
        for src in image.lazy_sources:
            if config.accepts_hero(src):
                return absolutize(src)
    return None


def clean_listing_url(url: Any) -> str | None:
    if not isinstance(url, str) or not url.strip():
        return None
    return url.strip().split("#", 1)[0]
