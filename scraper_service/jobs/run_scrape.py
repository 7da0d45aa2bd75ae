from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable

from scraper_service.core.errors import ScraperError
from scraper_service.core.models import ScrapeReport
from scraper_service.core.supabase_repo import PropertyRepo, SupabaseRepo
from scraper_service.scrapers.base import Sleep, SourceScraper
from scraper_service.scrapers.browser import Page, browser_session
from scraper_service.scrapers.config import env_float, env_int
from scraper_service.scrapers.progress import ProgressCallback, logging_progress
from scraper_service.scrapers.registry import get_source

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[Page]]


async def run_scrape_async(
    source: str,
    search_url: str | None = None,
    max_pages: int | None = None,
    max_properties: int | None = None,
    repo: PropertyRepo | None = None,
    on_progress: ProgressCallback | None = None,
    session_factory: SessionFactory = browser_session,
    sleep: Sleep = asyncio.sleep,
) -> ScrapeReport:
    """
    Scrape one source end to end. Fatal failures (unknown source, browser launch,
    store unreachable) come back as a report with success=False and the message.
    """
    try:
        config = get_source(source)
    except ScraperError as exc:
        LOGGER.error("Scrape rejected: %s", exc)
        return ScrapeReport(source=source, success=False, error=str(exc))

    delay = env_float("SCRAPER_REQUEST_DELAY", config.request_delay)
    if delay != config.request_delay:
        config = dataclasses.replace(config, request_delay=delay)
    nav_timeout = env_int("SCRAPER_NAV_TIMEOUT_MS", 0)
    if nav_timeout > 0:
        config = dataclasses.replace(config, listing_timeout_ms=nav_timeout, detail_timeout_ms=nav_timeout)
    pages = max_pages if max_pages is not None else env_int("SCRAPER_MAX_PAGES", 3)

    try:
        store = repo if repo is not None else SupabaseRepo()
        scraper = SourceScraper(config, store, on_progress=on_progress, sleep=sleep)
        async with session_factory() as page:
            report = await scraper.run(page, search_url, pages, max_properties=max_properties)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Scraping failed for %s: %s", config.name, exc)
        return ScrapeReport(source=config.name, success=False, error=str(exc))

    LOGGER.info(
        "Scrape complete source=%s scraped=%s inserted=%s valid=%s invalid=%s failed=%s",
        report.source,
        report.total_scraped,
        report.inserted,
        report.valid,
        report.invalid,
        len(report.failed_urls),
    )
    return report


def run_scrape(
    source: str,
    search_url: str | None = None,
    max_pages: int | None = None,
    max_properties: int | None = None,
    repo: PropertyRepo | None = None,
    on_progress: ProgressCallback | None = None,
) -> ScrapeReport:
    return asyncio.run(
        run_scrape_async(
            source,
            search_url=search_url,
            max_pages=max_pages,
            max_properties=max_properties,
            repo=repo,
            on_progress=on_progress,
        )
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Scrape one agency source into the properties table.")
    parser.add_argument("--source", required=True, help="Source name, e.g. cadimmo, cyrano, eleonor, beauxvillages.")
    parser.add_argument("--search-url", default=None, help="Listing URL to start from (defaults per source).")
    parser.add_argument("--max-pages", type=int, default=None, help="Listing pages to walk (SCRAPER_MAX_PAGES).")
    parser.add_argument("--max-properties", type=int, default=None, help="Cap on detail pages scraped.")
    args = parser.parse_args()
    result = run_scrape(
        args.source,
        search_url=args.search_url,
        max_pages=args.max_pages,
        max_properties=args.max_properties,
        on_progress=logging_progress,
    )
    print(json.dumps(result.as_dict(), ensure_ascii=False, indent=2))
    raise SystemExit(0 if result.success else 1)
