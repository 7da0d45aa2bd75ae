from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from scraper_service.core.models import NormalizedProperty, ScrapeReport
from scraper_service.core.persistence import upsert_properties_detailed
from scraper_service.core.supabase_repo import PropertyRepo
from scraper_service.core.validation import validate
from scraper_service.scrapers.browser import Page
from scraper_service.scrapers.config import SourceConfig
from scraper_service.scrapers.detail import extract_detail
from scraper_service.scrapers.listing import crawl_listing
from scraper_service.scrapers.normalizer import normalize_property
from scraper_service.scrapers.progress import (
    DONE,
    EXTRACTING_DETAILS,
    PERSISTING,
    VALIDATING,
    ProgressCallback,
    notify,
)

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SourceScraper:
    """
    One agency run: collect listing URLs, read each detail page in turn, normalize,
    validate, then persist the whole batch once.
    """

    def __init__(
        self,
        config: SourceConfig,
        repo: PropertyRepo,
        on_progress: ProgressCallback | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.repo = repo
        self.on_progress = on_progress
        self._sleep = sleep

    async def run(
        self,
        page: Page,
        search_url: str | None = None,
        max_pages: int = 3,
        max_properties: int | None = None,
    ) -> ScrapeReport:
        config = self.config
        report = ScrapeReport(source=config.name)

        urls = await crawl_listing(
            page,
            config,
            search_url or config.default_search_url,
            max_pages,
            on_progress=self.on_progress,
        )
        targets = list(urls.items())
        if max_properties is not None:
            targets = targets[:max_properties]
        LOGGER.info("Found %s unique %s properties, scraping %s", len(urls), config.name, len(targets))

        batch: list[NormalizedProperty] = []
        for index, (url, hero_image) in enumerate(targets, start=1):
            if index > 1:
                await self._sleep(config.request_delay)
            notify(self.on_progress, EXTRACTING_DETAILS, index=index, total=len(targets), url=url)

            raw = await extract_detail(page, config, url)
            if raw is None:
                report.failed_urls.append(url)
                continue

            prop = normalize_property(raw, config, hero_image=hero_image)
            if prop is None:
                LOGGER.info("Skipping %s - no valid price", url)
                report.skipped_urls.append(url)
                continue

            prop.validation = validate(prop)
            if not prop.validation.is_valid:
                notify(self.on_progress, VALIDATING, url=url, errors=list(prop.validation.errors))
            batch.append(prop)
            report.record(prop)

        notify(self.on_progress, PERSISTING, records=len(batch))
        result = upsert_properties_detailed(self.repo, batch, config.name)
        report.inserted = result.written
        report.price_drops = result.price_drops

        notify(
            self.on_progress,
            DONE,
            scraped=report.total_scraped,
            inserted=report.inserted,
            valid=report.valid,
            invalid=report.invalid,
            failed=len(report.failed_urls),
        )
        return report
