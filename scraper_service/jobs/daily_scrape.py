from __future__ import annotations

import argparse
import json
import logging
import os
import time
from typing import Any

from scraper_service.core.supabase_repo import PropertyRepo, SupabaseRepo
from scraper_service.core.timezone_guard import should_run_paris_time
from scraper_service.jobs.run_scrape import run_scrape
from scraper_service.scrapers.config import env_int
from scraper_service.scrapers.registry import SOURCES

LOGGER = logging.getLogger(__name__)

DEFAULT_SOURCES = ("cadimmo",)


def configured_sources() -> list[str]:
    raw = os.environ.get("DAILY_SCRAPE_SOURCES", "")
    names = [name.strip() for name in raw.split(",") if name.strip()]
    return names or list(DEFAULT_SOURCES)


def run_daily(
    force_run: bool = False,
    sources: list[str] | None = None,
    repo: PropertyRepo | None = None,
) -> dict[str, Any] | None:
    force_run = force_run or os.environ.get("FORCE_RUN", "").lower() in {"1", "true", "yes"}
    run_hour = env_int("RUN_HOUR_PARIS", 6)
    run_minute = env_int("RUN_MINUTE_PARIS", 0)
    tolerance = env_int("RUN_TOLERANCE_MINUTES", 0)
    if not force_run and not should_run_paris_time(
        target_hour=run_hour, target_minute=run_minute, tolerance_minutes=tolerance
    ):
        LOGGER.info("Timezone guard skipped run (not %02d:%02d Europe/Paris).", run_hour, run_minute)
        return None
    if force_run:
        LOGGER.info("FORCE_RUN enabled: bypassing timezone guard.")

    started = time.monotonic()
    store = repo if repo is not None else SupabaseRepo()
    summary: dict[str, Any] = {"sources": {}, "totalScraped": 0, "totalInserted": 0, "failedSources": []}

    for name in sources or configured_sources():
        if name not in SOURCES:
            LOGGER.warning("No scraper configuration for source=%s", name)
            summary["failedSources"].append(name)
            continue
        report = run_scrape(name, repo=store)
        summary["sources"][name] = report.as_dict()
        if not report.success:
            LOGGER.error("Daily scrape failed for %s: %s", name, report.error)
            summary["failedSources"].append(name)
            continue
        summary["totalScraped"] += report.total_scraped
        summary["totalInserted"] += report.inserted

    summary["durationSeconds"] = round(time.monotonic() - started, 1)
    LOGGER.info(
        "Daily scrape completed. scraped=%s inserted=%s failed_sources=%s",
        summary["totalScraped"],
        summary["totalInserted"],
        summary["failedSources"],
    )
    return summary


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Run the daily scrape for every configured source.")
    parser.add_argument("--force", action="store_true", help="Bypass configured Paris timezone guard.")
    parser.add_argument("--sources", default=None, help="Comma-separated sources (DAILY_SCRAPE_SOURCES).")
    args = parser.parse_args()
    selected = [name.strip() for name in args.sources.split(",")] if args.sources else None
    result = run_daily(force_run=args.force, sources=selected)
    if result is not None:
        print(json.dumps(result, ensure_ascii=False, indent=2))
