from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from scraper_service.core.alerts import is_price_drop, price_change_fields
from scraper_service.core.dedupe import derive_source_id
from scraper_service.core.errors import StorageUnavailableError, UnknownSourceError
from scraper_service.core.models import NormalizedProperty
from scraper_service.core.normalize import property_to_row
from scraper_service.core.supabase_repo import PROPERTIES_TABLE, PropertyRepo

LOGGER = logging.getLogger(__name__)

CONFLICT_KEYS = ("source", "source_id")


@dataclass(frozen=True, slots=True)
class SourceIdentity:
    url_id_pattern: re.Pattern[str] | None = None
    slug_separator: str | None = None


# Identity rules per onboarded source; the whitelist of writable sources.
ALLOWED_SOURCES: dict[str, SourceIdentity] = {
    "cadimmo": SourceIdentity(slug_separator="+"),
    "cyrano": SourceIdentity(
        url_id_pattern=re.compile(r"/(\d+)-(?:maison|villa|appartement)[^/?#]*/?(?:[?#].*)?$", re.I),
    ),
    "charbit": SourceIdentity(slug_separator="+"),
    "leggett": SourceIdentity(url_id_pattern=re.compile(r"/view/([A-Z0-9]+)(?:/|$)", re.I)),
    "eleonor": SourceIdentity(url_id_pattern=re.compile(r",([A-Z]*\d+)/?(?:[?#].*)?$", re.I)),
    "beauxvillages": SourceIdentity(url_id_pattern=re.compile(r"/property/\d+-([A-Z]+\d+)", re.I)),
}


@dataclass(slots=True)
class UpsertResult:
    written: int = 0
    failed: int = 0
    price_drops: int = 0


def upsert_properties(repo: PropertyRepo, records: Iterable[NormalizedProperty], source: str) -> int:
    return upsert_properties_detailed(repo, records, source).written


def upsert_properties_detailed(
    repo: PropertyRepo,
    records: Iterable[NormalizedProperty],
    source: str,
) -> UpsertResult:
    """
    Insert-or-update each record on (source, source_id). A failed write is logged and
    skipped; an unreachable store aborts the batch.
    """
    identity = ALLOWED_SOURCES.get(source)
    if identity is None:
        raise UnknownSourceError(
            f"Invalid source '{source}'. Allowed sources: {', '.join(sorted(ALLOWED_SOURCES))}"
        )

    batch = list(records)
    result = UpsertResult()
    if not batch:
        LOGGER.info("No properties to save for source=%s", source)
        return result

    existing_prices = repo.get_existing_prices(source)
    now = datetime.now(timezone.utc)
    seen_ids: set[str] = set()

    for prop in batch:
        prop.source = source
        prop.source_id = derive_source_id(
            prop.url,
            reference=prop.reference,
            url_id_pattern=identity.url_id_pattern,
            slug_separator=identity.slug_separator,
        )
        if prop.source_id in seen_ids:
            LOGGER.warning("Duplicate source_id=%s in batch for source=%s (%s)", prop.source_id, source, prop.url)
        seen_ids.add(prop.source_id)

        row = property_to_row(prop, scraped_at=now)
        previous_price = existing_prices.get(prop.source_id)
        row.update(price_change_fields(previous_price, prop.price, changed_at=now))

        try:
            repo.upsert_by_key(PROPERTIES_TABLE, row, CONFLICT_KEYS)
        except StorageUnavailableError:
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Save error for source=%s source_id=%s: %s", source, prop.source_id, exc)
            result.failed += 1
            continue

        result.written += 1
        if is_price_drop(previous_price, prop.price):
            result.price_drops += 1
            LOGGER.info("Price drop source_id=%s: %s -> %s", prop.source_id, previous_price, prop.price)

    LOGGER.info(
        "Saved source=%s written=%s failed=%s price_drops=%s",
        source,
        result.written,
        result.failed,
        result.price_drops,
    )
    return result
