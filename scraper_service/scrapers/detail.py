from __future__ import annotations

import logging
import re
from typing import Any

from scraper_service.core.models import ImageCandidate, RawExtraction
from scraper_service.core.normalize import (
    clean_text,
    has_keyword,
    parse_co2_emissions,
    parse_energy_consumption,
    parse_price,
)
from scraper_service.scrapers.browser import Page
from scraper_service.scrapers.config import ItemRule, SourceConfig, absolutize
from scraper_service.scrapers.dom_scripts import DETAIL_SNAPSHOT_SCRIPT

LOGGER = logging.getLogger(__name__)


async def extract_detail(page: Page, config: SourceConfig, url: str) -> RawExtraction | None:
    """Navigate to one detail page and read it. Any failure means no record for this URL."""
    try:
        await page.navigate(url, timeout_ms=config.detail_timeout_ms)
        await page.wait(config.detail_settle_ms)
        payload = await page.evaluate(DETAIL_SNAPSHOT_SCRIPT, config.snapshot_request())
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning("Error extracting %s: %s", url, exc)
        return None
    if not isinstance(payload, dict):
        LOGGER.warning("Unexpected snapshot for %s: %r", url, type(payload).__name__)
        return None

    raw = raw_from_snapshot(url, payload)
    raw.fields = extract_fields(raw, config)
    if config.refine is not None:
        config.refine(raw)
    return raw


def raw_from_snapshot(url: str, payload: dict[str, Any]) -> RawExtraction:
    texts = payload.get("texts") or {}
    sections = payload.get("sections") or {}
    return RawExtraction(
        url=url,
        texts={str(name): [str(v or "") for v in values] for name, values in texts.items()},
        items=[str(item) for item in payload.get("items") or []],
        sections={str(name): [str(v) for v in values] for name, values in sections.items()},
        extras={str(name): str(value or "") for name, value in (payload.get("extras") or {}).items()},
        breadcrumbs=[str(item) for item in payload.get("breadcrumbs") or []],
        images=[ImageCandidate.from_dom(img) for img in payload.get("images") or [] if isinstance(img, dict)],
    )


def extract_fields(raw: RawExtraction, config: SourceConfig) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    fields["title"] = raw.first_text("title")
    fields["price"] = _extract_price(raw.first_text("price"), config.price_pattern)
    fields["description"] = _extract_description(raw.first_text("description"), config)
    fields["reference"] = _extract_reference(raw.first_text("reference"), config.reference_pattern)

    for name, rule in config.item_rules.items():
        items = raw.sections.get(rule.section, []) if rule.section else raw.items
        value = match_item_rule(items, rule)
        if value is not None and fields.get(name) is None:
            fields[name] = value

    for name, count_rule in config.count_rules.items():
        count = sum(
            1 for item in raw.sections.get(count_rule.section, []) if has_keyword(count_rule.keywords, item)
        )
        if count and fields.get(name) is None:
            fields[name] = count

    dpe_texts = [*raw.texts.get("dpe", []), fields.get("description")]
    if fields.get("energy_consumption") is None:
        fields["energy_consumption"] = parse_energy_consumption(*dpe_texts)
    if fields.get("co2_emissions") is None:
        fields["co2_emissions"] = parse_co2_emissions(*dpe_texts)

    fields["images"] = gallery_images(raw.images, config)
    fields["pool"] = fields.get("pool") is True or has_keyword(
        config.pool_keywords, fields.get("title"), fields.get("description")
    )
    return fields


def match_item_rule(items: list[str], rule: ItemRule) -> Any:
    keywords = [rule.keyword.lower(), *(alias.lower() for alias in rule.aliases)]
    pattern = re.compile(rule.pattern, re.IGNORECASE)
    for item in items:
        text = clean_text(item)
        lowered = text.lower()
        if not any(keyword in lowered for keyword in keywords):
            continue
        if any(excluded.lower() in lowered for excluded in rule.exclude):
            continue
        for marker, preset in rule.presets:
            if marker.lower() in lowered:
                return preset
        match = pattern.search(text)
        if not match:
            continue
        value = rule.cast(match.group(1).strip())
        if value is not None and value != "":
            return value
    return None


def gallery_images(images: list[ImageCandidate], config: SourceConfig) -> list[str]:
    seen: dict[str, None] = {}
    for image in images:
        if image.natural_width and image.natural_width < config.min_image_width:
            continue
        src = next((candidate for candidate in (image.src, *image.lazy_sources) if candidate), None)
        if not src or not config.accepts_image(src):
            continue
        url = upgrade_image_url(absolutize(src), config)
        seen.setdefault(url, None)
    out = list(seen.keys())
    return out[: config.max_images] if config.max_images else out


def upgrade_image_url(url: str, config: SourceConfig) -> str:
    if not config.image_upgrade:
        return url
    pattern, replacement = config.image_upgrade
    return re.sub(pattern, replacement, url, count=1)


def _extract_price(text: str | None, pattern: str | None) -> int | None:
    if not text:
        return None
    if pattern:
        match = re.search(pattern, text, flags=re.IGNORECASE)
        if not match:
            return None
        text = match.group(1)
    return parse_price(text)


def _extract_description(text: str | None, config: SourceConfig) -> str | None:
    if not text:
        return None
    for noise in config.description_strip:
        text = re.sub(re.escape(noise), "", text, flags=re.IGNORECASE)
    text = clean_text(text)
    if config.description_max_length:
        text = text[: config.description_max_length]
    return text or None


def _extract_reference(text: str | None, pattern: str | None) -> str | None:
    if not text:
        return None
    if pattern:
        match = re.search(pattern, text, flags=re.IGNORECASE)
        return match.group(1).strip() if match else None
    return text.strip() or None
