from __future__ import annotations

import logging
from typing import Any
from urllib.parse import unquote, urlparse

from scraper_service.core.models import NormalizedProperty, RawExtraction
from scraper_service.core.normalize import classify_property_type, merge_images, parse_int, parse_price
from scraper_service.scrapers.config import SourceConfig, absolutize
from scraper_service.scrapers.detail import upgrade_image_url

LOGGER = logging.getLogger(__name__)


def normalize_property(
    raw: RawExtraction,
    config: SourceConfig,
    hero_image: str | None = None,
) -> NormalizedProperty | None:
    """
    Canonical record for one detail page, or None when no price could be read.
    """
    fields = raw.fields
    price = parse_price(fields.get("price"))
    if price is None:
        return None

    title = fields.get("title")
    location = config.resolve_location(raw)
    return NormalizedProperty(
        source=config.name,
        url=raw.url,
        price=price,
        reference=_text_or_none(fields.get("reference")),
        title=title,
        description=fields.get("description"),
        property_type=classify_property_type(*(_type_hint(raw, hint) for hint in config.type_hints)),
        building_surface=parse_int(fields.get("building_surface")),
        land_surface=parse_int(fields.get("land_surface")),
        rooms=parse_int(fields.get("rooms")),
        bedrooms=parse_int(fields.get("bedrooms")),
        bathrooms=parse_int(fields.get("bathrooms")),
        floors=parse_int(fields.get("floors")),
        year_built=parse_int(fields.get("year_built")),
        heating_system=_text_or_none(fields.get("heating_system")),
        drainage_system=_text_or_none(fields.get("drainage_system")),
        property_condition=_text_or_none(fields.get("property_condition")),
        energy_consumption=parse_int(fields.get("energy_consumption")),
        co2_emissions=parse_int(fields.get("co2_emissions")),
        wc_count=parse_int(fields.get("wc_count")),
        pool=bool(fields.get("pool")),
        images=merge_images(
            gallery_form(hero_image, config), fields.get("images") or [], limit=config.max_images
        ),
        location_city=location.city,
        location_department=location.department,
        location_postal_code=location.postal_code,
    )


def gallery_form(image: str | None, config: SourceConfig) -> str | None:
    """The listing hero in the same form as gallery URLs, so both dedupe to one entry."""
    if not image or not config.accepts_image(image):
        return None
    return upgrade_image_url(absolutize(image), config)


def _type_hint(raw: RawExtraction, hint: str) -> str | None:
    if hint == "url":
        path = unquote(urlparse(raw.url).path)
        return path.replace("+", " ").replace("-", " ")
    value = raw.fields.get(hint)
    return value if isinstance(value, str) else None


def _text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
