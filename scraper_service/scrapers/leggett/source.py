from __future__ import annotations

import re

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import department_from_postal_code, find_postal_code
from scraper_service.scrapers.config import ItemRule, Location, SourceConfig, colon_page_url

_TITLE_POSTAL_CODE = re.compile(r"\((\d{5})\)")


def refine(raw: RawExtraction) -> None:
    """The h1 only holds the place; the description heading carries the selling title."""
    heading = raw.extras.get("description_title")
    title = raw.fields.get("title")
    if heading:
        raw.fields["title"] = f"{title} - {heading}" if title else heading


def resolve_location(raw: RawExtraction) -> Location:
    """
    City and department label from the characteristics list. Postal code from the
    Google Maps link, else '(24100)' in the title; it also gives the numeric department.
    """
    postal_code = find_postal_code(raw.extras.get("map_link"))
    if not postal_code:
        match = _TITLE_POSTAL_CODE.search(raw.fields.get("title") or "")
        postal_code = match.group(1) if match else None
    department = department_from_postal_code(postal_code) or raw.fields.get("department")
    return Location(city=raw.fields.get("city"), department=department, postal_code=postal_code)


CONFIG = SourceConfig(
    name="leggett",
    default_search_url="https://www.leggett-immo.com/acheter-vendre-une-maison/mainSearch/page:1",
    page_url=colon_page_url,
    resolve_location=resolve_location,
    listing_link_selector='a[href*="/acheter-vendre-une-maison/view/"]',
    listing_link_pattern=re.compile(r"/acheter-vendre-une-maison/view/[A-Z0-9]+", re.IGNORECASE),
    listing_card_selector=".selection-item, .result-item",
    scroll_listing=True,
    listing_settle_ms=5000,
    scroll_settle_ms=3000,
    detail_settle_ms=3000,
    request_delay=2.0,
    title_selectors=("h1.product-header-localisation", "h1"),
    price_selectors=(".product-header-price",),
    description_selectors=(".product-characteristics-description",),
    description_max_length=1000,
    description_strip=("Lire la description détaillée",),
    list_item_selector=".product-header-title, .characteristic-detail-item, .characteristics-name",
    item_rules={
        "reference": ItemRule("référence", pattern=r"r[ée]f[ée]rence\s*:?\s*([A-Z0-9]+)", cast=str),
        "property_type_text": ItemRule("types de bien", pattern=r"types de bien\s*:?\s*(.+)", cast=str),
        "building_surface": ItemRule("m²", pattern=r"(\d+)\s*m[²2]"),
        "rooms": ItemRule("pièce", pattern=r"(\d+)\s*pièces?"),
        "bedrooms": ItemRule("ch", pattern=r"(\d+)\s*ch(?:ambres?|bres?)\b"),
        "land_surface": ItemRule("ext.", pattern=r"ext\.\s*(\d[\d\s  ,]*)\s*m"),
        "bathrooms": ItemRule("salle", pattern=r"(\d+)\s*salles?\b.*bains?"),
        "city": ItemRule("ville", pattern=r"ville\s*:?\s*(.+)", cast=str),
        "department": ItemRule("département", pattern=r"département\s*:?\s*(.+)", cast=str),
    },
    extra_selectors={
        "map_link": 'a[href*="maps.google.com"]@href',
        "description_title": ".product-characteristics-desc",
    },
    image_selectors=(".product-carousel-visual", "#lightgallery .product-carousel-nav-wrapper"),
    max_images=20,
    refine=refine,
)
