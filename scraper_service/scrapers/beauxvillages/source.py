from __future__ import annotations

import re

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import (
    classify_condition,
    classify_drainage,
    department_from_postal_code,
    find_postal_code,
    parse_int,
    parse_land_area,
    parse_yes_no,
)
from scraper_service.scrapers.config import ItemRule, Location, SourceConfig, offset_page_url

# Listing pages hold 43 cards: start=0, 43, 86...
PAGE_SIZE = 43
DESCRIPTION_MAX_LENGTH = 1000

_URL_REFERENCE = re.compile(r"/property/\d+-([A-Z]+\d+)", re.IGNORECASE)


def _labelled(label: str) -> str:
    return label + r"\s*:\s*(.+)"


def dpe_pairs(texts: list[str]) -> dict[str, int]:
    """
    The DPE block alternates value and unit lines: '230', 'kWh/m².an', '7', 'kg CO2/m².an'.
    Each unit line takes the number of the line before it.
    """
    values: dict[str, int] = {}
    for previous, text in zip(texts, texts[1:]):
        lowered = text.lower()
        if "kwh" in previous.lower() or "co2" in previous.lower():
            continue
        number = parse_int(previous)
        if number is None:
            continue
        if "kwh" in lowered:
            values.setdefault("energy_consumption", number)
        elif "kg co2" in lowered:
            values.setdefault("co2_emissions", number)
    return values


def refine(raw: RawExtraction) -> None:
    fields = raw.fields
    if not fields.get("reference"):
        match = _URL_REFERENCE.search(raw.url)
        fields["reference"] = match.group(1) if match else None

    parts = [
        text for text in raw.sections.get("description_parts", [])
        if len(text) > 20 and not text.startswith("Prix honoraires")
    ]
    if parts:
        fields["description"] = " ".join(parts)[:DESCRIPTION_MAX_LENGTH]

    fields.update(dpe_pairs(raw.sections.get("dpe", [])))


def resolve_location(raw: RawExtraction) -> Location:
    """
    City from 'Secteur', department label from 'Département'. A postal code is only
    known when one is written in the description or title.
    """
    postal_code = find_postal_code(raw.fields.get("description"), raw.fields.get("title"))
    department = department_from_postal_code(postal_code) or raw.fields.get("department")
    return Location(city=raw.fields.get("city"), department=department, postal_code=postal_code)


CONFIG = SourceConfig(
    name="beauxvillages",
    default_search_url="https://beauxvillages.com/fr/nos-biens_fr",
    page_url=offset_page_url(PAGE_SIZE),
    resolve_location=resolve_location,
    listing_link_selector='a[href*="/property/"]',
    listing_link_pattern=re.compile(r"/property/\d+-[A-Z]+\d+", re.IGNORECASE),
    listing_card_selector='div.property-card, div[class*="property"], div.listing-item, article',
    listing_settle_ms=3000,
    detail_settle_ms=2000,
    request_delay=1.5,
    title_selectors=("h1",),
    price_selectors=(".ip-detail-price",),
    price_pattern=r"€\s*(\d[\d,\s  ]*)",
    description_selectors=(".description-col",),
    description_max_length=DESCRIPTION_MAX_LENGTH,
    reference_selectors=("span.refi2",),
    list_item_selector="",
    label_selector=".label-r, .label-r-com",
    item_rules={
        "property_type_text": ItemRule("type de bien", pattern=_labelled("type de bien"), cast=str),
        "bedrooms": ItemRule("chambres", pattern=_labelled("chambres")),
        "bathrooms": ItemRule("salle des bains", pattern=_labelled("salle des bains")),
        "rooms": ItemRule("n° pieces", aliases=("n° pièces",), pattern=_labelled(r"n° pi[èe]ces")),
        "building_surface": ItemRule("surface habitable", pattern=_labelled("surface habitable")),
        "land_surface": ItemRule("surface terrain", pattern=_labelled("surface terrain"), cast=parse_land_area),
        "city": ItemRule("secteur", pattern=_labelled("secteur"), cast=str),
        "department": ItemRule("département", pattern=_labelled("département"), cast=str),
        "pool": ItemRule("piscine", pattern=_labelled("piscine"), cast=parse_yes_no),
        "property_condition": ItemRule(
            "état", aliases=("etat",), pattern=_labelled("[ée]tat"), cast=classify_condition
        ),
        "drainage_system": ItemRule("eaux usées", pattern=_labelled("eaux us[ée]es"), cast=classify_drainage),
        "heating_system": ItemRule("chauffage", pattern=_labelled("chauffage"), cast=str),
    },
    section_selectors={
        "description_parts": ".description-col p, .description-col li",
        "dpe": ".line1, .line2",
    },
    image_selectors=("#prop-mason img", "#ipgalleryplug img", ".ip-galleryplug-img img"),
    max_images=10,
    refine=refine,
)
