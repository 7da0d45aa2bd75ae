from __future__ import annotations

import re

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import (
    classify_condition,
    classify_drainage,
    department_from_postal_code,
    find_postal_code,
)
from scraper_service.scrapers.config import CountRule, ItemRule, Location, SourceConfig, query_page_url

# Charbit Immobilier covers the Dordogne.
DEFAULT_DEPARTMENT = "24"

_URL_CITY = re.compile(r"vente\+[^+]+\+([^+]+)\+", re.IGNORECASE)


def refine(raw: RawExtraction) -> None:
    """The h1 embeds the town in a <span>; keep it out of the title."""
    city = raw.extras.get("city")
    title = raw.fields.get("title")
    if city and title and city in title:
        raw.fields["title"] = title.replace(city, "").strip(" -,") or title


def resolve_location(raw: RawExtraction) -> Location:
    """
    Town from the h1 span, else from the URL slug vente+<type>+<town>+<id>.
    Postal code only when a 5-digit code shows in the town or title text.
    """
    city = raw.extras.get("city") or None
    if not city:
        match = _URL_CITY.search(raw.url)
        if match:
            city = match.group(1).replace("-", " ").title()
    postal_code = find_postal_code(raw.extras.get("city"), raw.fields.get("title"))
    department = department_from_postal_code(postal_code) or DEFAULT_DEPARTMENT
    return Location(city=city, department=department, postal_code=postal_code)


CONFIG = SourceConfig(
    name="charbit",
    default_search_url="https://charbit-immo.fr/fr/ventes",
    page_url=query_page_url,
    resolve_location=resolve_location,
    listing_link_selector='a[href*="/propriete/vente"]',
    listing_link_pattern=re.compile(r"/propriete/vente\+", re.IGNORECASE),
    scroll_listing=True,
    listing_settle_ms=2000,
    scroll_settle_ms=1500,
    detail_settle_ms=2000,
    detail_timeout_ms=30000,
    request_delay=1.5,
    title_selectors=("h1",),
    price_selectors=(".price", "p.price"),
    description_selectors=("#description", ".comment"),
    description_max_length=1500,
    list_item_selector=".summary.details li",
    item_rules={
        "reference": ItemRule("référence", aliases=("reference",), pattern=r"r[ée]f[ée]rence\s*:?\s*(\S+)", cast=str),
        "rooms": ItemRule("pièce", pattern=r"(\d+)\s*pièce"),
        "building_surface": ItemRule("surface", exclude=("totale",), pattern=r"(\d+)\s*m"),
        "heating_system": ItemRule("type de chauffage", pattern=r"chauffage\s*:?\s*(.+)", cast=str),
        "drainage_system": ItemRule("eaux usées", pattern=r"eaux us[ée]es\s*:?\s*(.+)", cast=classify_drainage),
        "property_condition": ItemRule(
            "état", aliases=("etat",), pattern=r"[ée]tat\s*:?\s*(.+)", cast=classify_condition
        ),
    },
    section_selectors={"surfaces": ".module-property-info-template-5 li"},
    count_rules={
        "bedrooms": CountRule("surfaces", ("chambre",)),
        "bathrooms": CountRule("surfaces", ("salle de bains", "salle d'eau", "salle d’eau")),
    },
    extra_selectors={"city": "h1 span"},
    image_selectors=(".module_Slider_Content img", ".slider img", ".thumbnail img", ".picture img"),
    image_host="d36vnx92dgl2c5.cloudfront.net",
    image_upgrade=(r"/\d+x\d+/", "/original/"),
    max_images=15,
    type_hints=("url", "title"),
    refine=refine,
)
