from __future__ import annotations

import re

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import title_case_slug
from scraper_service.scrapers.config import ItemRule, Location, SourceConfig, query_page_url

LOGO_ASSET_HASH = "52600504a0dbbe5c433dd0e783a78880"

# CAD-IMMO only lists around Bergerac.
DEFAULT_CITY = "Bergerac"
DEFAULT_DEPARTMENT = "24"
DEFAULT_POSTAL_CODE = "24100"


def resolve_location(raw: RawExtraction) -> Location:
    """
    Detail URLs look like /fr/propriete/vente+maison+saint-cyprien+123456: the third
    '+'-separated part is the town slug. Department and postal code are not exposed.
    """
    parts = raw.url.split("+")
    city = title_case_slug(parts[2]) if len(parts) >= 3 and parts[2] else DEFAULT_CITY
    return Location(city=city, department=DEFAULT_DEPARTMENT, postal_code=DEFAULT_POSTAL_CODE)


CONFIG = SourceConfig(
    name="cadimmo",
    default_search_url="https://cad-immo.com/fr/ventes",
    page_url=query_page_url,
    resolve_location=resolve_location,
    listing_link_selector='a[href*="/fr/propriete/"]',
    listing_link_pattern=re.compile(r"cad-immo\.com/fr/propriete/", re.IGNORECASE),
    listing_card_selector='article, .property, .item, .listing-card, [class*="property-card"], [class*="listing"]',
    scroll_listing=True,
    listing_settle_ms=3000,
    scroll_settle_ms=2000,
    detail_settle_ms=1500,
    request_delay=1.0,
    title_selectors=("h1", ".property-title-4", ".title"),
    price_selectors=(".price", '[class*="price"]', '[class*="Price"]'),
    price_pattern=r"(\d[\d\s  ]*)\s*€",
    description_selectors=("#description", ".comment", '[class*="description"]'),
    description_max_length=500,
    list_item_selector=".summary li, ul li",
    item_rules={
        "reference": ItemRule("Référence", pattern=r"Référence\s*:?\s*(\d+)", cast=str),
        "rooms": ItemRule("pièce", pattern=r"(\d+)\s*pièces?"),
        "bedrooms": ItemRule("chambre", pattern=r"(\d+)\s*chambres?"),
        "building_surface": ItemRule("Surface", pattern=r"(\d+)\s*m", exclude=("terrain",)),
        "land_surface": ItemRule("Terrain", pattern=r"(\d[\d\s  ]*)\s*m"),
        "floors": ItemRule("Étage", pattern=r"(\d+)\s*étages?", presets=(("plain-pied", 1),)),
    },
    image_selectors=(
        ".slider-images img",
        ".property-gallery img",
        ".carousel img",
        '[class*="gallery"] img',
        '[class*="slider"] img',
        '[class*="photos"] img',
        ".pictures img",
    ),
    image_host="cloudfront",
    logo_asset_hash=LOGO_ASSET_HASH,
    min_image_width=200,
    max_images=10,
    type_hints=("title",),
)
