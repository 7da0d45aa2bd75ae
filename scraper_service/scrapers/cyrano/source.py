from __future__ import annotations

import re

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import department_from_postal_code
from scraper_service.scrapers.config import ItemRule, Location, SourceConfig, path_page_url


def resolve_location(raw: RawExtraction) -> Location:
    """
    Breadcrumbs read Accueil > Vente > <department> > <city>. The numeric department
    comes from the postal code item when present, else the breadcrumb label is kept.
    """
    crumbs = [crumb for crumb in raw.breadcrumbs if crumb]
    department_label = crumbs[2] if len(crumbs) >= 3 else None
    city = crumbs[3] if len(crumbs) >= 4 else None
    postal_code = raw.fields.get("postal_code")
    department = department_from_postal_code(postal_code) or department_label
    return Location(city=city, department=department, postal_code=postal_code)


CONFIG = SourceConfig(
    name="cyrano",
    default_search_url="https://www.cyranoimmobilier.com/vente/1",
    page_url=path_page_url,
    resolve_location=resolve_location,
    listing_link_selector=(
        'a[href*="/vente/"][href*="-maison"], '
        'a[href*="/vente/"][href*="-villa"], '
        'a[href*="/vente/"][href*="-appartement"]'
    ),
    listing_link_pattern=re.compile(
        r"/vente/(?:.*/)?\d+-(?:maison|villa|appartement)/?(?:[?#].*)?$", re.IGNORECASE
    ),
    listing_settle_ms=2000,
    detail_settle_ms=1500,
    detail_timeout_ms=30000,
    request_delay=1.0,
    title_selectors=("h1.titleBien", "h1"),
    price_selectors=(".typeSlider .price", ".price"),
    description_selectors=(".desciptifBienContent .offreContent p", ".desciptifBienContent"),
    reference_selectors=(".ref",),
    reference_pattern=r"Référence\s*:\s*(\S+)",
    list_item_selector=".content-info li.data",
    item_rules={
        "postal_code": ItemRule("Code postal", pattern=r":\s*(\d{5})", cast=str),
        "building_surface": ItemRule("Surface habitable", pattern=r":\s*(\d+)"),
        "land_surface": ItemRule("surface terrain", pattern=r":\s*(\d[\d\s  ]*)"),
        "rooms": ItemRule("Nombre de pièces", pattern=r":\s*(\d+)"),
        "bedrooms": ItemRule("Nombre de chambre", pattern=r":\s*(\d+)"),
        "bathrooms": ItemRule("salle d'eau", aliases=("salle d’eau", "salle de bain"), pattern=r":\s*(\d+)"),
        "year_built": ItemRule("Année de construction", pattern=r":\s*(\d{4})"),
        "heating_system": ItemRule("Mode de chauffage", pattern=r":\s*(.+)", cast=str),
    },
    breadcrumb_selector=".linkArian li",
    image_selectors=(".module_Slider_Content .container_ImgSlider_Mdl picture img",),
    image_upgrade=(r"\d+xauto", "1600xauto"),
    max_images=20,
    type_hints=("url", "title"),
)
