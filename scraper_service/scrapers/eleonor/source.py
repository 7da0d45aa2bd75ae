from __future__ import annotations

import re

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import (
    classify_condition,
    classify_drainage,
    clean_text,
    department_from_postal_code,
    parse_int,
    parse_land_area,
    parse_yes_no,
)
from scraper_service.scrapers.config import ItemRule, Location, SourceConfig, query_page_url

# Characteristic rows can be nested; a value stops at the next known label.
_NEXT_LABEL = (
    r"(?=\s+(?:Localisation|Référence|Chambres|Pièces|Séjour|WC|Construction|État|Cuisine|Vue|Cave"
    r"|Chauffage|Piscine|Ouvertures|Climatisation|Surface|Terrain|Stationnement|Toiture|Niveaux"
    r"|Salle|Assainissement|Description)\b|$)"
)

_TITLE_PREFIX = re.compile(r"^\s*à vendre\s*-\s*", re.IGNORECASE)
_URL_REFERENCE = re.compile(r",([A-Z]*\d+)/?(?:[?#].*)?$", re.IGNORECASE)
_URL_POSTAL_CODE = re.compile(r"-(\d{5}),")
_CITY_POSTAL_CODE = re.compile(r"([A-ZÀ-Ý][\w'-]*(?:\s+[A-ZÀ-Ý][\w'-]*)*)\s+(\d{5})\b")

# Upper bounds by asking price; larger counts are misreads of the page.
ROOM_CAPS = ((100_000, 6), (200_000, 10), (400_000, 15), (800_000, 20), (1_500_000, 30))
BEDROOM_CAPS = ((150_000, 6), (300_000, 10), (500_000, 15), (1_000_000, 25), (2_000_000, 40))


def _until_next_label(label: str) -> str:
    return label + r"\s*:?\s*(.+?)" + _NEXT_LABEL


def _year(text: str) -> int | None:
    year = parse_int(text)
    return year if year is not None and 1000 <= year <= 2030 else None


def _land_area(text: str) -> int | None:
    return parse_land_area(text, bare_unit_ares=True)


def _drainage(text: str) -> str | None:
    return classify_drainage(text, with_compliance=True)


def cap_for_price(price: int | None, caps: tuple[tuple[int, int], ...], default: int, above: int) -> int:
    if not price:
        return default
    for bound, cap in caps:
        if price < bound:
            return cap
    return above


def refine(raw: RawExtraction) -> None:
    fields = raw.fields
    title = fields.get("title")
    if title:
        fields["title"] = _TITLE_PREFIX.sub("", title).split("|", 1)[0].strip() or title

    if not fields.get("reference"):
        match = _URL_REFERENCE.search(raw.url)
        fields["reference"] = match.group(1) if match else None

    shower_rooms = fields.pop("shower_rooms", None)
    if shower_rooms:
        fields["bathrooms"] = (fields.get("bathrooms") or 0) + shower_rooms

    price = fields.get("price")
    rooms = fields.get("rooms")
    if rooms is not None and not 1 <= rooms <= cap_for_price(price, ROOM_CAPS, 25, 50):
        fields["rooms"] = None
    bedrooms = fields.get("bedrooms")
    if bedrooms is not None and not 1 <= bedrooms <= cap_for_price(price, BEDROOM_CAPS, 20, 100):
        fields["bedrooms"] = None


def resolve_location(raw: RawExtraction) -> Location:
    """
    'Localisation Issigeac 24560' from the characteristics, else a 'City 24xxx'
    pair in the breadcrumb or the document title. The postal code in the detail
    URL (...-issigeac-24560,VM17325) is the last resort.
    """
    candidates = [raw.fields.get("location_text"), *reversed(raw.breadcrumbs), raw.extras.get("page_title")]
    for text in candidates:
        match = _CITY_POSTAL_CODE.search(clean_text(text))
        if match:
            city = re.sub(r"^localisation\s*:?\s*", "", match.group(1).strip(), flags=re.IGNORECASE)
            postal_code = match.group(2)
            return Location(
                city=city or None,
                department=department_from_postal_code(postal_code),
                postal_code=postal_code,
            )
    match = _URL_POSTAL_CODE.search(raw.url)
    postal_code = match.group(1) if match else None
    return Location(department=department_from_postal_code(postal_code), postal_code=postal_code)


CONFIG = SourceConfig(
    name="eleonor",
    default_search_url="https://www.agence-eleonor.fr/fr/vente",
    page_url=query_page_url,
    resolve_location=resolve_location,
    listing_link_selector='a[href*="/fr/vente/"][href*=",VM"]',
    listing_link_pattern=re.compile(r"/fr/vente/[^/?#]+,VM\d+/?(?:[?#].*)?$", re.IGNORECASE),
    listing_card_selector="article",
    scroll_listing=True,
    listing_settle_ms=3000,
    scroll_settle_ms=2000,
    detail_settle_ms=2000,
    request_delay=1.5,
    title_selectors=("h1",),
    price_selectors=("p._1hxffol", '[class*="price"]'),
    price_pattern=r"(\d[\d\s  ]*)\s*€",
    description_selectors=('[class*="description"]', ".comment"),
    description_max_length=500,
    list_item_selector='tr, [class*="row"]',
    item_rules={
        "reference": ItemRule("référence", pattern=r"r[ée]f[ée]rence\s*:?\s*(VM\d+)", cast=str),
        "rooms": ItemRule("pièces", pattern=r"pi[èe]ces\s*:?\s*(\d+)"),
        "bedrooms": ItemRule("chambre", pattern=r"chambres?\s*:?\s*(\d+)"),
        "building_surface": ItemRule("surface", exclude=("terrain",), pattern=r"surface[^:\d]*:?\s*(\d[\d\s  ]*)\s*m"),
        "land_surface": ItemRule("terrain", pattern=_until_next_label("terrain"), cast=_land_area),
        "bathrooms": ItemRule("salle de bain", pattern=r"salles? de bains?\s*:?\s*(\d+)"),
        "shower_rooms": ItemRule("salle d'eau", aliases=("salle d’eau",), pattern=r"salles? d['’]eau\s*:?\s*(\d+)"),
        "wc_count": ItemRule("wc", pattern=r"\bwc\s*:?\s*(\d+)"),
        "property_condition": ItemRule(
            "état",
            aliases=("etat",),
            pattern=_until_next_label(r"[ée]tat(?:\s+int[ée]rieur)?"),
            cast=classify_condition,
        ),
        "year_built": ItemRule("construction", pattern=r"construction\s*:?\s*(\d{4})", cast=_year),
        "heating_system": ItemRule("chauffage", pattern=_until_next_label("chauffage"), cast=str),
        "drainage_system": ItemRule("assainissement", pattern=_until_next_label("assainissement"), cast=_drainage),
        "pool": ItemRule("piscine", pattern=r"piscine\s*:?\s*(\w+)", cast=parse_yes_no),
        "location_text": ItemRule("localisation", pattern=r"(localisation\s*:?\s*.+?\d{5})", cast=str),
    },
    dpe_selectors=('[class*="dpe"]', '[class*="energ"]'),
    extra_selectors={"page_title": "title"},
    breadcrumb_selector='nav a, [class*="breadcrumb"] a',
    image_selectors=("img",),
    image_host="netty.",
    min_image_width=101,
    max_images=10,
    refine=refine,
)
