from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Iterable

from scraper_service.core.models import NormalizedProperty

SCRAPER_VERSION = "3.0"

# Ordered: the first keyword found wins.
PROPERTY_TYPE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("maison", "House/Villa"),
    ("villa", "House/Villa"),
    ("longère", "House/Villa"),
    ("longere", "House/Villa"),
    ("manoir", "House/Villa"),
    ("appartement", "Apartment"),
    ("studio", "Apartment"),
    ("terrain", "Land"),
    ("immeuble", "Building"),
    ("propriété", "Property"),
    ("propriete", "Property"),
    ("domaine", "Property"),
    ("château", "Property"),
    ("chateau", "Property"),
)

_SPACES = re.compile(r"[\s  ]+")
_DIGIT_RUN = re.compile(r"\d[\d\s  .,]*")
_POSTAL_CODE = re.compile(r"\b(\d{5})\b")
_HECTARES = re.compile(r"(\d+(?:[.,]\d+)?)\s*ha\b", re.IGNORECASE)
_ARES = re.compile(r"(\d+)\s*a(?:res?)?\b(?:\s*(\d+)\s*ca\b)?", re.IGNORECASE)
_CENTIARES = re.compile(r"(\d+)\s*ca\b", re.IGNORECASE)
_SQUARE_METRES = re.compile(r"m[²2]", re.IGNORECASE)
_DPE_ENERGY = (re.compile(r"(\d{1,4})\s*kWh/m[²2]\.?\s*an", re.I), re.compile(r"(\d{1,4})\s*kWh", re.I))
_DPE_CO2 = (
    re.compile(r"(\d{1,4})\s*\*?\s*kg\s*CO2/m[²2]\.?\s*an", re.I),
    re.compile(r"(\d{1,4})\s*\*?\s*kg\s*CO2", re.I),
)

# Ordered: the first marker found wins; unmatched values are kept as written.
CONDITION_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("excellent",), "Excellent"),
    (("bon",), "Good"),
    (("rénov", "renov", "travaux", "mise à jour"), "To Renovate"),
    (("neuf", "récent", "recent"), "New/Recent"),
)


def clean_text(value: str | None) -> str:
    return _SPACES.sub(" ", value).strip() if value else ""


def parse_int(value: Any) -> int | None:
    """
    Integer from scraped text: '129 900 €' -> 129900, '1.250,50 m²' -> 1250.
    Only the first run of digits is read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _DIGIT_RUN.search(str(value))
    if not match:
        return None
    run = _SPACES.sub("", match.group(0)).rstrip(".,")
    # A trailing ",dd" or ".dd" is a decimal part, anything else is a thousands separator.
    decimal = re.search(r"[.,](\d{1,2})$", run)
    if decimal:
        run = run[: decimal.start()]
    digits = re.sub(r"[^0-9]", "", run)
    return int(digits) if digits else None


def parse_price(value: Any) -> int | None:
    price = parse_int(value)
    if price is None or price <= 0:
        return None
    return price


def classify_property_type(*texts: str | None) -> str | None:
    for text in texts:
        lowered = (text or "").lower()
        if not lowered:
            continue
        for keyword, category in PROPERTY_TYPE_KEYWORDS:
            if keyword in lowered:
                return category
    return None


def has_keyword(keywords: Iterable[str], *texts: str | None) -> bool:
    haystack = " ".join(text.lower() for text in texts if text)
    return any(keyword in haystack for keyword in keywords)


def merge_images(hero_image: str | None, images: Iterable[str], limit: int | None = None) -> list[str]:
    """Hero first, then gallery order, each URL once."""
    seen: dict[str, None] = {}
    if hero_image:
        seen[hero_image] = None
    for image in images:
        if image and image not in seen:
            seen[image] = None
    merged = list(seen.keys())
    return merged[:limit] if limit else merged


def title_case_slug(slug: str) -> str:
    """'saint-cyprien' -> 'Saint-Cyprien'."""
    return "-".join(word[:1].upper() + word[1:] for word in slug.strip().split("-") if word)


def find_postal_code(*texts: str | None) -> str | None:
    for text in texts:
        if not text:
            continue
        match = _POSTAL_CODE.search(text)
        if match:
            return match.group(1)
    return None


def department_from_postal_code(postal_code: str | None) -> str | None:
    if not postal_code or len(postal_code) != 5 or not postal_code.isdigit():
        return None
    # Corsica postal codes 20xxx map to 2A/2B; keep the numeric prefix.
    return postal_code[:2]


def parse_land_area(value: Any, bare_unit_ares: bool = False) -> int | None:
    """
    Land area in m² from '2 ha', '45 a 30 ca', '1 250 m²'.
    A number without a unit is read as m², or as ares when `bare_unit_ares` is set.
    """
    text = clean_text(str(value)) if value is not None else ""
    if not text:
        return None
    hectares = _HECTARES.search(text)
    if hectares:
        return round(float(hectares.group(1).replace(",", ".")) * 10000)
    ares = _ARES.search(text)
    if ares:
        return int(ares.group(1)) * 100 + int(ares.group(2) or 0)
    centiares = _CENTIARES.search(text)
    if centiares:
        return int(centiares.group(1))
    number = parse_int(text)
    if number is not None and bare_unit_ares and not _SQUARE_METRES.search(text):
        return number * 100
    return number


def parse_yes_no(value: str | None) -> bool | None:
    lowered = clean_text(value).lower()
    if not lowered:
        return None
    if lowered.startswith(("oui", "yes")):
        return True
    if lowered.startswith(("non", "no")):
        return False
    return None


def classify_condition(value: str | None) -> str | None:
    text = clean_text(value)
    lowered = text.lower()
    for markers, label in CONDITION_KEYWORDS:
        if any(marker in lowered for marker in markers):
            return label
    return text or None


def classify_drainage(value: str | None, with_compliance: bool = False) -> str | None:
    """
    Mains sewer or individual (septic) system. With `with_compliance`, the
    'conforme' / 'non conforme' mention is kept in the label.
    """
    text = clean_text(value)
    lowered = text.lower()
    if not lowered:
        return None
    compliant = "conforme" in lowered and "non" not in lowered
    if "tout" in lowered and "égout" in lowered:
        if with_compliance and "conforme" in lowered:
            return "Mains (Compliant)"
        return "Mains"
    if any(marker in lowered for marker in ("individuel", "fosse", "septique")):
        if not with_compliance:
            return "Individual (Septic)"
        return "Individual (Compliant)" if compliant else "Individual (Non-Compliant)"
    if "collectif" in lowered:
        return "Mains"
    return text


def parse_energy_consumption(*texts: str | None) -> int | None:
    """Primary energy (kWh/m².an) from DPE text; the explicit unit is preferred."""
    return _first_dpe_value(_DPE_ENERGY, texts)


def parse_co2_emissions(*texts: str | None) -> int | None:
    return _first_dpe_value(_DPE_CO2, texts)


def _first_dpe_value(patterns: tuple[re.Pattern[str], ...], texts: tuple[str | None, ...]) -> int | None:
    for pattern in patterns:
        for text in texts:
            match = pattern.search(text or "")
            if match:
                return int(match.group(1))
    return None


def property_to_row(prop: NormalizedProperty, scraped_at: datetime | None = None) -> dict[str, Any]:
    now = (scraped_at or datetime.now(timezone.utc)).isoformat()
    validation = prop.validation
    return {
        "source": prop.source,
        "source_id": prop.source_id,
        "reference": prop.reference,
        "url": prop.url,
        "title": prop.title,
        "description": prop.description,
        "price": prop.price,
        "property_type": prop.property_type,
        "surface": prop.building_surface,
        "building_surface": prop.building_surface,
        "land_surface": prop.land_surface,
        "rooms": prop.rooms,
        "bedrooms": prop.bedrooms,
        "bathrooms": prop.bathrooms,
        "floors": prop.floors,
        "year_built": prop.year_built,
        "heating_system": prop.heating_system,
        "drainage_system": prop.drainage_system,
        "property_condition": prop.property_condition,
        "energy_consumption": prop.energy_consumption,
        "co2_emissions": prop.co2_emissions,
        "wc_count": prop.wc_count,
        "pool": prop.pool,
        "images": list(prop.images),
        "location_city": prop.location_city,
        "location_department": prop.location_department,
        "location_postal_code": prop.location_postal_code,
        "data_quality_score": validation.quality_score if validation else None,
        "validation_errors": list(validation.errors) if validation else [],
        "is_active": True,
        "scraped_at": now,
        "last_seen_at": now,
        "raw_data": {
            "source": prop.source,
            "scraped_at": now,
            "scraper_version": SCRAPER_VERSION,
            "image_count": len(prop.images),
        },
    }
