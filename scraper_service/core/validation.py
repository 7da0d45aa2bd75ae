from __future__ import annotations

from scraper_service.core.models import NormalizedProperty, ValidationResult

PRICE_MIN = 1_000  # exclusive
PRICE_MAX = 10_000_000
SURFACE_RANGE = (10, 2000)
ROOMS_RANGE = (1, 20)
ROOMS_CONCATENATED = 50
LAND_SURFACE_MAX = 1_000_000

RANGE_PENALTY = 0.2
CONCATENATION_PENALTY = 0.3


def validate(record: NormalizedProperty) -> ValidationResult:
    """
    Flag suspicious numeric data. Errors never block persistence; they lower
    the quality score and are stored for review.
    """
    errors: list[str] = []
    score = 1.0

    price = record.price
    if not price or price <= PRICE_MIN or price > PRICE_MAX:
        errors.append("Invalid price range")
        score -= RANGE_PENALTY

    surface = record.building_surface
    if surface is not None and not SURFACE_RANGE[0] <= surface <= SURFACE_RANGE[1]:
        errors.append("Surface out of reasonable range")
        score -= RANGE_PENALTY

    rooms = record.rooms
    if rooms is not None and not ROOMS_RANGE[0] <= rooms <= ROOMS_RANGE[1]:
        errors.append("Rooms count suspicious")
        score -= RANGE_PENALTY

    if record.bedrooms is not None and rooms is not None and record.bedrooms > rooms:
        errors.append("Bedrooms exceeds total rooms")
        score -= RANGE_PENALTY

    # e.g. 62337 read from "6 pièces 2 chambres 337 m²"
    if rooms is not None and rooms > ROOMS_CONCATENATED:
        errors.append("Rooms value appears to be concatenated with other data")
        score -= CONCATENATION_PENALTY

    if record.land_surface is not None and record.land_surface > LAND_SURFACE_MAX:
        errors.append("Land surface suspiciously large")
        score -= RANGE_PENALTY

    return ValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        quality_score=round(max(0.0, score), 2),
    )
