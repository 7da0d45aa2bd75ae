from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...]
    quality_score: float


@dataclass(slots=True)
class ImageCandidate:
    src: str | None = None
    current_src: str | None = None
    data_src: str | None = None
    data_lazy: str | None = None
    data_original: str | None = None
    complete: bool = True
    natural_width: int | None = None

    @classmethod
    def from_dom(cls, payload: dict[str, Any]) -> ImageCandidate:
        width = payload.get("naturalWidth")
        return cls(
            src=payload.get("src") or None,
            current_src=payload.get("currentSrc") or None,
            data_src=payload.get("dataSrc") or None,
            data_lazy=payload.get("dataLazy") or None,
            data_original=payload.get("dataOriginal") or None,
            complete=bool(payload.get("complete", True)),
            natural_width=int(width) if isinstance(width, (int, float)) else None,
        )

    @property
    def lazy_sources(self) -> list[str]:
        return [src for src in (self.data_src, self.data_lazy, self.data_original) if src]


@dataclass(slots=True)
class ListingCard:
    url: str
    images: list[ImageCandidate] = field(default_factory=list)


@dataclass(slots=True)
class RawExtraction:
    url: str
    texts: dict[str, list[str]] = field(default_factory=dict)  # field -> text per fallback selector
    items: list[str] = field(default_factory=list)
    sections: dict[str, list[str]] = field(default_factory=dict)
    extras: dict[str, str] = field(default_factory=dict)
    breadcrumbs: list[str] = field(default_factory=list)
    images: list[ImageCandidate] = field(default_factory=list)
    fields: dict[str, Any] = field(default_factory=dict)  # parsed values, filled by the detail extractor

    def first_text(self, name: str) -> str | None:
        for value in self.texts.get(name, []):
            if value and value.strip():
                return value.strip()
        return None


@dataclass(slots=True)
class NormalizedProperty:
    source: str
    url: str
    price: int
    reference: str | None = None
    title: str | None = None
    description: str | None = None
    property_type: str | None = None
    building_surface: int | None = None
    land_surface: int | None = None
    rooms: int | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    floors: int | None = None
    year_built: int | None = None
    heating_system: str | None = None
    drainage_system: str | None = None
    property_condition: str | None = None
    energy_consumption: int | None = None  # kWh/m².an
    co2_emissions: int | None = None  # kg CO2/m².an
    wc_count: int | None = None
    pool: bool = False
    images: list[str] = field(default_factory=list)
    location_city: str | None = None
    location_department: str | None = None
    location_postal_code: str | None = None
    source_id: str | None = None
    validation: ValidationResult | None = None


@dataclass(slots=True)
class ScrapeReport:
    source: str
    success: bool = True
    total_scraped: int = 0
    inserted: int = 0
    valid: int = 0
    invalid: int = 0
    with_images: int = 0
    image_count: int = 0
    pool_count: int = 0
    price_drops: int = 0
    failed_urls: list[str] = field(default_factory=list)
    skipped_urls: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def avg_images_per_property(self) -> float:
        if not self.total_scraped:
            return 0.0
        return round(self.image_count / self.total_scraped, 1)

    def record(self, prop: NormalizedProperty) -> None:
        self.total_scraped += 1
        if prop.validation is not None and not prop.validation.is_valid:
            self.invalid += 1
        else:
            self.valid += 1
        if prop.images:
            self.with_images += 1
            self.image_count += len(prop.images)
        if prop.pool:
            self.pool_count += 1

    def as_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "source": self.source, "error": self.error}
        return {
            "success": True,
            "source": self.source,
            "totalScraped": self.total_scraped,
            "inserted": self.inserted,
            "validation": {
                "valid": self.valid,
                "invalid": self.invalid,
                "total": self.valid + self.invalid,
            },
            "imageStats": {
                "withImages": self.with_images,
                "avgImagesPerProperty": self.avg_images_per_property,
            },
            "poolCount": self.pool_count,
            "priceDrops": self.price_drops,
            "failedUrls": list(self.failed_urls),
        }
