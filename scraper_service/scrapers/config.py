from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from scraper_service.core.models import RawExtraction
from scraper_service.core.normalize import parse_int

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
HERO_EXCLUDED_MARKERS = ("logo", "icon", "placeholder")


class Location(NamedTuple):
    city: str | None = None
    department: str | None = None
    postal_code: str | None = None


@dataclass(frozen=True, slots=True)
class ItemRule:
    """
    Labeled value in a list item: the first item containing `keyword`
    (case-insensitive) whose text matches `pattern` gives group 1, passed to `cast`.
    A preset whose marker is in the item text wins over the pattern.
    """

    keyword: str
    aliases: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    pattern: str = r"(\d[\d\s  ]*)"
    cast: Callable[[str], Any] = parse_int
    presets: tuple[tuple[str, Any], ...] = ()
    section: str | None = None


@dataclass(frozen=True, slots=True)
class CountRule:
    section: str
    keywords: tuple[str, ...]


@dataclass(frozen=True)
class SourceConfig:
    name: str
    default_search_url: str
    page_url: Callable[[str, int], str]
    listing_link_selector: str
    listing_link_pattern: re.Pattern[str]
    resolve_location: Callable[[RawExtraction], Location]
    listing_card_selector: str | None = None
    scroll_listing: bool = False
    listing_settle_ms: int = 2000
    scroll_settle_ms: int = 2000
    detail_settle_ms: int = 1500
    listing_timeout_ms: int = 30000
    detail_timeout_ms: int = 20000
    request_delay: float = 1.0
    title_selectors: tuple[str, ...] = ("h1",)
    price_selectors: tuple[str, ...] = (".price",)
    price_pattern: str | None = None
    description_selectors: tuple[str, ...] = ("#description",)
    description_max_length: int | None = None
    description_strip: tuple[str, ...] = ()
    reference_selectors: tuple[str, ...] = ()
    reference_pattern: str | None = None
    dpe_selectors: tuple[str, ...] = ()
    list_item_selector: str = "ul li"
    label_selector: str | None = None  # label element, value in its next sibling
    item_rules: dict[str, ItemRule] = field(default_factory=dict)
    section_selectors: dict[str, str] = field(default_factory=dict)
    count_rules: dict[str, CountRule] = field(default_factory=dict)
    extra_selectors: dict[str, str] = field(default_factory=dict)  # "css" or "css@attribute"
    breadcrumb_selector: str | None = None
    image_selectors: tuple[str, ...] = ()
    image_host: str | None = None
    logo_asset_hash: str | None = None
    min_image_width: int = 0
    image_upgrade: tuple[str, str] | None = None
    max_images: int | None = 15
    pool_keywords: tuple[str, ...] = ("piscine", "pool")
    type_hints: tuple[str, ...] = ("property_type_text", "url", "title")
    refine: Callable[[RawExtraction], None] | None = None

    def snapshot_request(self) -> dict[str, Any]:
        fields = {
            "title": list(self.title_selectors),
            "price": list(self.price_selectors),
            "description": list(self.description_selectors),
            "reference": list(self.reference_selectors),
            "dpe": list(self.dpe_selectors),
        }
        return {
            "fields": fields,
            "listItemSelector": self.list_item_selector,
            "labelSelector": self.label_selector,
            "sections": dict(self.section_selectors),
            "extras": dict(self.extra_selectors),
            "breadcrumbSelector": self.breadcrumb_selector,
            "imageSelectors": list(self.image_selectors),
        }

    def accepts_image(self, src: str | None) -> bool:
        if not src or src.startswith("data:"):
            return False
        lowered = src.lower()
        if self.logo_asset_hash and self.logo_asset_hash in lowered:
            return False
        if "logo" in lowered:
            return False
        if self.image_host and self.image_host not in lowered:
            return False
        return True

    def accepts_hero(self, src: str | None) -> bool:
        if not self.accepts_image(src):
            return False
        lowered = (src or "").lower()
        return not any(marker in lowered for marker in HERO_EXCLUDED_MARKERS)


def absolutize(src: str) -> str:
    return "https:" + src if src.startswith("//") else src


def query_page_url(search_url: str, page: int) -> str:
    """Page 1 is the search URL itself, then ?page=k."""
    if page <= 1:
        return search_url
    parsed = urlparse(search_url)
    params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    params["page"] = str(page)
    return urlunparse(parsed._replace(query=urlencode(params)))


def path_page_url(search_url: str, page: int) -> str:
    """Replace a trailing /<n> path segment: .../vente/1 -> .../vente/<page>."""
    return re.sub(r"/\d+/?$", "", search_url.rstrip("/")) + f"/{page}"


def colon_page_url(search_url: str, page: int) -> str:
    """CakePHP style pagination: .../page:<n>."""
    parsed = urlparse(search_url)
    path = re.sub(r"/page:\d+", "", parsed.path).rstrip("/")
    return urlunparse(parsed._replace(path=f"{path}/page:{page}"))


def offset_page_url(step: int, param: str = "start") -> Callable[[str, int], str]:
    """Offset pagination: page k reads ?start=(k-1)*step."""

    def page_url(search_url: str, page: int) -> str:
        parsed = urlparse(search_url)
        params = dict(parse_qsl(parsed.query, keep_blank_values=True))
        params[param] = str(max(page - 1, 0) * step)
        return urlunparse(parsed._replace(query=urlencode(params)))

    return page_url


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except (TypeError, ValueError):
        return default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default
