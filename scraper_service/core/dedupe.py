from __future__ import annotations

import hashlib
import re
from urllib.parse import unquote, urlparse


def derive_source_id(
    url: str,
    reference: str | None = None,
    url_id_pattern: re.Pattern[str] | None = None,
    slug_separator: str | None = None,
) -> str:
    """
    Stable per-listing key, tried in order: reference code embedded in the URL,
    scraped reference, last URL path segment, digest of the normalized URL.
    """
    if url_id_pattern is not None:
        match = url_id_pattern.search(url)
        if match:
            return match.group(1)
    if reference and reference.strip():
        return reference.strip()
    segment = last_path_segment(url, slug_separator)
    if segment:
        return segment
    return url_digest(url)


def last_path_segment(url: str, slug_separator: str | None = None) -> str | None:
    path = unquote(urlparse(url).path).rstrip("/")
    if not path:
        return None
    segment = path.rsplit("/", 1)[-1]
    if slug_separator:
        segment = segment.rsplit(slug_separator, 1)[-1]
    return segment or None


def normalize_url(url: str) -> str:
    parsed = urlparse(url.strip())
    return f"{parsed.netloc.lower()}{parsed.path.rstrip('/')}"


def url_digest(url: str) -> str:
    return "url-" + hashlib.sha1(normalize_url(url).encode("utf-8")).hexdigest()[:16]
