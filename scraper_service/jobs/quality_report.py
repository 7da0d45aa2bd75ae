from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from scraper_service.core.supabase_repo import PropertyRepo, SupabaseRepo
from scraper_service.core.validation import LAND_SURFACE_MAX, PRICE_MAX, PRICE_MIN, ROOMS_CONCATENATED, SURFACE_RANGE

LOGGER = logging.getLogger(__name__)

REPORT_COLUMNS = "source_id, url, title, price, surface, building_surface, rooms, bedrooms, land_surface"


def find_issues(row: dict[str, Any]) -> dict[str, Any]:
    """Issue bucket -> offending value for one stored row. Read-only; stored scores are not touched."""
    issues: dict[str, Any] = {}
    rooms = _number(row.get("rooms"))
    bedrooms = _number(row.get("bedrooms"))
    surface = _number(row.get("building_surface") if row.get("building_surface") is not None else row.get("surface"))
    price = _number(row.get("price"))
    land = _number(row.get("land_surface"))

    if rooms is not None and rooms > ROOMS_CONCATENATED:
        issues["suspicious_rooms"] = rooms
    if surface is not None and not SURFACE_RANGE[0] <= surface <= SURFACE_RANGE[1]:
        issues["suspicious_surface"] = surface
    if price is None or price <= PRICE_MIN or price > PRICE_MAX:
        issues["invalid_price"] = price
    if rooms is not None and bedrooms is not None and bedrooms > rooms:
        issues["bedrooms_exceed_rooms"] = {"bedrooms": bedrooms, "rooms": rooms}
    if land is not None and land > LAND_SURFACE_MAX:
        issues["huge_land_surface"] = land
    return issues


def build_quality_report(rows: list[dict[str, Any]]) -> dict[str, Any]:
    buckets: dict[str, list[dict[str, Any]]] = {
        "suspicious_rooms": [],
        "suspicious_surface": [],
        "invalid_price": [],
        "bedrooms_exceed_rooms": [],
        "huge_land_surface": [],
    }
    flagged = 0
    for row in rows:
        issues = find_issues(row)
        if issues:
            flagged += 1
        for bucket, value in issues.items():
            buckets[bucket].append(
                {"id": row.get("source_id"), "url": row.get("url"), "title": row.get("title"), "value": value}
            )
    total = len(rows)
    health = round((total - flagged) / total * 100, 1) if total else 100.0
    return {
        "total": total,
        "flagged": flagged,
        "health_score": health,
        "needs_cleaning": health < 80,
        "issues": buckets,
    }


def run_quality_report(source: str, repo: PropertyRepo | None = None) -> dict[str, Any]:
    store = repo if repo is not None else SupabaseRepo()
    rows = store.fetch_properties(source, columns=REPORT_COLUMNS)
    report = build_quality_report(rows)
    LOGGER.info(
        "Quality report source=%s total=%s flagged=%s health=%s%%",
        source,
        report["total"],
        report["flagged"],
        report["health_score"],
    )
    return report


def _number(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Audit stored properties of one source for data quality issues.")
    parser.add_argument("--source", default="cadimmo")
    parser.add_argument("--limit", type=int, default=5, help="Examples listed per issue bucket.")
    args = parser.parse_args()
    result = run_quality_report(args.source)
    result["issues"] = {bucket: items[: args.limit] for bucket, items in result["issues"].items()}
    print(json.dumps(result, ensure_ascii=False, indent=2))
