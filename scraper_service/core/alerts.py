from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def price_change_fields(
    previous_price: Any,
    current_price: int,
    changed_at: datetime | None = None,
) -> dict[str, Any]:
    """
    Price tracking columns for a re-scraped listing, empty when the price is unchanged
    or no earlier price is known.
    """
    old = _as_int(previous_price)
    if old is None or old <= 0 or old == current_price:
        return {}
    when = changed_at or datetime.now(timezone.utc)
    return {
        "previous_price": old,
        "price_changed_at": when.isoformat(),
        "price_drop_amount": current_price - old,
    }


def is_price_drop(previous_price: Any, current_price: int, threshold_pct: float = 0.0) -> bool:
    old = _as_int(previous_price)
    if old is None or old <= 0:
        return False
    drop_pct = ((old - current_price) / old) * 100.0
    return drop_pct > 0 and drop_pct >= threshold_pct


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
