from __future__ import annotations

import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

PARIS = ZoneInfo("Europe/Paris")
MINUTES_PER_DAY = 24 * 60


def paris_now(now_utc: datetime | None = None) -> datetime:
    return (now_utc or datetime.now(timezone.utc)).astimezone(PARIS)


def should_run_paris_time(
    now_utc: datetime | None = None,
    target_hour: int | None = None,
    target_minute: int | None = None,
    tolerance_minutes: int = 0,
) -> bool:
    """
    Cron runs in UTC twice (CET and CEST slots); only the one landing on the
    Paris wall-clock target, give or take `tolerance_minutes`, goes ahead.
    """
    hour = target_hour if target_hour is not None else _env_int("RUN_HOUR_PARIS", default=6)
    minute = target_minute if target_minute is not None else _env_int("RUN_MINUTE_PARIS", default=0)
    target = max(0, min(23, hour)) * 60 + max(0, min(59, minute))

    local = paris_now(now_utc)
    current = local.hour * 60 + local.minute
    distance = abs(current - target)
    return min(distance, MINUTES_PER_DAY - distance) <= max(0, tolerance_minutes)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default
