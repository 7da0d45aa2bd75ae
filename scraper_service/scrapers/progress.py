from __future__ import annotations

import logging
from typing import Any, Callable

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]

COLLECTING_URLS = "collecting_urls"
EXTRACTING_DETAILS = "extracting_details"
VALIDATING = "validating"
PERSISTING = "persisting"
DONE = "done"


def notify(callback: ProgressCallback | None, stage: str, **detail: Any) -> None:
    if callback is None:
        return
    try:
        callback(stage, detail)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Progress callback failed at stage=%s", stage)


def logging_progress(stage: str, detail: dict[str, Any]) -> None:
    LOGGER.info("stage=%s %s", stage, " ".join(f"{key}={value}" for key, value in detail.items()))
