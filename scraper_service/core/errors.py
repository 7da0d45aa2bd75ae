from __future__ import annotations


class ScraperError(Exception):
    """Base error for fatal scrape run failures."""


class BrowserLaunchError(ScraperError):
    """The headless browser session could not be started."""


class StorageUnavailableError(ScraperError):
    """The property store could not be reached."""


class UnknownSourceError(ScraperError, ValueError):
    """The source name is not onboarded."""
