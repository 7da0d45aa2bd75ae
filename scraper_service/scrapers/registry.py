from __future__ import annotations

from scraper_service.core.errors import UnknownSourceError
from scraper_service.scrapers.beauxvillages.source import CONFIG as BEAUXVILLAGES
from scraper_service.scrapers.cadimmo.source import CONFIG as CADIMMO
from scraper_service.scrapers.charbit.source import CONFIG as CHARBIT
from scraper_service.scrapers.config import SourceConfig
from scraper_service.scrapers.cyrano.source import CONFIG as CYRANO
from scraper_service.scrapers.eleonor.source import CONFIG as ELEONOR
from scraper_service.scrapers.leggett.source import CONFIG as LEGGETT

SOURCES: dict[str, SourceConfig] = {
    config.name: config for config in (CADIMMO, CYRANO, CHARBIT, LEGGETT, ELEONOR, BEAUXVILLAGES)
}

# Names used by older trigger payloads.
ALIASES = {
    "cad-immo": "cadimmo",
    "cyrano-immobilier": "cyrano",
    "charbit-immobilier": "charbit",
    "agence-eleonor": "eleonor",
    "beaux-villages": "beauxvillages",
}


def get_source(name: str) -> SourceConfig:
    key = ALIASES.get(name.strip().lower(), name.strip().lower())
    config = SOURCES.get(key)
    if config is None:
        raise UnknownSourceError(f"Unknown source '{name}'. Known sources: {', '.join(sorted(SOURCES))}")
    return config
