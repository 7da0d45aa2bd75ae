import pytest

from scraper_service.core.errors import UnknownSourceError
from scraper_service.core.models import RawExtraction
from scraper_service.scrapers.beauxvillages.source import resolve_location as beauxvillages_location
from scraper_service.scrapers.cadimmo.source import resolve_location as cadimmo_location
from scraper_service.scrapers.charbit.source import resolve_location as charbit_location
from scraper_service.scrapers.config import Location
from scraper_service.scrapers.cyrano.source import resolve_location as cyrano_location
from scraper_service.scrapers.eleonor.source import resolve_location as eleonor_location
from scraper_service.scrapers.leggett.source import resolve_location as leggett_location
from scraper_service.scrapers.registry import SOURCES, get_source


def test_cadimmo_city_from_url_slug():
    raw = RawExtraction(url="https://cad-immo.com/fr/propriete/vente+maison+saint-cyprien+123456")
    assert cadimmo_location(raw) == Location("Saint-Cyprien", "24", "24100")


def test_cadimmo_defaults_to_bergerac():
    raw = RawExtraction(url="https://cad-immo.com/fr/propriete/123456")
    assert cadimmo_location(raw).city == "Bergerac"


def test_cyrano_department_prefers_postal_code():
    raw = RawExtraction(
        url="https://www.cyranoimmobilier.com/vente/dordogne/bergerac/12345-maison",
        breadcrumbs=["Accueil", "Vente", "Dordogne", "Bergerac"],
        fields={"postal_code": "24100"},
    )
    assert cyrano_location(raw) == Location("Bergerac", "24", "24100")


def test_cyrano_falls_back_to_breadcrumb_department():
    raw = RawExtraction(url="https://x", breadcrumbs=["Accueil", "Vente", "Dordogne"])
    assert cyrano_location(raw) == Location(None, "Dordogne", None)


def test_charbit_city_from_url_when_heading_has_none():
    raw = RawExtraction(url="https://charbit-immo.fr/fr/propriete/vente+maison+saint-aubin-de-lanquais+8817")
    assert charbit_location(raw) == Location("Saint Aubin De Lanquais", "24", None)


def test_charbit_postal_code_from_heading():
    raw = RawExtraction(url="https://x", extras={"city": "Eymet 24500"}, fields={"title": "Maison"})
    assert charbit_location(raw) == Location("Eymet 24500", "24", "24500")


def test_leggett_postal_code_from_map_link_then_title():
    raw = RawExtraction(
        url="https://x",
        extras={"map_link": "https://maps.google.com/?q=47500+Fumel"},
        fields={"city": "Fumel", "department": "Lot-et-Garonne"},
    )
    assert leggett_location(raw) == Location("Fumel", "47", "47500")

    raw = RawExtraction(url="https://x", fields={"title": "Bergerac (24100) - Maison", "city": "Bergerac"})
    assert leggett_location(raw) == Location("Bergerac", "24", "24100")

    raw = RawExtraction(url="https://x", fields={"department": "Dordogne"})
    assert leggett_location(raw) == Location(None, "Dordogne", None)


def test_registry_resolves_names_and_aliases():
    assert set(SOURCES) == {"cadimmo", "cyrano", "charbit", "leggett", "eleonor", "beauxvillages"}
    assert get_source("cad-immo") is SOURCES["cadimmo"]
    assert get_source("agence-eleonor") is SOURCES["eleonor"]
    assert get_source("Beaux-Villages") is SOURCES["beauxvillages"]
    assert get_source(" Leggett ") is SOURCES["leggett"]
    with pytest.raises(UnknownSourceError):
        get_source("seloger")


def test_eleonor_location_from_characteristics():
    raw = RawExtraction(url="https://x", fields={"location_text": "Localisation Issigeac 24560"})
    assert eleonor_location(raw) == Location("Issigeac", "24", "24560")


def test_eleonor_location_fallbacks():
    raw = RawExtraction(
        url="https://x",
        breadcrumbs=["Accueil", "Vente"],
        extras={"page_title": "Maison ancienne 15 pièces Issigeac 24560 | Agence Eleonor"},
    )
    assert eleonor_location(raw) == Location("Issigeac", "24", "24560")

    raw = RawExtraction(url="https://www.agence-eleonor.fr/fr/vente/maison-eymet-24500,VM100")
    assert eleonor_location(raw) == Location(None, "24", "24500")


def test_beauxvillages_location_from_labels():
    raw = RawExtraction(
        url="https://x",
        fields={"city": "Eymet", "department": "Dordogne", "description": "Proche d'Eymet 24500."},
    )
    assert beauxvillages_location(raw) == Location("Eymet", "24", "24500")

    raw = RawExtraction(url="https://x", fields={"city": "Eymet", "department": "Dordogne"})
    assert beauxvillages_location(raw) == Location("Eymet", "Dordogne", None)
