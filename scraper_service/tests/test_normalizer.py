from scraper_service.core.models import RawExtraction
from scraper_service.scrapers.cadimmo.source import CONFIG as CADIMMO
from scraper_service.scrapers.cyrano.source import CONFIG as CYRANO
from scraper_service.scrapers.normalizer import gallery_form, normalize_property

CYRANO_URL = "https://www.cyranoimmobilier.com/vente/dordogne/bergerac/101-maison"


def _raw(url, **fields):
    values = {"price": 185000, "title": "Maison de ville"}
    values.update(fields)
    return RawExtraction(url=url, fields=values)


def test_upgraded_hero_is_stored_once():
    raw = _raw(
        CYRANO_URL,
        images=[
            "https://cdn.example/photos/1600xauto/h.jpg",
            "https://cdn.example/photos/1600xauto/a.jpg",
            "https://cdn.example/photos/1600xauto/b.jpg",
        ],
    )

    prop = normalize_property(raw, CYRANO, hero_image="https://cdn.example/photos/400xauto/h.jpg")

    assert prop.images == [
        "https://cdn.example/photos/1600xauto/h.jpg",
        "https://cdn.example/photos/1600xauto/a.jpg",
        "https://cdn.example/photos/1600xauto/b.jpg",
    ]


def test_hero_leads_when_gallery_lacks_it():
    raw = _raw(CYRANO_URL, images=["https://cdn.example/photos/1600xauto/a.jpg"])

    prop = normalize_property(raw, CYRANO, hero_image="//cdn.example/photos/400xauto/h.jpg")

    assert prop.images == [
        "https://cdn.example/photos/1600xauto/h.jpg",
        "https://cdn.example/photos/1600xauto/a.jpg",
    ]


def test_gallery_form_rejects_images_outside_source_filter():
    assert gallery_form("https://cad-immo.com/static/hero.jpg", CADIMMO) is None
    assert gallery_form("https://d1.cloudfront.net/photos/hero.jpg", CADIMMO) == "https://d1.cloudfront.net/photos/hero.jpg"
    assert gallery_form(None, CYRANO) is None


def test_record_without_price_is_dropped():
    assert normalize_property(_raw(CYRANO_URL, price="Prix sur demande"), CYRANO) is None
    assert normalize_property(_raw(CYRANO_URL, price=0), CYRANO) is None
