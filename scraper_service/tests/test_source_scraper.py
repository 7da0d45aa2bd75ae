import asyncio

from scraper_service.core.errors import BrowserLaunchError
from scraper_service.jobs.run_scrape import run_scrape_async
from scraper_service.scrapers.base import SourceScraper
from scraper_service.scrapers.cyrano.source import CONFIG as CYRANO
from scraper_service.scrapers.progress import COLLECTING_URLS, DONE, EXTRACTING_DETAILS, PERSISTING
from scraper_service.tests.fakes import FakePage, FakeRepo, FakeSession, card, loaded_img, snapshot

SEARCH = "https://www.cyranoimmobilier.com/vente/1"
BASE = "https://www.cyranoimmobilier.com/vente/dordogne/bergerac"
U1, U2, U3 = f"{BASE}/101-maison", f"{BASE}/102-maison", f"{BASE}/103-villa"


def _detail(title, price="185 000 €", images=None):
    return snapshot(
        title=title,
        price=price,
        items=["Code postal : 24100", "Nombre de pièces : 5", "Nombre de chambre(s) : 3"],
        breadcrumbs=["Accueil", "Vente", "Dordogne", "Bergerac"],
        images=images,
    )


def _page(details, errors=None):
    listings = {
        SEARCH: [
            card(U1, loaded_img("https://cdn.example/photos/400xauto/hero1.jpg")),
            card(U2),
            card(U3),
        ]
    }
    return FakePage(listings=listings, details=details, errors=errors)


class _Sleeps:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def test_failed_detail_page_is_skipped_and_run_succeeds():
    page = _page({U1: _detail("Maison de ville"), U3: _detail("Villa avec piscine")}, errors={U2})
    repo = FakeRepo()
    sleeps = _Sleeps()
    stages = []

    report = asyncio.run(
        SourceScraper(CYRANO, repo, on_progress=lambda stage, detail: stages.append(stage), sleep=sleeps).run(page)
    )

    assert report.success is True
    assert report.total_scraped == 2
    assert report.inserted == 2
    assert report.failed_urls == [U2]
    assert report.pool_count == 1
    assert sleeps.calls == [1.0, 1.0]
    assert len(repo.rows) == 2
    assert stages[0] == COLLECTING_URLS
    assert stages.count(EXTRACTING_DETAILS) == 3
    assert stages[-2:] == [PERSISTING, DONE]

    summary = report.as_dict()
    assert summary["totalScraped"] == 2
    assert summary["validation"] == {"valid": 2, "invalid": 0, "total": 2}
    assert summary["failedUrls"] == [U2]


def test_records_without_price_are_dropped():
    page = _page({U1: _detail("Maison"), U2: _detail("Maison", price="Prix sur demande"), U3: _detail("Villa")})
    repo = FakeRepo()

    report = asyncio.run(SourceScraper(CYRANO, repo, sleep=_Sleeps()).run(page))

    assert report.total_scraped == 2
    assert report.skipped_urls == [U2]
    assert {row["source_id"] for row in repo.rows.values()} == {"101", "103"}


def test_hero_image_leads_gallery():
    gallery = [
        loaded_img("https://cdn.example/photos/400xauto/a.jpg"),
        loaded_img("https://cdn.example/photos/400xauto/hero1.jpg"),
        loaded_img("https://cdn.example/photos/400xauto/b.jpg"),
    ]
    page = _page({U1: _detail("Maison", images=gallery)})
    repo = FakeRepo()

    asyncio.run(SourceScraper(CYRANO, repo, sleep=_Sleeps()).run(page, max_properties=1))

    row = repo.rows[("properties", "cyrano", "101")]
    assert row["images"] == [
        "https://cdn.example/photos/1600xauto/hero1.jpg",
        "https://cdn.example/photos/1600xauto/a.jpg",
        "https://cdn.example/photos/1600xauto/b.jpg",
    ]
    assert row["location_city"] == "Bergerac"
    assert row["location_department"] == "24"
    assert row["property_type"] == "House/Villa"


def test_second_run_updates_instead_of_duplicating():
    details = {U1: _detail("Maison"), U2: _detail("Maison"), U3: _detail("Villa")}
    repo = FakeRepo()

    asyncio.run(SourceScraper(CYRANO, repo, sleep=_Sleeps()).run(_page(details)))
    report = asyncio.run(SourceScraper(CYRANO, repo, sleep=_Sleeps()).run(_page(details)))

    assert report.inserted == 3
    assert len(repo.rows) == 3


def test_run_scrape_async_reports_unknown_source():
    report = asyncio.run(run_scrape_async("seloger", repo=FakeRepo()))
    assert report.success is False
    assert "Unknown source" in report.error
    assert report.as_dict() == {"success": False, "source": "seloger", "error": report.error}


def test_run_scrape_async_closes_browser_when_store_is_down():
    session = FakeSession(_page({U1: _detail("Maison")}))

    report = asyncio.run(
        run_scrape_async("cyrano", repo=FakeRepo(unavailable=True), session_factory=session, sleep=_Sleeps())
    )

    assert report.success is False
    assert "connection refused" in report.error
    assert session.opened == session.closed == 1


def test_run_scrape_async_reports_browser_launch_failure():
    session = FakeSession(FakePage(), fail_launch=BrowserLaunchError("Executable doesn't exist"))

    report = asyncio.run(run_scrape_async("cyrano", repo=FakeRepo(), session_factory=session))

    assert report.success is False
    assert report.error == "Executable doesn't exist"


def test_run_scrape_async_reads_delay_and_pages_from_env(monkeypatch):
    monkeypatch.setenv("SCRAPER_REQUEST_DELAY", "0.25")
    monkeypatch.setenv("SCRAPER_MAX_PAGES", "1")
    page = _page({U1: _detail("Maison"), U2: _detail("Maison"), U3: _detail("Villa")})
    sleeps = _Sleeps()

    report = asyncio.run(
        run_scrape_async("cyrano", repo=FakeRepo(), session_factory=FakeSession(page), sleep=sleeps)
    )

    assert report.success is True
    assert sleeps.calls == [0.25, 0.25]
    assert [url for url in page.visited if "/vente/" in url and url[-1].isdigit()] == [SEARCH]
