from scraper_service.core.models import ScrapeReport
from scraper_service.jobs import daily_scrape
from scraper_service.tests.fakes import FakeRepo


def test_configured_sources_from_env(monkeypatch):
    monkeypatch.setenv("DAILY_SCRAPE_SOURCES", "cadimmo, leggett,,")
    assert daily_scrape.configured_sources() == ["cadimmo", "leggett"]
    monkeypatch.delenv("DAILY_SCRAPE_SOURCES")
    assert daily_scrape.configured_sources() == ["cadimmo"]


def test_run_daily_skips_outside_window(monkeypatch):
    monkeypatch.delenv("FORCE_RUN", raising=False)
    monkeypatch.setattr(daily_scrape, "should_run_paris_time", lambda **kwargs: False)
    called = []
    monkeypatch.setattr(daily_scrape, "run_scrape", lambda name, repo=None: called.append(name))

    assert daily_scrape.run_daily(repo=FakeRepo()) is None
    assert called == []


def test_run_daily_forced_aggregates_reports(monkeypatch):
    def fake_run_scrape(name, repo=None):
        if name == "charbit":
            return ScrapeReport(source=name, success=False, error="Browser launch failed")
        return ScrapeReport(source=name, total_scraped=4, inserted=3)

    monkeypatch.setattr(daily_scrape, "run_scrape", fake_run_scrape)

    summary = daily_scrape.run_daily(force_run=True, sources=["cadimmo", "charbit", "seloger", "leggett"], repo=FakeRepo())

    assert summary["totalScraped"] == 8
    assert summary["totalInserted"] == 6
    assert summary["failedSources"] == ["charbit", "seloger"]
    assert set(summary["sources"]) == {"cadimmo", "charbit", "leggett"}
    assert summary["sources"]["charbit"] == {"success": False, "source": "charbit", "error": "Browser launch failed"}


def test_force_run_env_bypasses_guard(monkeypatch):
    monkeypatch.setenv("FORCE_RUN", "true")
    monkeypatch.setattr(daily_scrape, "should_run_paris_time", lambda **kwargs: False)
    monkeypatch.setattr(daily_scrape, "run_scrape", lambda name, repo=None: ScrapeReport(source=name))

    summary = daily_scrape.run_daily(sources=["cadimmo"], repo=FakeRepo())

    assert summary is not None
    assert summary["failedSources"] == []
