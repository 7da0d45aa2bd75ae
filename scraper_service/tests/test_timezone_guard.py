from datetime import datetime, timezone

from scraper_service.core.timezone_guard import should_run_paris_time


def test_should_run_paris_time_true_in_winter():
    dt = datetime(2026, 1, 15, 5, 0, tzinfo=timezone.utc)
    assert should_run_paris_time(dt, target_hour=6, target_minute=0) is True


def test_should_run_paris_time_true_in_summer():
    dt = datetime(2026, 7, 15, 4, 30, tzinfo=timezone.utc)
    assert should_run_paris_time(dt, target_hour=6, target_minute=30) is True


def test_should_run_paris_time_false():
    dt = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)
    assert should_run_paris_time(dt, target_hour=6, target_minute=0) is False


def test_should_run_paris_time_reads_env(monkeypatch):
    monkeypatch.setenv("RUN_HOUR_PARIS", "9")
    monkeypatch.setenv("RUN_MINUTE_PARIS", "15")
    dt = datetime(2026, 1, 15, 8, 15, tzinfo=timezone.utc)
    assert should_run_paris_time(dt) is True


def test_should_run_paris_time_tolerance_wraps_midnight():
    dt = datetime(2026, 1, 15, 22, 58, tzinfo=timezone.utc)  # 23:58 Paris
    assert should_run_paris_time(dt, target_hour=0, target_minute=0, tolerance_minutes=5) is True
    assert should_run_paris_time(dt, target_hour=0, target_minute=0) is False
