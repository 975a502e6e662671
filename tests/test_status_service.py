"""Tests for the status service."""

from datetime import datetime, timedelta, timezone

from ninjascope.services.status_service import VERSION, StatusService, format_uptime


def test_format_uptime():
    """Test the uptime rendering at each unit boundary."""
    assert format_uptime(0) == "0s"
    assert format_uptime(59_999) == "59s"
    assert format_uptime(61_000) == "1m 1s"
    assert format_uptime(3_723_000) == "1h 2m 3s"
    assert format_uptime(90_061_000) == "1d 1h 1m"


def test_status_reports_cache_statistics(cache):
    cache.set("a", 1, 10)
    cache.lookup("a")
    cache.lookup("b")

    status = StatusService(cache, "testnet").status()

    assert status.status == "healthy"
    assert status.version == VERSION
    assert status.network == "testnet"
    assert status.cache_hits == 1
    assert status.cache_misses == 1
    assert status.cache_keys == 1
    assert status.cache_hit_rate == "50.0%"


def test_status_uptime_from_start_time(cache):
    started = datetime.now(timezone.utc) - timedelta(hours=2)

    status = StatusService(cache, "mainnet", start_time=started).status()

    assert status.uptime_ms >= 2 * 3600 * 1000
    assert status.to_dict()["uptime"]["human"].startswith("2h ")


def test_status_to_dict_shape(cache):
    status = StatusService(cache, "mainnet").status().to_dict()

    assert set(status) == {"status", "version", "network", "uptime", "cache", "started_at"}
    assert set(status["cache"]) == {"hits", "misses", "keys", "hit_rate"}
    assert status["started_at"].endswith("Z")
