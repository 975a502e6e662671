"""Pytest configuration and fixtures."""

import pytest
from fakes import FakeClock, FakeProvider

from ninjascope.services.cache import TTLCache
from ninjascope.services.registry import build_services
from ninjascope.utils.config import CacheConfig
from ninjascope.utils.request_context import begin_request, end_request


@pytest.fixture
def request_ctx():
    """An open request context, closed again after the test."""
    ctx = begin_request("test-trace")
    yield ctx
    end_request()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """A fresh cache per test, driven by a manual clock."""
    return TTLCache(sweep_interval=30, clock=clock)


@pytest.fixture
def cache_config():
    return CacheConfig()


@pytest.fixture
def provider():
    return FakeProvider.with_default_markets()


@pytest.fixture
def services(provider, cache, cache_config):
    return build_services(provider, cache, cache_config, network="mainnet")


@pytest.fixture
def test_client(services):
    """Create a test client whose routes use the fake-backed services."""
    from fastapi.testclient import TestClient

    from main import app
    from ninjascope.api.dependencies import get_services

    app.dependency_overrides[get_services] = lambda: services
    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
