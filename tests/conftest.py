"""Shared fixtures: isolated settings, a fake network and a dispatcher."""
import pytest

from app.config import Settings
from app.core.rate_limiting import RateLimiter
from app.integrations.upstream import UpstreamClient
from app.services.cache import ResponseCache
from app.services.dispatcher import DataDispatcher
from fakes import FakeNetwork


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        sports_api_key="test-key",
        gemini_api_key="gemini-test-key",
        cache_dir=tmp_path / "cache",
        reports_dir=tmp_path / "reports",
        log_level="DEBUG",
    )


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def cache(settings) -> ResponseCache:
    return ResponseCache(settings.cache_dir, ttl_seconds=settings.cache_ttl_seconds)


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(max_requests=100, window_seconds=60)


@pytest.fixture
def dispatcher(settings, cache, limiter, network) -> DataDispatcher:
    return DataDispatcher(
        settings=settings,
        cache=cache,
        limiter=limiter,
        upstream=UpstreamClient(transport=network.transport),
    )
