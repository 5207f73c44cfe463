"""Pytest configuration and shared fixtures."""

import pytest

from cheapfinder.models.config import AppConfig
from tests.fixtures.sample_data import FakeClock


CONFIG_ENV_VARS = [
    "CHEAPFINDER_ENV", "CHEAPFINDER_HOST", "PORT", "MOCK_MODE",
    "ETSY_API_KEY", "ETSY_ACCESS_TOKEN", "ETSY_REFRESH_TOKEN", "ETSY_REDIRECT_URI",
    "SHOPIFY_AGG_DOMAIN", "SHOPIFY_AGG_TOKEN", "SHOPIFY_CURATED_DOMAIN", "SHOPIFY_CURATED_TOKEN",
    "CHEAPFINDER_RATE_LIMIT_WINDOW", "CHEAPFINDER_RATE_LIMIT_MAX", "CHEAPFINDER_ADAPTER_TIMEOUT",
    "ANALYTICS_ENABLED", "ANALYTICS_URL", "CHEAPFINDER_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment out of configuration under test."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_config():
    """Mock-mode configuration for testing."""
    return AppConfig(
        env="test",
        mock_mode=True,
        rate_limit_window_seconds=60.0,
        rate_limit_max_requests=30,
        oauth_state_ttl_seconds=600.0,
        adapter_timeout=0.5,
        log_level="WARNING",
    )


@pytest.fixture
def live_config(sample_config):
    """Configuration with live adapters enabled."""
    return sample_config.model_copy(update={"mock_mode": False})


@pytest.fixture
def clock():
    return FakeClock(initial_time=1000.0)
