"""Pytest configuration and fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from library_api.core.config import Settings, get_settings
from library_api.core.security import TokenIssuer
from library_api.main import create_app

TEST_SECRET = "test-signing-secret-0123456789abcdef"


@pytest.fixture(autouse=True)
def _isolated_settings_cache():
    """Each test resolves settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with a known secret and the default one day expiry."""
    return Settings(
        JWT_SECRET=TEST_SECRET,
        JWT_EXPIRES_IN="1d",
        APP_ENV="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
