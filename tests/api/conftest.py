"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.service import CatalogService
from storefront.infrastructure.config import Settings
from storefront.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(search_cache_max_age=600, prefetch_cache_max_age=3600)


@pytest.fixture
def client(service: CatalogService, settings: Settings) -> TestClient:
    """Create test client over the in-memory sample catalog."""
    return TestClient(create_app(settings=settings, service=service))
