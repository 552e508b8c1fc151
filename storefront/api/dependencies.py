"""FastAPI dependencies.

The catalog service and settings are built once in the application
lifespan and kept on ``app.state``.
"""

from fastapi import Request

from storefront.catalog.images import ImagePrefetcher
from storefront.catalog.service import CatalogService
from storefront.infrastructure.config import Settings


def get_catalog_service(request: Request) -> CatalogService:
    """Get the catalog service for this application."""
    return request.app.state.catalog_service


def get_image_prefetcher(request: Request) -> ImagePrefetcher:
    """Get an image prefetcher over the catalog service."""
    return ImagePrefetcher(get_catalog_service(request))


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings
