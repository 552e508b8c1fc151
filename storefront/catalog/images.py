"""Image prefetch lists for storefront paths.

Given a page path, returns the images that page will render so the
client can warm its cache. The primary entity's image is ``eager``;
children and siblings are ``lazy``.

Supported paths:
    /                                           all category images
    /{collection}                               categories of the collection
    /products/{category}                        category + its subcategories
    /products/{category}/{subcategory}          subcategory + its products
    /products/{category}/{subcategory}/{product}  product + related products
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import unquote

import structlog
from sqlalchemy.exc import SQLAlchemyError

from storefront.catalog.exceptions import CatalogError
from storefront.catalog.service import CatalogService

logger = structlog.get_logger()


class Loading(str, Enum):
    """Browser image loading hint."""

    EAGER = "eager"
    LAZY = "lazy"


@dataclass(frozen=True)
class ImageInfo:
    """Image to prefetch."""

    src: str
    alt: str
    loading: Loading

    def to_dict(self) -> dict[str, Any]:
        return {"src": self.src, "alt": self.alt, "loading": self.loading.value}


def _image(src: str | None, alt: str, loading: Loading) -> list[ImageInfo]:
    return [ImageInfo(src=src, alt=alt, loading=loading)] if src else []


class ImagePrefetcher:
    """Resolve the images rendered by a storefront path.

    Example usage:
        prefetcher = ImagePrefetcher(service)
        images = await prefetcher.images_for_path("products/tools/hammers")
    """

    def __init__(self, service: CatalogService) -> None:
        """Initialize prefetcher.

        Args:
            service: Catalog query service.
        """
        self.service = service

    async def images_for_path(self, path: str) -> list[ImageInfo]:
        """Get images for a page path.

        Storage failures are logged and produce an empty list; prefetching
        is an optimisation and must not break the page.

        Args:
            path: Page path, with or without a leading slash.

        Returns:
            Images in render order.
        """
        segments = [unquote(s) for s in path.split("/") if s]
        try:
            return await self._resolve(segments)
        except (CatalogError, SQLAlchemyError) as e:
            logger.warning(
                "Image prefetch lookup failed",
                path=path,
                error=str(e),
            )
            return []

    async def _resolve(self, segments: list[str]) -> list[ImageInfo]:
        if not segments:
            categories = await self.service.get_all_categories()
            return [
                image
                for category in categories
                for image in _image(category.image_url, category.name, Loading.LAZY)
            ]

        if segments[0] == "products" and len(segments) == 2:
            return await self._category_images(segments[1])

        if segments[0] == "products" and len(segments) == 3:
            return await self._subcategory_images(segments[2])

        if segments[0] == "products" and len(segments) == 4:
            return await self._product_images(segments[2], segments[3])

        if len(segments) == 1:
            return await self._collection_images(segments[0])

        return []

    async def _category_images(self, category_slug: str) -> list[ImageInfo]:
        category = await self.service.get_category_by_slug(category_slug)
        if category is None:
            return []

        images = _image(category.image_url, category.name, Loading.EAGER)
        for subcategory in await self.service.get_subcategories_by_category(category_slug):
            images += _image(subcategory.image_url, subcategory.name, Loading.LAZY)
        return images

    async def _subcategory_images(self, subcategory_slug: str) -> list[ImageInfo]:
        subcategory = await self.service.get_subcategory_by_slug(subcategory_slug)
        if subcategory is None:
            return []

        images = _image(subcategory.image_url, subcategory.name, Loading.EAGER)
        for product in await self.service.get_products_by_subcategory(subcategory_slug):
            images += _image(product.image_url, product.name, Loading.LAZY)
        return images

    async def _product_images(self, subcategory_slug: str, product_slug: str) -> list[ImageInfo]:
        product = await self.service.get_product_by_slug(product_slug)
        if product is None:
            return []

        images = _image(product.image_url, product.name, Loading.EAGER)
        for related in await self.service.get_products_by_subcategory(subcategory_slug):
            if related.slug != product_slug:
                images += _image(related.image_url, related.name, Loading.LAZY)
        return images

    async def _collection_images(self, collection_slug: str) -> list[ImageInfo]:
        page = await self.service.get_collection_page(collection_slug)
        if page is None:
            return []
        return [
            image
            for category in page.categories
            for image in _image(category.image_url, category.name, Loading.LAZY)
        ]
