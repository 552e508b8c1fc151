"""Shared fixtures: a small storefront catalog held in memory."""

from typing import Any

import pytest

from storefront.catalog.service import CatalogService
from storefront.catalog.store import InMemoryCatalogStore


@pytest.fixture
def catalog_data() -> dict[str, list[dict[str, Any]]]:
    """Catalog rows keyed by table.

    Includes an orphan category (collection 99), an orphan subcategory
    (subcollection 999) with a product under it, and a subcollection
    whose name has irregular spacing.
    """
    return {
        "collections": [
            {"external_id": 1, "name": "Workshop", "slug": "workshop"},
            {"external_id": 2, "name": "Garden", "slug": "garden"},
        ],
        "categories": [
            {"slug": "tools", "name": "Tools", "collection_id": 1, "image_url": "/img/tools.jpg"},
            {"slug": "paint", "name": "Paint", "collection_id": 1},
            {"slug": "lawn", "name": "Lawn", "collection_id": 2, "image_url": "/img/lawn.jpg"},
            {"slug": "lost", "name": "Lost", "collection_id": 99},
        ],
        "subcollections": [
            {"external_id": 7, "name": "Hand Tools", "category_slug": "tools"},
            {"external_id": 8, "name": "Power Tools", "category_slug": "tools"},
            {"external_id": 20, "name": "  Wall   Paint ", "category_slug": "paint"},
            {"external_id": 30, "name": "Mowers", "category_slug": "lawn"},
        ],
        "subcategories": [
            {"slug": "hammers", "name": "Hammers", "subcollection_id": 7, "image_url": "/img/hammers.jpg"},
            {"slug": "hand-tools-wrenches", "name": "Wrenches", "subcollection_id": 7},
            {"slug": "drills", "name": "Drills", "subcollection_id": 8},
            {"slug": "emulsion", "name": "Emulsion", "subcollection_id": 20},
            {"slug": "orphan-sub", "name": "Orphaned Bits", "subcollection_id": 999},
        ],
        "products": [
            {
                "slug": "claw-hammer",
                "name": "Claw Hammer",
                "description": "16oz claw hammer",
                "price": "19.99",
                "subcategory_slug": "hammers",
                "image_url": "/img/claw-hammer.jpg",
            },
            {
                "slug": "sledge-hammer",
                "name": "Sledge Hammer",
                "description": "4lb sledge",
                "price": "34.50",
                "subcategory_slug": "hammers",
            },
            {
                "slug": "ball-peen-hammer",
                "name": "Ball Peen Hammer",
                "description": "Machinist hammer",
                "price": "15.00",
                "subcategory_slug": "hammers",
                "image_url": "/img/ball-peen-hammer.jpg",
            },
            {
                "slug": "combination-wrench",
                "name": "Combination Wrench",
                "description": "13mm",
                "price": "8.25",
                "subcategory_slug": "hand-tools-wrenches",
                "image_url": "/img/combination-wrench.jpg",
            },
            {
                "slug": "cordless-drill",
                "name": "Cordless Drill",
                "description": "18V",
                "price": "89.00",
                "subcategory_slug": "drills",
            },
            {
                "slug": "matt-white",
                "name": "Matt White Emulsion",
                "description": "5L",
                "price": "24.00",
                "subcategory_slug": "emulsion",
            },
            {
                "slug": "stray-wrench",
                "name": "Stray Wrench",
                "description": "Belongs nowhere",
                "price": "1.00",
                "subcategory_slug": "orphan-sub",
            },
        ],
    }


@pytest.fixture
def store(catalog_data: dict[str, list[dict[str, Any]]]) -> InMemoryCatalogStore:
    """In-memory store over the sample catalog."""
    return InMemoryCatalogStore.from_dict(catalog_data)


@pytest.fixture
def service(store: InMemoryCatalogStore) -> CatalogService:
    """Catalog service over the sample store."""
    return CatalogService(store)
