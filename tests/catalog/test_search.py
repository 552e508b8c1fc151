"""Tests for product search and ancestor enrichment."""

from unittest.mock import AsyncMock

import pytest

from storefront.catalog.service import CatalogService
from storefront.catalog.store import InMemoryCatalogStore


class TestSearch:
    """Tests for CatalogService.search_products."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    async def test_blank_query_skips_index(self, store: InMemoryCatalogStore, query: str) -> None:
        """Blank queries return nothing without calling the search index."""
        store.search_products = AsyncMock(return_value=[])
        service = CatalogService(store)

        assert await service.search_products(query) == []
        store.search_products.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrench_resolves_category(self, service: CatalogService) -> None:
        """Hits carry the slug of the category above their subcollection."""
        hits = await service.search_products("wrench")

        assert len(hits) == 1
        hit = hits[0]
        assert hit.product.slug == "combination-wrench"
        assert hit.category_slug == "tools"
        assert hit.href == "/products/tools/hand-tools-wrenches/combination-wrench"

    @pytest.mark.asyncio
    async def test_orphan_hits_dropped(self, service: CatalogService) -> None:
        """Products whose ancestors do not resolve are left out."""
        hits = await service.search_products("stray")
        assert hits == []

    @pytest.mark.asyncio
    async def test_ancestors_resolved_once(self, store: InMemoryCatalogStore) -> None:
        """Each distinct subcategory and subcollection is fetched once."""
        store.get_subcategory_by_slug = AsyncMock(wraps=store.get_subcategory_by_slug)
        store.get_subcollection_by_external_id = AsyncMock(
            wraps=store.get_subcollection_by_external_id
        )
        service = CatalogService(store)

        hits = await service.search_products("hammer")

        assert {h.product.slug for h in hits} == {
            "claw-hammer",
            "sledge-hammer",
            "ball-peen-hammer",
        }
        store.get_subcategory_by_slug.assert_awaited_once_with("hammers")
        store.get_subcollection_by_external_id.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_no_matches(self, service: CatalogService) -> None:
        assert await service.search_products("screwdriver") == []

    @pytest.mark.asyncio
    async def test_result_cap(self, store: InMemoryCatalogStore) -> None:
        """The index is asked for at most 50 products."""
        store.search_products = AsyncMock(return_value=[])
        service = CatalogService(store)

        await service.search_products("hammer")

        store.search_products.assert_awaited_once_with("hammer", 50)
