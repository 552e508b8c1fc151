"""Tests for product counts across the hierarchy."""

import pytest

from storefront.catalog.records import CappedCount
from storefront.catalog.service import CatalogService


class TestCappedCount:
    """Tests for CappedCount arithmetic."""

    def test_addition(self) -> None:
        """Sums carry inexactness."""
        total = CappedCount(3) + CappedCount(10, is_exact=False)
        assert total == CappedCount(13, is_exact=False)
        assert total.display == "13+"

    def test_sum_with_start(self) -> None:
        counts = [CappedCount(1), CappedCount(2)]
        assert sum(counts, CappedCount(0)) == CappedCount(3)


class TestCounts:
    """Tests for count operations."""

    @pytest.mark.asyncio
    async def test_subcategory(self, service: CatalogService) -> None:
        assert await service.count_products_by_subcategory("hammers") == CappedCount(3)
        assert await service.count_products_by_subcategory("missing") == CappedCount(0)

    @pytest.mark.asyncio
    async def test_subcollection(self, service: CatalogService) -> None:
        """Counts by subcollection external id."""
        assert await service.count_products_by_subcollection(7) == CappedCount(4)
        assert await service.count_products_by_subcollection(12345) == CappedCount(0)

    @pytest.mark.asyncio
    async def test_category_equals_sum_of_subcategories(self, service: CatalogService) -> None:
        """The category total is the sum over every reachable subcategory."""
        subcategories = await service.get_subcategories_by_category("tools")
        per_subcategory = [
            await service.count_products_by_subcategory(s.slug) for s in subcategories
        ]

        total = await service.count_products_by_category("tools")

        assert total.count == sum(c.count for c in per_subcategory) == 5
        assert total.is_exact

    @pytest.mark.asyncio
    async def test_orphan_products_not_counted(self, service: CatalogService) -> None:
        """Products under orphan subcategories belong to no category."""
        totals = [
            (await service.count_products_by_category(slug)).count
            for slug in ("tools", "paint", "lawn", "lost")
        ]
        assert sum(totals) == 6

    @pytest.mark.asyncio
    async def test_subcollection_product_counts(self, service: CatalogService) -> None:
        """Counts are keyed by stringified subcollection id."""
        counts = await service.get_subcollection_product_counts("tools")
        assert counts == {"7": CappedCount(4), "8": CappedCount(1)}

    @pytest.mark.asyncio
    async def test_subcollection_without_subcategories(self, service: CatalogService) -> None:
        counts = await service.get_subcollection_product_counts("lawn")
        assert counts == {"30": CappedCount(0)}
