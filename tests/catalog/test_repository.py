"""Tests for the SQLAlchemy catalog store.

Sessions are replaced with an in-process fake so the query logic can be
checked without a database.
"""

from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import MultipleResultsFound

from storefront.catalog.exceptions import CatalogIntegrityError
from storefront.catalog.models import (
    CategoryModel,
    ProductModel,
    SubcategoryModel,
    SubcollectionModel,
)
from storefront.catalog.records import Category
from storefront.catalog.repository import SqlCatalogStore
from storefront.catalog.store import CatalogTable


def _rows_result(rows: list[Any]) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


def _scalar_result(value: Any) -> MagicMock:
    result = MagicMock()
    result.scalar_one.return_value = value
    return result


class FakeSession:
    """Session stand-in that replays queued results."""

    def __init__(self, results: list[Any], dialect: str = "sqlite") -> None:
        self.results = results
        self.statements: list[Any] = []
        self.bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect))

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def execute(self, statement: Any) -> Any:
        self.statements.append(statement)
        return self.results.pop(0)


def _product(id: int, slug: str) -> ProductModel:
    return ProductModel(
        id=id,
        slug=slug,
        name=slug.replace("-", " ").title(),
        description="",
        price=Decimal("9.99"),
        subcategory_slug="hammers",
        image_url=None,
    )


def _store(session: FakeSession, batch_size: int = 2000) -> SqlCatalogStore:
    return SqlCatalogStore(lambda: session, batch_size=batch_size)


class TestUniqueLookups:
    """Tests for unique-key lookups."""

    @pytest.mark.asyncio
    async def test_found(self) -> None:
        row = CategoryModel(id=1, slug="tools", name="Tools", collection_id=1, image_url=None)
        result = MagicMock()
        result.scalar_one_or_none.return_value = row
        session = FakeSession([result])

        category = await _store(session).get_category_by_slug("tools")

        assert category == Category(slug="tools", name="Tools", collection_id=1)

    @pytest.mark.asyncio
    async def test_missing(self) -> None:
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session = FakeSession([result])

        assert await _store(session).get_product_by_slug("missing") is None

    @pytest.mark.asyncio
    async def test_multiple_rows_raise(self) -> None:
        """Multiplicity surfaces as a catalog integrity error."""
        result = MagicMock()
        result.scalar_one_or_none.side_effect = MultipleResultsFound("two rows")
        session = FakeSession([result])

        with pytest.raises(CatalogIntegrityError) as exc_info:
            await _store(session).get_subcollection_by_external_id(7)

        assert exc_info.value.details["key"] == "external_id"
        assert isinstance(exc_info.value.__cause__, MultipleResultsFound)


class TestScans:
    """Tests for batched scans."""

    @pytest.mark.asyncio
    async def test_products_paged_by_keyset(self) -> None:
        """Pages are fetched until a short page is returned."""
        session = FakeSession([
            _rows_result([_product(1, "a-hammer"), _product(2, "b-hammer")]),
            _rows_result([_product(3, "c-hammer")]),
        ])

        products = await _store(session, batch_size=2).products_by_subcategory("hammers", 10)

        assert [p.slug for p in products] == ["a-hammer", "b-hammer", "c-hammer"]
        assert len(session.statements) == 2

    @pytest.mark.asyncio
    async def test_products_stop_at_limit(self) -> None:
        """The last page is shrunk so the limit is never exceeded."""
        session = FakeSession([
            _rows_result([_product(1, "a-hammer"), _product(2, "b-hammer")]),
            _rows_result([_product(3, "c-hammer")]),
        ])

        products = await _store(session, batch_size=2).products_by_subcategory("hammers", 3)

        assert len(products) == 3
        assert len(session.statements) == 2
        assert session.statements[1]._limit == 1

    @pytest.mark.asyncio
    async def test_iter_subcollections_pages(self) -> None:
        session = FakeSession([
            _rows_result([
                SubcollectionModel(id=1, external_id=7, name="Hand Tools", category_slug="tools"),
                SubcollectionModel(id=2, external_id=8, name="Power Tools", category_slug="tools"),
            ]),
            _rows_result([]),
        ])

        names = [s.name async for s in _store(session, batch_size=2).iter_subcollections()]

        assert names == ["Hand Tools", "Power Tools"]
        assert len(session.statements) == 2

    @pytest.mark.asyncio
    async def test_iter_subcategories_walks_every_page(self) -> None:
        """Child walks have no row cap; they stop at the first short page."""
        session = FakeSession([
            _rows_result([
                SubcategoryModel(id=i, slug=f"kit-{i}", name=f"Kit {i}", subcollection_id=7)
                for i in (1, 2)
            ]),
            _rows_result([
                SubcategoryModel(id=i, slug=f"kit-{i}", name=f"Kit {i}", subcollection_id=7)
                for i in (3, 4)
            ]),
            _rows_result([
                SubcategoryModel(id=5, slug="kit-5", name="Kit 5", subcollection_id=7)
            ]),
        ])

        store = _store(session, batch_size=2)
        slugs = [s.slug async for s in store.iter_subcategories_by_subcollection(7)]

        assert slugs == ["kit-1", "kit-2", "kit-3", "kit-4", "kit-5"]
        assert len(session.statements) == 3
        assert "subcategories.subcollection_id =" in str(session.statements[0])
        assert all(statement._limit == 2 for statement in session.statements)

    @pytest.mark.asyncio
    async def test_count_rows(self) -> None:
        session = FakeSession([_scalar_result(42)])
        assert await _store(session).count_rows(CatalogTable.PRODUCTS, 100) == 42


class TestSearch:
    """Tests for product name search."""

    @pytest.mark.asyncio
    async def test_blank_terms_skip_query(self) -> None:
        session = FakeSession([])
        assert await _store(session).search_products("  --  ", 50) == []
        assert session.statements == []

    @pytest.mark.asyncio
    async def test_fallback_dialect(self) -> None:
        """Non-PostgreSQL databases match terms with ILIKE."""
        session = FakeSession([_rows_result([_product(1, "claw-hammer")])])

        products = await _store(session).search_products("hammer", 50)

        assert [p.slug for p in products] == ["claw-hammer"]
        assert "lower(products.name) LIKE lower" in str(session.statements[0])

    @pytest.mark.asyncio
    async def test_fallback_requires_every_term(self) -> None:
        """Multi-word queries AND their terms, as websearch_to_tsquery does."""
        session = FakeSession([_rows_result([_product(1, "claw-hammer")])])

        await _store(session).search_products("claw hammer", 50)

        sql = str(session.statements[0])
        assert sql.count("lower(products.name) LIKE lower") == 2
        assert " AND " in sql
        assert " OR " not in sql

    @pytest.mark.asyncio
    async def test_postgresql_full_text(self) -> None:
        session = FakeSession([_rows_result([])], dialect="postgresql")

        await _store(session).search_products("hammer", 50)

        sql = str(session.statements[0])
        assert "to_tsvector" in sql
        assert "websearch_to_tsquery" in sql
