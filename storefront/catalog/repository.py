"""SQLAlchemy-backed catalog store.

Implements ``CatalogStore`` over the five catalog tables. Each call opens
its own short-lived session, so independent lookups can run concurrently
under ``asyncio.gather`` without sharing a connection.

Large scans are walked with keyset pagination (``WHERE key > :last
ORDER BY key LIMIT :batch``) up to the caller's row cap, so no single
statement returns more than ``batch_size`` rows.
"""

from collections.abc import AsyncIterator, Sequence
from typing import Any

import structlog
from sqlalchemy import Select, and_, func, select, tuple_
from sqlalchemy.exc import MultipleResultsFound
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.catalog.exceptions import CatalogIntegrityError
from storefront.catalog.models import (
    CategoryModel,
    CollectionModel,
    ProductModel,
    SubcategoryModel,
    SubcollectionModel,
)
from storefront.catalog.records import (
    Category,
    Collection,
    Product,
    Subcategory,
    Subcollection,
)
from storefront.catalog.store import CatalogTable, search_terms

logger = structlog.get_logger()

_TABLE_MODELS: dict[CatalogTable, Any] = {
    CatalogTable.COLLECTIONS: CollectionModel,
    CatalogTable.CATEGORIES: CategoryModel,
    CatalogTable.SUBCOLLECTIONS: SubcollectionModel,
    CatalogTable.SUBCATEGORIES: SubcategoryModel,
    CatalogTable.PRODUCTS: ProductModel,
}


class SqlCatalogStore:
    """Catalog store backed by an async SQLAlchemy session factory.

    Example usage:
        database = Database.from_settings(settings)
        store = SqlCatalogStore(database.session_factory)
        category = await store.get_category_by_slug("tools")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        batch_size: int = 2000,
    ) -> None:
        """Initialize store.

        Args:
            session_factory: Factory for read sessions.
            batch_size: Rows fetched per keyset page.
        """
        self.session_factory = session_factory
        self.batch_size = batch_size

    async def ping(self) -> None:
        """Verify the database answers."""
        async with self.session_factory() as session:
            await session.execute(select(1))

    # ------------------------------------------------------------------
    # Full scans
    # ------------------------------------------------------------------

    async def list_collections(self, limit: int) -> list[Collection]:
        rows = await self._scalars(select(CollectionModel).order_by(CollectionModel.id).limit(limit))
        return [row.to_record() for row in rows]

    async def list_categories(self, limit: int) -> list[Category]:
        rows = await self._scalars(select(CategoryModel).order_by(CategoryModel.id).limit(limit))
        return [row.to_record() for row in rows]

    async def iter_categories(self) -> AsyncIterator[Category]:
        """Yield every category, paging by primary key."""
        async for row in self._walk(CategoryModel):
            yield row.to_record()

    async def iter_subcollections(self) -> AsyncIterator[Subcollection]:
        """Yield every subcollection, paging by primary key."""
        async for row in self._walk(SubcollectionModel):
            yield row.to_record()

    async def iter_subcollections_by_category(
        self, category_slug: str
    ) -> AsyncIterator[Subcollection]:
        async for row in self._walk(
            SubcollectionModel, SubcollectionModel.category_slug == category_slug
        ):
            yield row.to_record()

    async def iter_subcategories_by_subcollection(
        self, subcollection_id: int
    ) -> AsyncIterator[Subcategory]:
        async for row in self._walk(
            SubcategoryModel, SubcategoryModel.subcollection_id == subcollection_id
        ):
            yield row.to_record()

    # ------------------------------------------------------------------
    # Unique lookups
    # ------------------------------------------------------------------

    async def get_collection_by_slug(self, slug: str) -> Collection | None:
        row = await self._unique(
            select(CollectionModel).where(CollectionModel.slug == slug),
            "collection", "slug", slug,
        )
        return row.to_record() if row else None

    async def get_category_by_slug(self, slug: str) -> Category | None:
        row = await self._unique(
            select(CategoryModel).where(CategoryModel.slug == slug),
            "category", "slug", slug,
        )
        return row.to_record() if row else None

    async def get_subcollection_by_external_id(
        self, external_id: int
    ) -> Subcollection | None:
        row = await self._unique(
            select(SubcollectionModel).where(SubcollectionModel.external_id == external_id),
            "subcollection", "external_id", external_id,
        )
        return row.to_record() if row else None

    async def get_subcategory_by_slug(self, slug: str) -> Subcategory | None:
        row = await self._unique(
            select(SubcategoryModel).where(SubcategoryModel.slug == slug),
            "subcategory", "slug", slug,
        )
        return row.to_record() if row else None

    async def get_product_by_slug(self, slug: str) -> Product | None:
        row = await self._unique(
            select(ProductModel).where(ProductModel.slug == slug),
            "product", "slug", slug,
        )
        return row.to_record() if row else None

    # ------------------------------------------------------------------
    # Index scans
    # ------------------------------------------------------------------

    async def categories_by_collection(
        self, collection_id: int, limit: int
    ) -> list[Category]:
        query = (
            select(CategoryModel)
            .where(CategoryModel.collection_id == collection_id)
            .order_by(CategoryModel.id)
            .limit(limit)
        )
        return [row.to_record() for row in await self._scalars(query)]

    async def subcollections_by_category(
        self, category_slug: str, limit: int
    ) -> list[Subcollection]:
        query = (
            select(SubcollectionModel)
            .where(SubcollectionModel.category_slug == category_slug)
            .order_by(SubcollectionModel.id)
            .limit(limit)
        )
        return [row.to_record() for row in await self._scalars(query)]

    async def subcategories_by_subcollection(
        self, subcollection_id: int, limit: int
    ) -> list[Subcategory]:
        query = (
            select(SubcategoryModel)
            .where(SubcategoryModel.subcollection_id == subcollection_id)
            .order_by(SubcategoryModel.id)
            .limit(limit)
        )
        return [row.to_record() for row in await self._scalars(query)]

    async def products_by_subcategory(
        self, subcategory_slug: str, limit: int
    ) -> list[Product]:
        """Fetch up to ``limit`` products ordered by slug, one keyset page at a time."""
        products: list[Product] = []
        last_key: tuple[str, int] | None = None

        while len(products) < limit:
            page_size = min(self.batch_size, limit - len(products))
            conditions = [ProductModel.subcategory_slug == subcategory_slug]
            if last_key is not None:
                conditions.append(tuple_(ProductModel.slug, ProductModel.id) > tuple_(*last_key))

            query = (
                select(ProductModel)
                .where(and_(*conditions))
                .order_by(ProductModel.slug, ProductModel.id)
                .limit(page_size)
            )
            rows = await self._scalars(query)
            products.extend(row.to_record() for row in rows)
            if len(rows) < page_size:
                break
            last_key = (rows[-1].slug, rows[-1].id)

        return products

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    async def count_products_by_subcategory(
        self, subcategory_slug: str, limit: int
    ) -> int:
        inner = (
            select(ProductModel.id)
            .where(ProductModel.subcategory_slug == subcategory_slug)
            .limit(limit)
            .subquery()
        )
        return await self._scalar(select(func.count()).select_from(inner))

    async def count_rows(self, table: CatalogTable, limit: int) -> int:
        model = _TABLE_MODELS[table]
        inner = select(model.id).limit(limit).subquery()
        return await self._scalar(select(func.count()).select_from(inner))

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_products(self, query: str, limit: int) -> list[Product]:
        """Full-text search over product names.

        PostgreSQL uses the ``to_tsvector('english', name)`` GIN index and
        orders by ``ts_rank``; ``websearch_to_tsquery`` requires every term.
        Other dialects likewise require every term to match with ILIKE.
        """
        terms = search_terms(query)
        if not terms:
            return []

        async with self.session_factory() as session:
            if session.bind.dialect.name == "postgresql":
                vector = func.to_tsvector("english", ProductModel.name)
                ts_query = func.websearch_to_tsquery("english", query)
                stmt = (
                    select(ProductModel)
                    .where(vector.op("@@")(ts_query))
                    .order_by(func.ts_rank(vector, ts_query).desc(), ProductModel.id)
                    .limit(limit)
                )
            else:
                stmt = (
                    select(ProductModel)
                    .where(and_(*(ProductModel.name.ilike(f"%{term}%") for term in terms)))
                    .order_by(ProductModel.id)
                    .limit(limit)
                )
            result = await session.execute(stmt)
            return [row.to_record() for row in result.scalars().all()]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _walk(self, model: Any, *conditions: Any) -> AsyncIterator[Any]:
        """Yield every matching row, one keyset page of ``batch_size`` at a time."""
        last_id = 0
        while True:
            query = (
                select(model)
                .where(model.id > last_id, *conditions)
                .order_by(model.id)
                .limit(self.batch_size)
            )
            rows = await self._scalars(query)
            for row in rows:
                yield row
            if len(rows) < self.batch_size:
                return
            last_id = rows[-1].id

    async def _scalars(self, query: Select[Any]) -> Sequence[Any]:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return result.scalars().all()

    async def _scalar(self, query: Select[Any]) -> int:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return int(result.scalar_one())

    async def _unique(
        self,
        query: Select[Any],
        entity_type: str,
        key: str,
        value: Any,
    ) -> Any | None:
        """Run a unique-key lookup.

        Fetches at most two rows so multiplicity is detected without
        reading every duplicate.

        Raises:
            CatalogIntegrityError: If more than one row matches.
        """
        async with self.session_factory() as session:
            result = await session.execute(query.limit(2))
            try:
                return result.scalar_one_or_none()
            except MultipleResultsFound as e:
                logger.error(
                    "Unique catalog lookup matched multiple rows",
                    entity_type=entity_type,
                    key=key,
                    value=value,
                )
                raise CatalogIntegrityError(entity_type, key, value) from e
