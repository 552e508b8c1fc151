"""Catalog query layer.

Read-only operations over the catalog hierarchy: lookups, fan-out
traversals, capped product counts, text search with ancestor enrichment
and route enumeration. Every operation is independent and side-effect
free, so callers may run any number of them concurrently against one
service instance.

Row caps are public ceilings. When a scan reaches its cap the result is
truncated silently; counts carry ``is_exact=False`` so callers can render
"10000+" instead of a misleading exact figure.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TypeVar

import structlog

from storefront.catalog.deadline import Deadline
from storefront.catalog.exceptions import CatalogIntegrityError
from storefront.catalog.records import (
    ZERO_COUNT,
    CappedCount,
    Category,
    CategoryPage,
    Collection,
    CollectionPage,
    Product,
    SearchHit,
    Subcategory,
    Subcollection,
    SubcollectionSection,
)
from storefront.catalog.slugs import derive_slug
from storefront.catalog.store import CatalogStore, CatalogTable
from storefront.infrastructure.config import Settings

logger = structlog.get_logger()

T = TypeVar("T")
K = TypeVar("K")

# Full listings (collections, categories)
LISTING_CAP = 8000
# Subcategories returned for one category across all its subcollections
SUBCATEGORIES_BY_CATEGORY_CAP = 8000
# Products returned for one subcategory
PRODUCTS_BY_SUBCATEGORY_CAP = 30000
# Products counted per subcategory; no subcategory exceeds this in practice
PRODUCT_COUNT_CAP = 10000
SUBCOLLECTIONS_PER_CATEGORY_CAP = 1000
SUBCATEGORIES_PER_SUBCOLLECTION_CAP = 1000
CATEGORIES_PER_COLLECTION_CAP = 1000
SEARCH_RESULTS_CAP = 50

DATA_COUNT_CAPS: dict[CatalogTable, int] = {
    CatalogTable.COLLECTIONS: 100,
    CatalogTable.CATEGORIES: 1000,
    CatalogTable.SUBCOLLECTIONS: 6000,
    CatalogTable.SUBCATEGORIES: 900,
    CatalogTable.PRODUCTS: 25000,
}


def name_order(record: Collection | Category | Subcategory) -> tuple[str, str, str]:
    """Sort key: name case-insensitively, then exact name, then slug."""
    return (record.name.casefold(), record.name, record.slug)


def subcollection_order(record: Subcollection) -> tuple[str, str, int]:
    """Sort key for subcollections, which have no stored slug."""
    return (record.name.casefold(), record.name, record.external_id)


def slug_order(product: Product) -> tuple[str, str]:
    """Sort key for products."""
    return (product.slug.casefold(), product.slug)


class CatalogService:
    """Service for catalog read operations.

    The store is injected; the service holds no mutable state besides
    its configuration.

    Example usage:
        store = SqlCatalogStore(database.session_factory)
        service = CatalogService(store, query_timeout_seconds=5)

        category, subcategories = await asyncio.gather(
            service.get_category_by_slug("tools"),
            service.get_subcategories_by_category("tools"),
        )
    """

    def __init__(
        self,
        store: CatalogStore,
        query_timeout_seconds: float | None = 10.0,
        routes_timeout_seconds: float | None = None,
        max_concurrency: int = 8,
    ) -> None:
        """Initialize service.

        Args:
            store: Catalog storage.
            query_timeout_seconds: Default budget for request-path operations.
            routes_timeout_seconds: Default budget for route enumeration.
            max_concurrency: Upper bound on concurrently dispatched sub-queries.
        """
        self.store = store
        self.query_timeout_seconds = query_timeout_seconds
        self.routes_timeout_seconds = routes_timeout_seconds
        self.max_concurrency = max_concurrency

    @classmethod
    def from_settings(cls, store: CatalogStore, settings: Settings) -> "CatalogService":
        """Create a service configured from application settings."""
        return cls(
            store,
            query_timeout_seconds=settings.catalog_query_timeout_seconds,
            routes_timeout_seconds=settings.catalog_routes_timeout_seconds,
            max_concurrency=settings.catalog_max_concurrency,
        )

    # ========================================================================
    # Hierarchy lookups
    # ========================================================================

    async def get_all_collections(self, deadline: Deadline | None = None) -> list[Collection]:
        """Get every collection ordered by name."""
        deadline = self._deadline("get_all_collections", deadline)
        collections = await deadline.run(self.store.list_collections(LISTING_CAP))
        return sorted(collections, key=name_order)

    async def get_all_categories(self, deadline: Deadline | None = None) -> list[Category]:
        """Get every category ordered by name."""
        deadline = self._deadline("get_all_categories", deadline)
        categories = await deadline.run(self.store.list_categories(LISTING_CAP))
        return sorted(categories, key=name_order)

    async def get_collection_by_slug(
        self, slug: str, deadline: Deadline | None = None
    ) -> Collection | None:
        """Get a collection by slug.

        Raises:
            CatalogIntegrityError: If the slug is not unique.
        """
        deadline = self._deadline("get_collection_by_slug", deadline)
        return await deadline.run(self.store.get_collection_by_slug(slug))

    async def get_category_by_slug(
        self, slug: str, deadline: Deadline | None = None
    ) -> Category | None:
        """Get a category by slug.

        Raises:
            CatalogIntegrityError: If the slug is not unique.
        """
        deadline = self._deadline("get_category_by_slug", deadline)
        return await deadline.run(self.store.get_category_by_slug(slug))

    async def get_subcategory_by_slug(
        self, slug: str, deadline: Deadline | None = None
    ) -> Subcategory | None:
        """Get a subcategory by slug.

        Raises:
            CatalogIntegrityError: If the slug is not unique.
        """
        deadline = self._deadline("get_subcategory_by_slug", deadline)
        return await deadline.run(self.store.get_subcategory_by_slug(slug))

    async def get_product_by_slug(
        self, slug: str, deadline: Deadline | None = None
    ) -> Product | None:
        """Get a product by slug.

        Raises:
            CatalogIntegrityError: If the slug is not unique.
        """
        deadline = self._deadline("get_product_by_slug", deadline)
        return await deadline.run(self.store.get_product_by_slug(slug))

    async def get_categories_for_collection(
        self, collection_id: int, deadline: Deadline | None = None
    ) -> list[Category]:
        """Get categories filed under a collection.

        Order is whatever the index scan yields and is NOT guaranteed;
        callers that display the list must sort it.
        """
        deadline = self._deadline("get_categories_for_collection", deadline)
        return await deadline.run(
            self.store.categories_by_collection(collection_id, CATEGORIES_PER_COLLECTION_CAP)
        )

    async def get_subcollections_by_category(
        self, category_slug: str, deadline: Deadline | None = None
    ) -> list[Subcollection]:
        """Get subcollections of a category ordered by name."""
        deadline = self._deadline("get_subcollections_by_category", deadline)
        subcollections = await deadline.run(
            self.store.subcollections_by_category(category_slug, SUBCOLLECTIONS_PER_CATEGORY_CAP)
        )
        return sorted(subcollections, key=subcollection_order)

    async def get_subcollection_by_slug(
        self,
        slug: str,
        category_slug: str | None = None,
        deadline: Deadline | None = None,
    ) -> Subcollection | None:
        """Find a subcollection by its derived slug.

        Subcollections have no stored slug, so this tests ``derive_slug``
        against each candidate row. With ``category_slug`` only that
        category's subcollections are scanned; without it the whole table
        is walked.

        Args:
            slug: Derived slug, e.g. ``"hand-tools"``.
            category_slug: Optional parent category to narrow the scan.
            deadline: Optional deadline.

        Returns:
            Matching subcollection or None.

        Raises:
            CatalogIntegrityError: If several subcollections derive to ``slug``.
        """
        deadline = self._deadline("get_subcollection_by_slug", deadline)

        if category_slug is not None:
            candidates = await deadline.run(
                self.store.subcollections_by_category(
                    category_slug, SUBCOLLECTIONS_PER_CATEGORY_CAP
                )
            )
            matches = [s for s in candidates if derive_slug(s.name) == slug]
        else:
            matches = []
            async for subcollection in self.store.iter_subcollections():
                deadline.check()
                if derive_slug(subcollection.name) == slug:
                    matches.append(subcollection)

        if len(matches) > 1:
            raise CatalogIntegrityError("subcollection", "derived slug", slug)
        return matches[0] if matches else None

    async def get_subcategories_by_subcollection(
        self,
        subcollection_slug: str,
        category_slug: str | None = None,
        deadline: Deadline | None = None,
    ) -> list[Subcategory]:
        """Get subcategories of the subcollection with the given derived slug.

        Returns an empty list when no subcollection matches.
        """
        deadline = self._deadline("get_subcategories_by_subcollection", deadline)
        subcollection = await self.get_subcollection_by_slug(
            subcollection_slug, category_slug=category_slug, deadline=deadline
        )
        if subcollection is None:
            return []

        subcategories = await deadline.run(
            self.store.subcategories_by_subcollection(
                subcollection.external_id, SUBCATEGORIES_PER_SUBCOLLECTION_CAP
            )
        )
        return sorted(subcategories, key=name_order)

    async def get_subcategories_by_category(
        self, category_slug: str, deadline: Deadline | None = None
    ) -> list[Subcategory]:
        """Get subcategories across all subcollections of a category.

        The total is capped at ``SUBCATEGORIES_BY_CATEGORY_CAP``. Each
        subcollection first receives an equal share of the cap; capacity
        left over by small subcollections is then handed, in name order,
        to subcollections that filled their share. A single large
        subcollection therefore cannot crowd out the rest.

        Subcategories whose subcollection is not under this category are
        never reached, so orphans are excluded.
        """
        deadline = self._deadline("get_subcategories_by_category", deadline)
        subcollections = await self.get_subcollections_by_category(
            category_slug, deadline=deadline
        )
        if not subcollections:
            return []

        cap = SUBCATEGORIES_BY_CATEGORY_CAP
        share = min(SUBCATEGORIES_PER_SUBCOLLECTION_CAP, max(1, cap // len(subcollections)))

        fetched = await self._gather(
            (
                self.store.subcategories_by_subcollection(s.external_id, share)
                for s in subcollections
            ),
            deadline,
        )
        remaining = cap - sum(len(rows) for rows in fetched)

        for index, rows in enumerate(fetched):
            if remaining <= 0:
                break
            if len(rows) < share or share >= SUBCATEGORIES_PER_SUBCOLLECTION_CAP:
                continue
            limit = min(SUBCATEGORIES_PER_SUBCOLLECTION_CAP, len(rows) + remaining)
            deadline.check()
            topped_up = await deadline.run(
                self.store.subcategories_by_subcollection(subcollections[index].external_id, limit)
            )
            remaining -= len(topped_up) - len(rows)
            fetched[index] = topped_up

        subcategories = [row for rows in fetched for row in rows]
        if len(subcategories) >= cap:
            logger.debug(
                "Subcategory listing reached cap",
                category_slug=category_slug,
                cap=cap,
            )
        return sorted(subcategories[:cap], key=name_order)

    async def get_products_by_subcategory(
        self, subcategory_slug: str, deadline: Deadline | None = None
    ) -> list[Product]:
        """Get up to ``PRODUCTS_BY_SUBCATEGORY_CAP`` products ordered by slug."""
        deadline = self._deadline("get_products_by_subcategory", deadline)
        products = await deadline.run(
            self.store.products_by_subcategory(subcategory_slug, PRODUCTS_BY_SUBCATEGORY_CAP)
        )
        return sorted(products, key=slug_order)

    async def get_related_products(
        self,
        product_slug: str,
        subcategory_slug: str,
        deadline: Deadline | None = None,
    ) -> list[Product]:
        """Get the other products of a subcategory.

        The list starts right after ``product_slug`` and wraps around, so
        neighbouring products come first. If the product is not in the
        subcategory every product is returned.
        """
        products = await self.get_products_by_subcategory(subcategory_slug, deadline=deadline)
        index = next((i for i, p in enumerate(products) if p.slug == product_slug), None)
        if index is None:
            return products
        return products[index + 1:] + products[:index]

    # ========================================================================
    # Counts
    # ========================================================================

    async def count_products_by_subcategory(
        self, subcategory_slug: str, deadline: Deadline | None = None
    ) -> CappedCount:
        """Count products of a subcategory, capped at ``PRODUCT_COUNT_CAP``."""
        deadline = self._deadline("count_products_by_subcategory", deadline)
        return await deadline.run(self._count_subcategory(subcategory_slug))

    async def count_products_by_subcollection(
        self, subcollection_id: int, deadline: Deadline | None = None
    ) -> CappedCount:
        """Count products under a subcollection (by external id)."""
        deadline = self._deadline("count_products_by_subcollection", deadline)
        subcategories, exact = await self._capped(
            self.store.subcategories_by_subcollection,
            subcollection_id,
            SUBCATEGORIES_PER_SUBCOLLECTION_CAP,
            deadline,
        )
        counts = await self._gather(
            (self._count_subcategory(s.slug) for s in subcategories), deadline
        )
        return sum(counts, CappedCount(count=0, is_exact=exact))

    async def count_products_by_category(
        self, category_slug: str, deadline: Deadline | None = None
    ) -> CappedCount:
        """Count products under a category.

        Walks subcollections, then their subcategories, then counts each
        subcategory. Equal to the sum of ``count_products_by_subcategory``
        over every subcategory reachable from the category while all
        counts stay under their caps.
        """
        deadline = self._deadline("count_products_by_category", deadline)
        subcollections, exact = await self._capped(
            self.store.subcollections_by_category,
            category_slug,
            SUBCOLLECTIONS_PER_CATEGORY_CAP,
            deadline,
        )
        per_subcollection = await self._count_subcollections(subcollections, deadline)
        return sum(per_subcollection.values(), CappedCount(count=0, is_exact=exact))

    async def get_subcollection_product_counts(
        self, category_slug: str, deadline: Deadline | None = None
    ) -> dict[str, CappedCount]:
        """Map each subcollection of a category to its product count.

        Keys are the subcollection external ids as strings.
        """
        deadline = self._deadline("get_subcollection_product_counts", deadline)
        subcollections = await deadline.run(
            self.store.subcollections_by_category(category_slug, SUBCOLLECTIONS_PER_CATEGORY_CAP)
        )
        counts = await self._count_subcollections(subcollections, deadline)
        return {str(external_id): count for external_id, count in counts.items()}

    async def get_data_counts(
        self, deadline: Deadline | None = None
    ) -> dict[CatalogTable, CappedCount]:
        """Count rows per table under fixed caps."""
        deadline = self._deadline("get_data_counts", deadline)
        tables = list(DATA_COUNT_CAPS)
        raw = await self._gather(
            (self.store.count_rows(table, DATA_COUNT_CAPS[table] + 1) for table in tables),
            deadline,
        )
        return {
            table: CappedCount(
                count=min(n, DATA_COUNT_CAPS[table]),
                is_exact=n <= DATA_COUNT_CAPS[table],
            )
            for table, n in zip(tables, raw)
        }

    # ========================================================================
    # Search
    # ========================================================================

    async def search_products(
        self, query: str, deadline: Deadline | None = None
    ) -> list[SearchHit]:
        """Search products by name and attach each hit's category slug.

        Blank queries return ``[]`` without touching the search index.
        Subcategories and subcollections are resolved once per distinct
        key, concurrently; hits whose ancestors do not resolve are dropped.

        Args:
            query: Free-text query.
            deadline: Optional deadline.

        Returns:
            At most ``SEARCH_RESULTS_CAP`` hits in index relevance order.
        """
        if not query or not query.strip():
            return []

        deadline = self._deadline("search_products", deadline)
        products = await deadline.run(self.store.search_products(query, SEARCH_RESULTS_CAP))
        if not products:
            return []

        subcategory_slugs = list(dict.fromkeys(p.subcategory_slug for p in products))
        subcategories = await self._gather(
            (self.store.get_subcategory_by_slug(slug) for slug in subcategory_slugs),
            deadline,
        )
        subcategory_map = {s.slug: s for s in subcategories if s is not None}

        subcollection_ids = list(
            dict.fromkeys(s.subcollection_id for s in subcategory_map.values())
        )
        subcollections = await self._gather(
            (self.store.get_subcollection_by_external_id(i) for i in subcollection_ids),
            deadline,
        )
        subcollection_map = {s.external_id: s for s in subcollections if s is not None}

        hits: list[SearchHit] = []
        for product in products:
            subcategory = subcategory_map.get(product.subcategory_slug)
            subcollection = (
                subcollection_map.get(subcategory.subcollection_id) if subcategory else None
            )
            if subcollection is None:
                logger.debug(
                    "Dropping orphan search hit",
                    product_slug=product.slug,
                    subcategory_slug=product.subcategory_slug,
                )
                continue
            hits.append(SearchHit(product=product, category_slug=subcollection.category_slug))

        return hits

    # ========================================================================
    # Pages
    # ========================================================================

    async def get_collection_page(
        self, slug: str, deadline: Deadline | None = None
    ) -> CollectionPage | None:
        """Get a collection with its categories sorted by name."""
        deadline = self._deadline("get_collection_page", deadline)
        collection = await self.get_collection_by_slug(slug, deadline=deadline)
        if collection is None:
            return None
        categories = await self.get_categories_for_collection(
            collection.external_id, deadline=deadline
        )
        return CollectionPage(
            collection=collection,
            categories=sorted(categories, key=name_order),
        )

    async def get_catalog_overview(
        self, deadline: Deadline | None = None
    ) -> list[CollectionPage]:
        """Get every collection with its categories, for the home page.

        Categories whose collection does not exist are left out.
        """
        deadline = self._deadline("get_catalog_overview", deadline)
        collections, categories = await asyncio.gather(
            self.get_all_collections(deadline=deadline),
            self.get_all_categories(deadline=deadline),
        )

        by_collection: dict[int, list[Category]] = {}
        for category in categories:
            by_collection.setdefault(category.collection_id, []).append(category)

        return [
            CollectionPage(
                collection=collection,
                categories=by_collection.get(collection.external_id, []),
            )
            for collection in collections
        ]

    async def get_category_page(
        self, slug: str, deadline: Deadline | None = None
    ) -> CategoryPage | None:
        """Get a category with its subcollections, subcategories and counts."""
        deadline = self._deadline("get_category_page", deadline)
        category, (subcollections, exact), subcategories = await asyncio.gather(
            self.get_category_by_slug(slug, deadline=deadline),
            self._capped(
                self.store.subcollections_by_category,
                slug,
                SUBCOLLECTIONS_PER_CATEGORY_CAP,
                deadline,
            ),
            self.get_subcategories_by_category(slug, deadline=deadline),
        )
        if category is None:
            return None

        subcollections = sorted(subcollections, key=subcollection_order)
        counts = await self._count_subcollections(subcollections, deadline)

        grouped: dict[int, list[Subcategory]] = {}
        for subcategory in subcategories:
            grouped.setdefault(subcategory.subcollection_id, []).append(subcategory)

        sections = [
            SubcollectionSection(
                subcollection=subcollection,
                subcategories=grouped.get(subcollection.external_id, []),
                product_count=counts.get(subcollection.external_id, ZERO_COUNT),
            )
            for subcollection in subcollections
        ]
        total = sum(counts.values(), CappedCount(count=0, is_exact=exact))
        return CategoryPage(category=category, sections=sections, product_count=total)

    # ========================================================================
    # Routes
    # ========================================================================

    async def get_all_routes(self, deadline: Deadline | None = None) -> list[str]:
        """Enumerate every canonical catalog path, depth first.

        Produces ``/``, then per category ``/{category}``, its
        subcollections, their subcategories and their products. Categories,
        subcollections and subcategories are walked completely; only the
        per-subcategory product listing is capped, as on product pages.
        Output grows with the catalog, so this is meant for offline static
        generation, not the request path.
        """
        if deadline is None:
            deadline = Deadline.start("get_all_routes", self.routes_timeout_seconds)

        routes = ["/"]
        categories = await self._drain(self.store.iter_categories(), deadline)

        for category in sorted(categories, key=name_order):
            routes.append(f"/{category.slug}")
            subcollections = await self._drain(
                self.store.iter_subcollections_by_category(category.slug), deadline
            )
            subcollections.sort(key=subcollection_order)

            subcategory_lists = await self._gather(
                (
                    self._drain(
                        self.store.iter_subcategories_by_subcollection(s.external_id),
                        deadline,
                    )
                    for s in subcollections
                ),
                deadline,
            )
            subcategory_lists = [sorted(rows, key=name_order) for rows in subcategory_lists]

            product_lists = await self._gather(
                (
                    self.store.products_by_subcategory(s.slug, PRODUCTS_BY_SUBCATEGORY_CAP)
                    for rows in subcategory_lists
                    for s in rows
                ),
                deadline,
            )
            products_iter = iter(product_lists)

            for subcollection, subcategories in zip(subcollections, subcategory_lists):
                base = f"/{category.slug}/{derive_slug(subcollection.name)}"
                routes.append(base)
                for subcategory in subcategories:
                    routes.append(f"{base}/{subcategory.slug}")
                    for product in sorted(next(products_iter), key=slug_order):
                        routes.append(f"{base}/{subcategory.slug}/{product.slug}")

        logger.info("Enumerated catalog routes", route_count=len(routes))
        return routes

    # ========================================================================
    # Helpers
    # ========================================================================

    def _deadline(self, operation: str, deadline: Deadline | None) -> Deadline:
        if deadline is not None:
            return deadline
        return Deadline.start(operation, self.query_timeout_seconds)

    async def _gather(self, awaitables: Iterable[Awaitable[T]], deadline: Deadline) -> list[T]:
        """Run independent sub-queries concurrently, bounded by ``max_concurrency``."""
        deadline.check()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(awaitable: Awaitable[T]) -> T:
            async with semaphore:
                return await awaitable

        return await deadline.run(asyncio.gather(*(bounded(a) for a in awaitables)))

    async def _drain(self, rows: AsyncIterator[T], deadline: Deadline) -> list[T]:
        """Collect a complete store walk within the deadline."""

        async def collect() -> list[T]:
            return [row async for row in rows]

        return await deadline.run(collect())

    async def _capped(
        self,
        scan: Callable[[K, int], Awaitable[list[T]]],
        key: K,
        cap: int,
        deadline: Deadline,
    ) -> tuple[list[T], bool]:
        """Run a scan with one extra row to tell whether the cap truncated it."""
        rows = await deadline.run(scan(key, cap + 1))
        if len(rows) > cap:
            logger.debug("Catalog scan truncated", scan=scan.__name__, key=key, cap=cap)
            return rows[:cap], False
        return rows, True

    async def _count_subcategory(self, subcategory_slug: str) -> CappedCount:
        n = await self.store.count_products_by_subcategory(
            subcategory_slug, PRODUCT_COUNT_CAP + 1
        )
        return CappedCount(count=min(n, PRODUCT_COUNT_CAP), is_exact=n <= PRODUCT_COUNT_CAP)

    async def _count_subcollections(
        self, subcollections: list[Subcollection], deadline: Deadline
    ) -> dict[int, CappedCount]:
        """Count products for several subcollections with two flat fan-outs."""
        listings = await self._gather(
            (
                self.store.subcategories_by_subcollection(
                    s.external_id, SUBCATEGORIES_PER_SUBCOLLECTION_CAP + 1
                )
                for s in subcollections
            ),
            deadline,
        )

        owners: list[int] = []
        slugs: list[str] = []
        counts: dict[int, CappedCount] = {}
        for subcollection, rows in zip(subcollections, listings):
            exact = len(rows) <= SUBCATEGORIES_PER_SUBCOLLECTION_CAP
            counts[subcollection.external_id] = CappedCount(count=0, is_exact=exact)
            for row in rows[:SUBCATEGORIES_PER_SUBCOLLECTION_CAP]:
                owners.append(subcollection.external_id)
                slugs.append(row.slug)

        subcategory_counts = await self._gather(
            (self._count_subcategory(slug) for slug in slugs), deadline
        )
        for owner, count in zip(owners, subcategory_counts):
            counts[owner] = counts[owner] + count
        return counts
