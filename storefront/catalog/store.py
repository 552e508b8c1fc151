"""Catalog storage contract and in-memory implementation.

The query layer only talks to a ``CatalogStore``. Every scan takes an
explicit row limit; unique lookups raise ``CatalogIntegrityError`` on
multiplicity instead of picking an arbitrary row.

``InMemoryCatalogStore`` backs the test suite and fixture-driven local
runs (``CATALOG_FIXTURE_PATH``). ``SqlCatalogStore`` in
``storefront.catalog.repository`` is the production implementation.
"""

import json
import re
from collections import defaultdict
from collections.abc import AsyncIterator, Callable, Hashable, Iterable
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, TypeVar

from storefront.catalog.exceptions import CatalogIntegrityError
from storefront.catalog.records import (
    Category,
    Collection,
    Product,
    Subcategory,
    Subcollection,
)

R = TypeVar("R")


class CatalogTable(str, Enum):
    """Catalog record types."""

    COLLECTIONS = "collections"
    CATEGORIES = "categories"
    SUBCOLLECTIONS = "subcollections"
    SUBCATEGORIES = "subcategories"
    PRODUCTS = "products"


class CatalogStore(Protocol):
    """Read-only access contract for catalog storage."""

    async def ping(self) -> None: ...

    async def list_collections(self, limit: int) -> list[Collection]: ...

    async def list_categories(self, limit: int) -> list[Category]: ...

    def iter_categories(self) -> AsyncIterator[Category]: ...

    def iter_subcollections(self) -> AsyncIterator[Subcollection]: ...

    def iter_subcollections_by_category(
        self, category_slug: str
    ) -> AsyncIterator[Subcollection]: ...

    def iter_subcategories_by_subcollection(
        self, subcollection_id: int
    ) -> AsyncIterator[Subcategory]: ...

    async def get_collection_by_slug(self, slug: str) -> Collection | None: ...

    async def get_category_by_slug(self, slug: str) -> Category | None: ...

    async def get_subcollection_by_external_id(
        self, external_id: int
    ) -> Subcollection | None: ...

    async def get_subcategory_by_slug(self, slug: str) -> Subcategory | None: ...

    async def get_product_by_slug(self, slug: str) -> Product | None: ...

    async def categories_by_collection(
        self, collection_id: int, limit: int
    ) -> list[Category]: ...

    async def subcollections_by_category(
        self, category_slug: str, limit: int
    ) -> list[Subcollection]: ...

    async def subcategories_by_subcollection(
        self, subcollection_id: int, limit: int
    ) -> list[Subcategory]: ...

    async def products_by_subcategory(
        self, subcategory_slug: str, limit: int
    ) -> list[Product]: ...

    async def count_products_by_subcategory(
        self, subcategory_slug: str, limit: int
    ) -> int: ...

    async def count_rows(self, table: CatalogTable, limit: int) -> int: ...

    async def search_products(self, query: str, limit: int) -> list[Product]: ...


_WORD = re.compile(r"\w+")


def search_terms(query: str) -> list[str]:
    """Split a free-text query into lowercase word terms."""
    return _WORD.findall(query.lower())


def _unique(rows: list[R], entity_type: str, key: str, value: Any) -> R | None:
    if len(rows) > 1:
        raise CatalogIntegrityError(entity_type, key, value)
    return rows[0] if rows else None


def _group(rows: Iterable[R], key: Callable[[R], Hashable]) -> dict[Hashable, list[R]]:
    grouped: dict[Hashable, list[R]] = defaultdict(list)
    for row in rows:
        grouped[key(row)].append(row)
    return dict(grouped)


class InMemoryCatalogStore:
    """In-memory catalog store.

    Builds one dict per index at construction; every lookup is a dict hit
    followed by a slice, mirroring the cost model of the indexed store.

    Example usage:
        store = InMemoryCatalogStore(
            categories=[Category(slug="tools", name="Tools", collection_id=1)],
        )
        service = CatalogService(store)
    """

    def __init__(
        self,
        collections: Iterable[Collection] = (),
        categories: Iterable[Category] = (),
        subcollections: Iterable[Subcollection] = (),
        subcategories: Iterable[Subcategory] = (),
        products: Iterable[Product] = (),
    ) -> None:
        """Initialize store and build indexes.

        Args:
            collections: Collection rows.
            categories: Category rows.
            subcollections: Subcollection rows.
            subcategories: Subcategory rows.
            products: Product rows.
        """
        self._collections = list(collections)
        self._categories = list(categories)
        self._subcollections = list(subcollections)
        self._subcategories = list(subcategories)
        self._products = list(products)

        self._collections_by_slug = _group(self._collections, lambda c: c.slug)
        self._categories_by_slug = _group(self._categories, lambda c: c.slug)
        self._categories_by_collection = _group(self._categories, lambda c: c.collection_id)
        self._subcollections_by_id = _group(self._subcollections, lambda s: s.external_id)
        self._subcollections_by_category = _group(
            self._subcollections, lambda s: s.category_slug
        )
        self._subcategories_by_slug = _group(self._subcategories, lambda s: s.slug)
        self._subcategories_by_subcollection = _group(
            self._subcategories, lambda s: s.subcollection_id
        )
        self._products_by_slug = _group(self._products, lambda p: p.slug)
        self._products_by_subcategory = {
            slug: sorted(rows, key=lambda p: p.slug)
            for slug, rows in _group(self._products, lambda p: p.subcategory_slug).items()
        }

    @classmethod
    def from_dict(cls, data: dict[str, list[dict[str, Any]]]) -> "InMemoryCatalogStore":
        """Build a store from plain dictionaries.

        Args:
            data: Mapping of table name to list of row dicts.

        Returns:
            Populated store.
        """
        return cls(
            collections=[
                Collection(
                    external_id=int(row["external_id"]),
                    name=row["name"],
                    slug=row["slug"],
                )
                for row in data.get("collections", [])
            ],
            categories=[
                Category(
                    slug=row["slug"],
                    name=row["name"],
                    collection_id=int(row["collection_id"]),
                    image_url=row.get("image_url"),
                )
                for row in data.get("categories", [])
            ],
            subcollections=[
                Subcollection(
                    external_id=int(row["external_id"]),
                    name=row["name"],
                    category_slug=row["category_slug"],
                )
                for row in data.get("subcollections", [])
            ],
            subcategories=[
                Subcategory(
                    slug=row["slug"],
                    name=row["name"],
                    subcollection_id=int(row["subcollection_id"]),
                    image_url=row.get("image_url"),
                )
                for row in data.get("subcategories", [])
            ],
            products=[
                Product(
                    slug=row["slug"],
                    name=row["name"],
                    description=row.get("description", ""),
                    price=Decimal(str(row["price"])),
                    subcategory_slug=row["subcategory_slug"],
                    image_url=row.get("image_url"),
                )
                for row in data.get("products", [])
            ],
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryCatalogStore":
        """Load a store from a JSON fixture file.

        Args:
            path: Path to a JSON object keyed by table name.

        Returns:
            Populated store.
        """
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    async def ping(self) -> None:
        """In-memory store is always reachable."""

    async def list_collections(self, limit: int) -> list[Collection]:
        return self._collections[:limit]

    async def list_categories(self, limit: int) -> list[Category]:
        return self._categories[:limit]

    async def iter_categories(self) -> AsyncIterator[Category]:
        for category in self._categories:
            yield category

    async def iter_subcollections(self) -> AsyncIterator[Subcollection]:
        for subcollection in self._subcollections:
            yield subcollection

    async def iter_subcollections_by_category(
        self, category_slug: str
    ) -> AsyncIterator[Subcollection]:
        for subcollection in self._subcollections_by_category.get(category_slug, []):
            yield subcollection

    async def iter_subcategories_by_subcollection(
        self, subcollection_id: int
    ) -> AsyncIterator[Subcategory]:
        for subcategory in self._subcategories_by_subcollection.get(subcollection_id, []):
            yield subcategory

    async def get_collection_by_slug(self, slug: str) -> Collection | None:
        return _unique(self._collections_by_slug.get(slug, []), "collection", "slug", slug)

    async def get_category_by_slug(self, slug: str) -> Category | None:
        return _unique(self._categories_by_slug.get(slug, []), "category", "slug", slug)

    async def get_subcollection_by_external_id(
        self, external_id: int
    ) -> Subcollection | None:
        return _unique(
            self._subcollections_by_id.get(external_id, []),
            "subcollection",
            "external_id",
            external_id,
        )

    async def get_subcategory_by_slug(self, slug: str) -> Subcategory | None:
        return _unique(
            self._subcategories_by_slug.get(slug, []), "subcategory", "slug", slug
        )

    async def get_product_by_slug(self, slug: str) -> Product | None:
        return _unique(self._products_by_slug.get(slug, []), "product", "slug", slug)

    async def categories_by_collection(
        self, collection_id: int, limit: int
    ) -> list[Category]:
        return self._categories_by_collection.get(collection_id, [])[:limit]

    async def subcollections_by_category(
        self, category_slug: str, limit: int
    ) -> list[Subcollection]:
        return self._subcollections_by_category.get(category_slug, [])[:limit]

    async def subcategories_by_subcollection(
        self, subcollection_id: int, limit: int
    ) -> list[Subcategory]:
        return self._subcategories_by_subcollection.get(subcollection_id, [])[:limit]

    async def products_by_subcategory(
        self, subcategory_slug: str, limit: int
    ) -> list[Product]:
        return self._products_by_subcategory.get(subcategory_slug, [])[:limit]

    async def count_products_by_subcategory(
        self, subcategory_slug: str, limit: int
    ) -> int:
        return min(len(self._products_by_subcategory.get(subcategory_slug, [])), limit)

    async def count_rows(self, table: CatalogTable, limit: int) -> int:
        rows = {
            CatalogTable.COLLECTIONS: self._collections,
            CatalogTable.CATEGORIES: self._categories,
            CatalogTable.SUBCOLLECTIONS: self._subcollections,
            CatalogTable.SUBCATEGORIES: self._subcategories,
            CatalogTable.PRODUCTS: self._products,
        }[table]
        return min(len(rows), limit)

    async def search_products(self, query: str, limit: int) -> list[Product]:
        """Match products whose name has a word starting with every query term."""
        terms = search_terms(query)
        if not terms:
            return []

        matches: list[Product] = []
        for product in self._products:
            words = search_terms(product.name)
            if all(any(w.startswith(term) for w in words) for term in terms):
                matches.append(product)
                if len(matches) == limit:
                    break
        return matches
