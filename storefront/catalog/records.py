"""Immutable catalog records and result types.

Stores hand these out regardless of backend, so the query layer never
touches ORM instances or sessions.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from storefront.catalog.slugs import derive_slug


@dataclass(frozen=True)
class Collection:
    """Top-level grouping of categories.

    Attributes:
        external_id: Linkage key referenced by ``Category.collection_id``.
        name: Display name.
        slug: URL identifier.
    """

    external_id: int
    name: str
    slug: str

    def to_dict(self) -> dict[str, Any]:
        return {"external_id": self.external_id, "name": self.name, "slug": self.slug}


@dataclass(frozen=True)
class Category:
    """Category under a collection."""

    slug: str
    name: str
    collection_id: int
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "name": self.name,
            "collection_id": self.collection_id,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class Subcollection:
    """Grouping of subcategories inside a category.

    Subcollections have no stored slug; ``slug`` is derived from the name.
    """

    external_id: int
    name: str
    category_slug: str

    @property
    def slug(self) -> str:
        """Derived URL identifier."""
        return derive_slug(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "name": self.name,
            "slug": self.slug,
            "category_slug": self.category_slug,
        }


@dataclass(frozen=True)
class Subcategory:
    """Subcategory under a subcollection."""

    slug: str
    name: str
    subcollection_id: int
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "name": self.name,
            "subcollection_id": self.subcollection_id,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class Product:
    """Sellable product.

    Attributes:
        slug: URL identifier.
        name: Display name (full-text indexed).
        description: Long description.
        price: Price in major currency units.
        subcategory_slug: Parent subcategory.
        image_url: Product image, if any.
    """

    slug: str
    name: str
    description: str
    price: Decimal
    subcategory_slug: str
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "subcategory_slug": self.subcategory_slug,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class SearchHit:
    """Search result enriched with its ancestor category."""

    product: Product
    category_slug: str

    @property
    def href(self) -> str:
        """Canonical product page path."""
        return (
            f"/products/{self.category_slug}/"
            f"{self.product.subcategory_slug}/{self.product.slug}"
        )


@dataclass(frozen=True)
class CappedCount:
    """Row count computed under per-query caps.

    Attributes:
        count: Counted rows (never above the sum of the caps involved).
        is_exact: False when at least one underlying scan hit its cap.
    """

    count: int
    is_exact: bool = True

    def __add__(self, other: "CappedCount") -> "CappedCount":
        return CappedCount(
            count=self.count + other.count,
            is_exact=self.is_exact and other.is_exact,
        )

    @property
    def display(self) -> str:
        """Label suitable for UI copy, e.g. ``"10000+"`` when truncated."""
        return str(self.count) if self.is_exact else f"{self.count}+"


ZERO_COUNT = CappedCount(count=0, is_exact=True)


@dataclass(frozen=True)
class CollectionPage:
    """Collection with the categories filed under it."""

    collection: Collection
    categories: list[Category] = field(default_factory=list)


@dataclass(frozen=True)
class SubcollectionSection:
    """Subcollection block on a category page."""

    subcollection: Subcollection
    subcategories: list[Subcategory]
    product_count: CappedCount


@dataclass(frozen=True)
class CategoryPage:
    """Everything a category page renders, fetched in one call."""

    category: Category
    sections: list[SubcollectionSection]
    product_count: CappedCount
