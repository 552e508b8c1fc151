"""Product Catalog Service.

Read-only query layer over the Collections > Categories > Subcollections >
Subcategories > Products hierarchy: lookups, capped counts, text search
and route enumeration, plus image prefetch lists for storefront pages.
"""

from storefront.catalog.deadline import Deadline
from storefront.catalog.exceptions import (
    CatalogError,
    CatalogIntegrityError,
    QueryDeadlineExceededError,
)
from storefront.catalog.images import ImageInfo, ImagePrefetcher, Loading
from storefront.catalog.records import (
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
from storefront.catalog.repository import SqlCatalogStore
from storefront.catalog.service import CatalogService
from storefront.catalog.slugs import derive_slug
from storefront.catalog.store import CatalogStore, CatalogTable, InMemoryCatalogStore

__all__ = [
    # Records
    "CappedCount",
    "Category",
    "CategoryPage",
    "Collection",
    "CollectionPage",
    "Product",
    "SearchHit",
    "Subcategory",
    "Subcollection",
    "SubcollectionSection",
    # Slugs
    "derive_slug",
    # Stores
    "CatalogStore",
    "CatalogTable",
    "InMemoryCatalogStore",
    "SqlCatalogStore",
    # Service
    "CatalogService",
    "Deadline",
    # Images
    "ImageInfo",
    "ImagePrefetcher",
    "Loading",
    # Errors
    "CatalogError",
    "CatalogIntegrityError",
    "QueryDeadlineExceededError",
]
