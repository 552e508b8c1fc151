"""API schemas for the storefront catalog.

Pydantic models for response serialization.
"""

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class CountSchema(BaseModel):
    """Row count computed under caps."""

    count: int = Field(..., description="Counted rows")
    is_exact: bool = Field(..., description="False when a cap truncated the count")
    display: str = Field(..., description="UI label, e.g. '10000+' when truncated")


# ============================================================================
# Record Schemas
# ============================================================================


class CollectionSchema(BaseModel):
    """Collection representation."""

    external_id: int
    name: str
    slug: str


class CategorySchema(BaseModel):
    """Category representation."""

    slug: str
    name: str
    collection_id: int
    image_url: str | None = None


class SubcollectionSchema(BaseModel):
    """Subcollection representation with its derived slug."""

    external_id: int
    name: str
    slug: str
    category_slug: str


class SubcategorySchema(BaseModel):
    """Subcategory representation."""

    slug: str
    name: str
    subcollection_id: int
    image_url: str | None = None


class ProductSchema(BaseModel):
    """Product representation."""

    slug: str
    name: str
    description: str
    price: str = Field(..., description="Decimal price as string")
    subcategory_slug: str
    image_url: str | None = None


# ============================================================================
# Page Schemas
# ============================================================================


class CollectionPageResponse(BaseModel):
    """Collection with its categories."""

    collection: CollectionSchema
    categories: list[CategorySchema]


class SubcollectionSectionSchema(BaseModel):
    """Subcollection block of a category page."""

    subcollection: SubcollectionSchema
    subcategories: list[SubcategorySchema]
    product_count: CountSchema


class CategoryPageResponse(BaseModel):
    """Category page payload."""

    category: CategorySchema
    sections: list[SubcollectionSectionSchema]
    product_count: CountSchema


class DataCountsResponse(BaseModel):
    """Capped row counts per table."""

    collections: CountSchema
    categories: CountSchema
    subcollections: CountSchema
    subcategories: CountSchema
    products: CountSchema


class CatalogOverviewResponse(BaseModel):
    """Home page payload."""

    collections: list[CollectionPageResponse]
    counts: DataCountsResponse


# ============================================================================
# Search & Prefetch Schemas
# ============================================================================


class SearchResultSchema(BaseModel):
    """Search hit with its product page link."""

    href: str = Field(..., description="/products/{category}/{subcategory}/{product}")
    name: str
    slug: str
    image_url: str | None = None
    description: str
    price: str
    subcategory_slug: str


class ImageSchema(BaseModel):
    """Image to prefetch."""

    src: str
    alt: str
    loading: str = Field(..., description="'eager' or 'lazy'")


class PrefetchImagesResponse(BaseModel):
    """Images rendered by a page."""

    images: list[ImageSchema]
