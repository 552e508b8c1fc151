"""Catalog API endpoints.

Read-only views over the Collections > Categories > Subcollections >
Subcategories > Products hierarchy.
"""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.api.converters import (
    category_page_to_response,
    category_to_response,
    collection_page_to_response,
    collection_to_response,
    count_to_response,
    data_counts_to_response,
    product_to_response,
    subcategory_to_response,
    subcollection_to_response,
)
from storefront.api.dependencies import get_catalog_service
from storefront.api.schemas import (
    CatalogOverviewResponse,
    CategoryPageResponse,
    CategorySchema,
    CollectionPageResponse,
    CollectionSchema,
    CountSchema,
    ErrorResponse,
    ProductSchema,
    SubcategorySchema,
    SubcollectionSchema,
)
from storefront.catalog.service import CatalogService

router = APIRouter(tags=["Catalog"])

Service = Annotated[CatalogService, Depends(get_catalog_service)]

_ERRORS = {
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _not_found(entity: str, key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error_code": f"{entity.upper()}_NOT_FOUND",
            "message": f"{entity.capitalize()} not found: {key}",
        },
    )


# ============================================================================
# Collections
# ============================================================================


@router.get("/collections", response_model=list[CollectionSchema])
async def list_collections(service: Service) -> list[CollectionSchema]:
    """List every collection ordered by name."""
    return [collection_to_response(c) for c in await service.get_all_collections()]


@router.get(
    "/collections/{slug}",
    response_model=CollectionPageResponse,
    responses=_ERRORS,
    summary="Get collection page",
)
async def get_collection(slug: str, service: Service) -> CollectionPageResponse:
    """Get a collection with its categories.

    Raises:
        HTTPException: If the collection does not exist.
    """
    page = await service.get_collection_page(slug)
    if page is None:
        raise _not_found("collection", slug)
    return collection_page_to_response(page)


@router.get(
    "/catalog/overview",
    response_model=CatalogOverviewResponse,
    summary="Get home page payload",
)
async def get_overview(service: Service) -> CatalogOverviewResponse:
    """Get every collection with its categories, plus table counts."""
    pages, counts = await asyncio.gather(
        service.get_catalog_overview(),
        service.get_data_counts(),
    )
    return CatalogOverviewResponse(
        collections=[collection_page_to_response(page) for page in pages],
        counts=data_counts_to_response(counts),
    )


# ============================================================================
# Categories
# ============================================================================


@router.get("/categories", response_model=list[CategorySchema])
async def list_categories(service: Service) -> list[CategorySchema]:
    """List every category ordered by name."""
    return [category_to_response(c) for c in await service.get_all_categories()]


@router.get(
    "/categories/{slug}",
    response_model=CategoryPageResponse,
    responses=_ERRORS,
    summary="Get category page",
)
async def get_category(slug: str, service: Service) -> CategoryPageResponse:
    """Get a category with its subcollections, subcategories and counts.

    Args:
        slug: Category slug.
        service: Catalog service.

    Returns:
        Category page payload.

    Raises:
        HTTPException: If the category does not exist.
    """
    page = await service.get_category_page(slug)
    if page is None:
        raise _not_found("category", slug)
    return category_page_to_response(page)


@router.get(
    "/categories/{slug}/subcollections",
    response_model=list[SubcollectionSchema],
)
async def list_category_subcollections(
    slug: str, service: Service
) -> list[SubcollectionSchema]:
    subcollections = await service.get_subcollections_by_category(slug)
    return [subcollection_to_response(s) for s in subcollections]


@router.get(
    "/categories/{slug}/subcategories",
    response_model=list[SubcategorySchema],
)
async def list_category_subcategories(
    slug: str, service: Service
) -> list[SubcategorySchema]:
    subcategories = await service.get_subcategories_by_category(slug)
    return [subcategory_to_response(s) for s in subcategories]


@router.get("/categories/{slug}/product-count", response_model=CountSchema)
async def count_category_products(slug: str, service: Service) -> CountSchema:
    return count_to_response(await service.count_products_by_category(slug))


@router.get(
    "/categories/{slug}/subcollection-product-counts",
    response_model=dict[str, CountSchema],
)
async def count_category_subcollection_products(
    slug: str, service: Service
) -> dict[str, CountSchema]:
    """Map subcollection external ids to their product counts."""
    counts = await service.get_subcollection_product_counts(slug)
    return {key: count_to_response(count) for key, count in counts.items()}


# ============================================================================
# Subcollections
# ============================================================================


@router.get(
    "/subcollections/{slug}/subcategories",
    response_model=list[SubcategorySchema],
    responses=_ERRORS,
)
async def list_subcollection_subcategories(
    slug: str,
    service: Service,
    category: Annotated[
        str | None,
        Query(description="Category slug to scope the subcollection lookup"),
    ] = None,
) -> list[SubcategorySchema]:
    """Get subcategories of the subcollection with the given derived slug."""
    subcategories = await service.get_subcategories_by_subcollection(
        slug, category_slug=category
    )
    return [subcategory_to_response(s) for s in subcategories]


@router.get("/subcollections/{external_id}/product-count", response_model=CountSchema)
async def count_subcollection_products(external_id: int, service: Service) -> CountSchema:
    return count_to_response(await service.count_products_by_subcollection(external_id))


# ============================================================================
# Subcategories
# ============================================================================


@router.get(
    "/subcategories/{slug}",
    response_model=SubcategorySchema,
    responses=_ERRORS,
)
async def get_subcategory(slug: str, service: Service) -> SubcategorySchema:
    subcategory = await service.get_subcategory_by_slug(slug)
    if subcategory is None:
        raise _not_found("subcategory", slug)
    return subcategory_to_response(subcategory)


@router.get(
    "/subcategories/{slug}/products",
    response_model=list[ProductSchema],
)
async def list_subcategory_products(slug: str, service: Service) -> list[ProductSchema]:
    """List products of a subcategory ordered by slug."""
    return [product_to_response(p) for p in await service.get_products_by_subcategory(slug)]


@router.get("/subcategories/{slug}/product-count", response_model=CountSchema)
async def count_subcategory_products(slug: str, service: Service) -> CountSchema:
    return count_to_response(await service.count_products_by_subcategory(slug))


# ============================================================================
# Products
# ============================================================================


@router.get(
    "/products/{slug}",
    response_model=ProductSchema,
    responses=_ERRORS,
)
async def get_product(slug: str, service: Service) -> ProductSchema:
    product = await service.get_product_by_slug(slug)
    if product is None:
        raise _not_found("product", slug)
    return product_to_response(product)


@router.get(
    "/products/{slug}/related",
    response_model=list[ProductSchema],
    responses=_ERRORS,
)
async def list_related_products(slug: str, service: Service) -> list[ProductSchema]:
    """List the other products of this product's subcategory.

    Raises:
        HTTPException: If the product does not exist.
    """
    product = await service.get_product_by_slug(slug)
    if product is None:
        raise _not_found("product", slug)
    related = await service.get_related_products(slug, product.subcategory_slug)
    return [product_to_response(p) for p in related]

