"""Product search endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from storefront.api.converters import search_hit_to_response
from storefront.api.dependencies import get_app_settings, get_catalog_service
from storefront.api.schemas import ErrorResponse, SearchResultSchema
from storefront.catalog.service import CatalogService
from storefront.infrastructure.config import Settings

router = APIRouter(prefix="/api", tags=["Search"])


@router.get(
    "/search",
    response_model=list[SearchResultSchema],
    responses={504: {"model": ErrorResponse}},
    summary="Search products",
)
async def search(
    response: Response,
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    q: Annotated[str, Query(description="Search text")] = "",
) -> list[SearchResultSchema]:
    """Search products by name.

    Each hit links to its product page. A blank query returns an empty
    list.

    Args:
        response: Outgoing response, for cache headers.
        service: Catalog service.
        settings: Application settings.
        q: Search text.

    Returns:
        Matching products, best first.
    """
    hits = await service.search_products(q)
    response.headers["Cache-Control"] = f"public, max-age={settings.search_cache_max_age}"
    return [search_hit_to_response(hit) for hit in hits]
