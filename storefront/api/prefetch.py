"""Image prefetch endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from storefront.api.dependencies import get_app_settings, get_image_prefetcher
from storefront.api.schemas import ErrorResponse, ImageSchema, PrefetchImagesResponse
from storefront.catalog.images import ImagePrefetcher
from storefront.infrastructure.config import Settings

router = APIRouter(prefix="/api", tags=["Prefetch"])


@router.get(
    "/prefetch-images/{path:path}",
    response_model=PrefetchImagesResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List images rendered by a page",
)
async def prefetch_images(
    path: str,
    response: Response,
    prefetcher: Annotated[ImagePrefetcher, Depends(get_image_prefetcher)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> PrefetchImagesResponse:
    """Get the images a storefront page will render.

    Raises:
        HTTPException: If no path is given.
    """
    if not path.strip("/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_code": "MISSING_PATH",
                "message": "Missing path",
            },
        )

    images = await prefetcher.images_for_path(path)
    response.headers["Cache-Control"] = f"public, max-age={settings.prefetch_cache_max_age}"
    return PrefetchImagesResponse(images=[ImageSchema(**image.to_dict()) for image in images])
