"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from storefront.api.dependencies import get_app_settings, get_catalog_service
from storefront.catalog.service import CatalogService
from storefront.infrastructure.config import Settings

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="storefront-catalog",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
) -> dict[str, str]:
    """Check if service is ready to accept requests.

    Returns:
        Readiness status.

    Raises:
        HTTPException: If the catalog store is unreachable.
    """
    try:
        await service.store.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Catalog store not reachable", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error_code": "STORE_UNAVAILABLE",
                "message": "Catalog store is not reachable",
            },
        ) from e
    return {"status": "ready"}
