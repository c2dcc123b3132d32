"""Health and metrics endpoints."""
from fastapi import APIRouter, HTTPException, status
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from starlette.responses import Response

from middleman.config import settings

router = APIRouter(tags=["monitoring"])


@router.get("/health")
async def health() -> dict:
    """Report liveness and the configured backends."""
    return {
        "status": "healthy",
        "storage": settings.storage_backend,
        "ledger": settings.ledger_backend,
    }


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.enable_metrics:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
