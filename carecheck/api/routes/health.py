"""Health check and metrics endpoints."""

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from carecheck.api.dependencies import SettingsDep, VerificationStoreDep
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Service health."""

    status: Literal["healthy", "unhealthy"]
    version: str
    timestamp: datetime


@router.get("/health", response_model=HealthResponse)
async def health_check(store: VerificationStoreDep) -> HealthResponse:
    """Check service health status."""
    status: Literal["healthy", "unhealthy"] = "healthy" if store is not None else "unhealthy"
    logger.debug("health_check_completed", status=status)
    return HealthResponse(status=status, version="0.1.0", timestamp=datetime.now(UTC))


@router.get("/metrics")
async def get_metrics(settings: SettingsDep) -> Response:
    """Prometheus metrics in text format for scraping."""
    if not settings.observability.metrics.enabled:
        return Response(status_code=404)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
