"""API route registration."""

from fastapi import FastAPI

from carecheck.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    from carecheck.api.routes.admin import router as admin_router
    from carecheck.api.routes.health import router as health_router
    from carecheck.api.routes.verification import router as verification_router
    from carecheck.api.routes.webhooks import router as webhooks_router

    app.include_router(verification_router, tags=["Verification"])
    app.include_router(admin_router, tags=["Admin"])
    app.include_router(webhooks_router, tags=["Webhooks"])
    app.include_router(health_router, tags=["Health"])

    logger.info("routes_registered", routes=["verification", "admin", "webhooks", "health"])
