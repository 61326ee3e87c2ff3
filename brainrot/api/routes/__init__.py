"""API route registration."""

from fastapi import APIRouter, FastAPI

from brainrot.observability.logging import get_logger

logger = get_logger(__name__)


def create_api_router() -> APIRouter:
    """Create the /api router with all service routes."""
    router = APIRouter(prefix="/api")

    from brainrot.api.routes.admin import router as admin_router
    from brainrot.api.routes.rate_limit import router as rate_limit_router
    from brainrot.api.routes.rewarded_ad import router as rewarded_ad_router
    from brainrot.api.routes.tts import router as tts_router

    router.include_router(rate_limit_router, tags=["Rate limit"])
    router.include_router(admin_router, tags=["Admin"])
    router.include_router(rewarded_ad_router, tags=["Rewarded ads"])
    router.include_router(tts_router, tags=["TTS"])

    logger.debug("api_router_created", routes=["rate-limit", "admin", "rewarded-ad", "tts"])
    return router


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application."""
    app.include_router(create_api_router())

    # Health routes at root level
    from brainrot.api.routes.health import router as health_router

    app.include_router(health_router, tags=["Health"])

    logger.info("routes_registered")
