"""Liveness probe and Prometheus exposition."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from brainrot import __version__
from brainrot.api.dependencies import CacheDep, SettingsDep
from brainrot.api.models.health import ComponentHealth, FeatureFlags, HealthResponse
from brainrot.cache.cache import Cache
from brainrot.config.environment import rewards_enabled
from brainrot.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Never written; reading a missing key still round-trips to the backend
HEALTH_PROBE_KEY = "health:probe"


async def probe_cache(cache: Cache) -> ComponentHealth:
    started = time.perf_counter()
    failure: str | None = None
    try:
        await cache.get(HEALTH_PROBE_KEY)
    except Exception as exc:
        failure = str(exc)
        logger.warning("cache_probe_failed", error=failure)
    return ComponentHealth(
        name="cache",
        status="healthy" if failure is None else "unhealthy",
        latency_ms=round((time.perf_counter() - started) * 1000, 3),
        message=failure,
    )


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health_check(cache: CacheDep, settings: SettingsDep) -> HealthResponse:
    """Report cache reachability and which optional features are switched on."""
    components = [await probe_cache(cache)]
    healthy = all(component.status == "healthy" for component in components)

    backend = settings.cache.persistent_backend
    if settings.cache.dual_layer:
        backend = f"memory+{backend}"

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        cache_backend=backend,
        features=FeatureFlags(
            rewards=rewards_enabled(settings),
            metrics=settings.observability.metrics_enabled,
        ),
        components=components,
        timestamp=datetime.now(UTC),
    )


@router.get("/metrics")
async def get_metrics(settings: SettingsDep) -> Response:
    if not settings.observability.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics are disabled")
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
