"""Bodies served by /health."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

HealthStatus = Literal["healthy", "unhealthy"]


class ComponentHealth(BaseModel):
    """Result of probing one backing service."""

    name: str
    status: HealthStatus
    latency_ms: float | None = None
    message: str | None = None


class FeatureFlags(BaseModel):
    rewards: bool
    metrics: bool


class HealthResponse(BaseModel):
    status: HealthStatus
    version: str
    cache_backend: str
    features: FeatureFlags
    components: list[ComponentHealth] = Field(default_factory=list)
    timestamp: datetime
