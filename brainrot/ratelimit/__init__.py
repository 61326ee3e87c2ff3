"""Rate limiting: identities, counters, burst detection and bonus credits."""

from brainrot.ratelimit.burst import BurstRateLimiter
from brainrot.ratelimit.limiter import RateLimiter
from brainrot.ratelimit.models import RateLimitResult, RequestIdentity

__all__ = ["BurstRateLimiter", "RateLimiter", "RateLimitResult", "RequestIdentity"]
