"""Prometheus metrics for the abuse-prevention core.

Counts rate-limit decisions, burst blocks, token outcomes, cache layer
failures and rewarded-ad credits.
"""

from prometheus_client import Counter, Histogram

# Rate limiting
RATE_LIMIT_DECISIONS = Counter(
    "brainrot_rate_limit_decisions_total",
    "Rate limit decisions by method, operation and outcome",
    labelnames=["method", "operation", "outcome"],
)

BURST_BLOCKS = Counter(
    "brainrot_burst_blocks_total",
    "Requests blocked by the burst limiter",
    labelnames=["level"],
)

BONUS_CREDITS_GRANTED = Counter(
    "brainrot_bonus_credits_granted_total",
    "Bonus credits granted for completed rewarded ads",
)

BONUS_CREDITS_SPENT = Counter(
    "brainrot_bonus_credits_spent_total",
    "Bonus credits debited by rate-limit consumption",
)

# Tokens
AD_TOKEN_OUTCOMES = Counter(
    "brainrot_ad_token_outcomes_total",
    "Ad token mint and validation outcomes",
    labelnames=["operation", "outcome"],
)

TTS_TOKEN_OUTCOMES = Counter(
    "brainrot_tts_token_outcomes_total",
    "TTS token validation outcomes",
    labelnames=["outcome"],
)

# Cache
CACHE_LAYER_FAILURES = Counter(
    "brainrot_cache_layer_failures_total",
    "Cache layer operation failures",
    labelnames=["layer", "operation"],
)

CACHE_PROMOTIONS = Counter(
    "brainrot_cache_promotions_total",
    "Durable-layer hits promoted into the fast layer",
)

TTS_SYNTHESIS_LATENCY = Histogram(
    "brainrot_tts_synthesis_latency_seconds",
    "Speech synthesis latency in seconds",
    labelnames=["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
