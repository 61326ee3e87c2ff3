"""Browser fingerprint processing.

The client sends a JSON object of browser signals. Processing reduces it to
a stable hash plus a confidence score, and flags automation hints.
"""

import hashlib
import json
import math
from collections import Counter

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from brainrot.observability.logging import get_logger, truncate

logger = get_logger(__name__)

_AUTOMATION_FLAGS: dict[str, str] = {
    "webdriver": "webdriver-detected",
    "headless-chrome": "headless-browser",
    "phantomjs": "phantomjs-detected",
    "no-plugins": "no-plugins",
    "no-window": "no-window",
    "chrome-automation": "chrome-automation",
}


class FingerprintComponents(BaseModel):
    """Browser signals collected client-side (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_agent: str
    language: str = ""
    timezone: str = ""
    screen_resolution: str = ""
    color_depth: int = 0
    device_pixel_ratio: float = 1
    hardware_concurrency: int = 0
    device_memory: float | None = None
    canvas_fingerprint: str = ""
    webgl_fingerprint: str = ""
    audio_fingerprint: str = ""
    feature_support: str = ""
    font_fingerprint: str = ""
    plugin_fingerprint: str = ""
    session_id: str = ""
    automation_flags: str = ""


class ProcessedFingerprint(BaseModel):
    """A processed fingerprint ready for rate limiting."""

    fingerprint: str = Field(description="Stable hash of the composite signals")
    confidence: float = Field(ge=0.0, le=1.0)
    entropy: float = Field(description="Shannon entropy of the composite, in bits")
    suspicious_flags: list[str] = Field(default_factory=list)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def hash_fingerprint(data: str) -> str:
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def calculate_entropy(data: str) -> float:
    """Shannon entropy of the characters in ``data``."""
    if not data:
        return 0.0
    length = len(data)
    return -sum(
        (count / length) * math.log2(count / length) for count in Counter(data).values()
    )


def analyze_suspicious_flags(automation_flags: str) -> list[str]:
    """Map raw automation hints to suspicious flags."""
    flags = {flag for flag in automation_flags.split(",") if flag}
    suspicious = [label for flag, label in _AUTOMATION_FLAGS.items() if flag in flags]
    if "high-cores" in flags and "high-memory" in flags:
        suspicious.append("server-grade-hardware")
    return suspicious


def _composite(components: FingerprintComponents) -> str:
    return "|".join([
        components.user_agent,
        components.language,
        components.timezone,
        components.screen_resolution,
        _format_number(components.color_depth),
        _format_number(components.device_pixel_ratio),
        _format_number(components.hardware_concurrency),
        _format_number(components.device_memory) if components.device_memory else "unknown",
        components.canvas_fingerprint,
        components.webgl_fingerprint,
        components.audio_fingerprint,
        components.feature_support,
        components.font_fingerprint,
        components.plugin_fingerprint,
        components.automation_flags,
    ])


def process_fingerprint(components: FingerprintComponents) -> ProcessedFingerprint:
    """Hash the signals and score how much they can be trusted.

    Confidence starts from normalized entropy, gains a little for each
    rendering signal that actually worked, and loses 0.1 per suspicious flag
    (never below 0.1 once flagged).
    """
    composite = _composite(components)
    entropy = calculate_entropy(composite)
    suspicious_flags = analyze_suspicious_flags(components.automation_flags)

    confidence = min(entropy / 20, 1.0)
    if components.canvas_fingerprint not in ("", "no-canvas", "canvas-error"):
        confidence += 0.1
    if components.webgl_fingerprint not in ("", "no-webgl", "webgl-error"):
        confidence += 0.1
    if components.audio_fingerprint not in ("", "audio-error"):
        confidence += 0.05

    if suspicious_flags:
        confidence = max(0.1, confidence - len(suspicious_flags) * 0.1)

    return ProcessedFingerprint(
        fingerprint=hash_fingerprint(composite),
        confidence=max(0.0, min(1.0, confidence)),
        entropy=entropy,
        suspicious_flags=suspicious_flags,
    )


def process_fingerprint_data(fingerprint_data: str | None) -> ProcessedFingerprint | None:
    """Parse and process the raw JSON string sent by the client.

    Returns None for missing or malformed data; never raises.
    """
    if not fingerprint_data:
        return None
    try:
        raw = json.loads(fingerprint_data)
        components = FingerprintComponents.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning(
            "fingerprint_processing_failed",
            error=type(e).__name__,
            sample=truncate(fingerprint_data, 12),
        )
        return None
    return process_fingerprint(components)
