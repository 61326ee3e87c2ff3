"""structlog setup for the abuse-prevention core.

Events are rendered as JSON lines in production and with the console
renderer in development. Log events routinely carry tokens, fingerprints
and client addresses, so a redaction processor runs before rendering.
"""

import logging
import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

REDACTED = "[REDACTED]"

# Exact key names whose values are always dropped
SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "api_key",
    "auth",
    "authorization",
    "cookie",
    "credential",
    "credentials",
    "email",
    "phone",
    "ip",
    "client_ip",
    "raw_ip",
    "private_key",
    "bearer",
})

# Any key ending like this is dropped too (ad_token, tts_token, auth_secret...)
SENSITIVE_SUFFIXES: tuple[str, ...] = ("_token", "_secret", "_password")

# Applied in order to every string value; JWTs first so their parts survive no other rule
VALUE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+"), "[JWT]"),
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "[EMAIL]"),
    (re.compile(r"\+\d[\d\s\-\(\)]{9,}"), "[PHONE]"),
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), "[IP]"),
)


def truncate(value: str | None, length: int = 8) -> str | None:
    """Shorten an identifier for log output (fingerprints, jti, tokens)."""
    if value is None or len(value) <= length:
        return value
    return f"{value[:length]}..."


def is_sensitive_key(key: str) -> bool:
    key = key.lower()
    return key in SENSITIVE_KEYS or key.endswith(SENSITIVE_SUFFIXES)


class PIIRedactor:
    """structlog processor dropping secrets and scrubbing personal data.

    Values under sensitive keys are replaced outright. Every other string,
    at any nesting depth, is scrubbed with VALUE_PATTERNS.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._scrub_mapping(event_dict))

    def _scrub_mapping(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            key: REDACTED if is_sensitive_key(key) else self._scrub(value)
            for key, value in data.items()
        }

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            for pattern, replacement in VALUE_PATTERNS:
                value = pattern.sub(replacement, value)
            return value
        if isinstance(value, Mapping):
            return self._scrub_mapping(value)
        if isinstance(value, list | tuple):
            return [self._scrub(item) for item in value]
        return value


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name; unknown names fall back to INFO
        format: "json" for production, "console" for development
        redact_pii: Run PIIRedactor before rendering
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if redact_pii:
        processors.append(PIIRedactor())
    processors.append(
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; call sites log snake_case event names with keyword context."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
