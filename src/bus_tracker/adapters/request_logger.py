"""Debug logging of outgoing feed requests, enabled by BUS_TRACKER_LOG_REQUESTS."""

import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

LOG_REQUESTS_ENV = "BUS_TRACKER_LOG_REQUESTS"

_SENSITIVE_PARAMS = {"auth", "access_token", "token"}


def should_log_requests() -> bool:
    """Check whether request logging is switched on."""
    return os.getenv(LOG_REQUESTS_ENV, "").lower() in ("1", "true", "yes")


def _redact(params: dict[str, Any]) -> dict[str, Any]:
    return {k: "***REDACTED***" if k.lower() in _SENSITIVE_PARAMS else v for k, v in params.items()}


def log_request(method: str, url: str, params: dict[str, Any] | None = None) -> None:
    """Log a request if request logging is enabled.

    Args:
        method: HTTP method.
        url: Request URL without query string.
        params: Query parameters; credentials among them are redacted.
    """
    if not should_log_requests():
        return

    if params:
        query = "&".join(f"{k}={v}" for k, v in sorted(_redact(params).items()))
        url = f"{url}?{query}"
    logger.info(f"Feed request: {method} {url}")
