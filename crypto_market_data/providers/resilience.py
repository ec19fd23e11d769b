"""
Resilience primitives: retry with exponential backoff and Retry-After aware
rate-limit waits around a single JSON GET.

Timing constants live in ResilienceConfig, passed to each client at
construction, so tests can inject short waits and a recording sleep.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from ..core.errors import ResponseFormatError, UpstreamUnavailableError
from .base import ResourceFamily
from .cache import DEFAULT_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class ResilienceConfig:
    """Retry/backoff policy and per-family cache TTLs for one upstream client."""
    max_retries: int = 3
    backoff_base_s: float = 1.0
    max_rate_limit_wait_s: float = 60.0
    default_retry_after_s: float = 30.0
    timeout_s: float = 15.0
    ttl_by_family: Dict[ResourceFamily, float] = field(
        default_factory=lambda: dict(DEFAULT_TTL_SECONDS)
    )

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff after a failed attempt (1-based): base * 2**attempt."""
        return self.backoff_base_s * (2 ** attempt)

    def rate_limit_delay(self, retry_after: Optional[str]) -> float:
        wait = parse_retry_after(retry_after)
        if wait is None:
            wait = self.default_retry_after_s
        return max(0.0, min(wait, self.max_rate_limit_wait_s))


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Retry-After as seconds: delta-seconds or an HTTP date. None if absent or unparseable."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return float(int(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return max(0.0, (when - current).total_seconds())


def fetch_json_with_retry(
    session: requests.Session,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    config: Optional[ResilienceConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "upstream",
) -> Any:
    """
    GET url and decode JSON, retrying transient failures.

    - HTTP 429: wait Retry-After (or the default), capped, then retry.
    - Other non-2xx or requests.RequestException: exponential backoff, retry.
    - No wait after the final attempt.

    Raises UpstreamUnavailableError when attempts are exhausted and
    ResponseFormatError when a 2xx body is not JSON.
    """
    cfg = config or ResilienceConfig()
    last_error = "no attempt made"
    last_status: Optional[int] = None

    for attempt in range(1, cfg.max_retries + 1):
        logger.debug("%s attempt %d/%d: %s", label, attempt, cfg.max_retries, url)
        try:
            resp = session.get(
                url,
                params=dict(params) if params else None,
                headers=dict(headers) if headers else None,
                timeout=cfg.timeout_s,
            )
        except requests.RequestException as exc:
            last_error = f"{type(exc).__name__}: {exc}"
            last_status = None
            delay = cfg.backoff_delay(attempt)
            logger.warning("%s fetch error on attempt %d/%d: %s", label, attempt, cfg.max_retries, last_error)
        else:
            if resp.status_code == 429:
                last_status = 429
                last_error = "rate limited (HTTP 429)"
                delay = cfg.rate_limit_delay(resp.headers.get("Retry-After"))
                logger.warning("%s rate limit hit on attempt %d/%d", label, attempt, cfg.max_retries)
            elif not 200 <= resp.status_code < 300:
                last_status = resp.status_code
                last_error = f"HTTP {resp.status_code} {getattr(resp, 'reason', '') or ''}".strip()
                delay = cfg.backoff_delay(attempt)
                logger.warning("%s error on attempt %d/%d: %s", label, attempt, cfg.max_retries, last_error)
            else:
                try:
                    return resp.json()
                except ValueError as exc:
                    raise ResponseFormatError(f"{label} returned a non-JSON body from {url}: {exc}") from exc

        if attempt < cfg.max_retries:
            logger.debug("%s waiting %.1fs before retry", label, delay)
            sleep(delay)

    raise UpstreamUnavailableError(
        f"{label} unavailable after {cfg.max_retries} attempts: {last_error}",
        status_code=last_status,
        attempts=cfg.max_retries,
    )
