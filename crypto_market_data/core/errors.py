"""
Shared exception types for crypto_market_data.

Operational degradation (rate limits, outages) is absorbed inside each
upstream client and never raised to callers. What is left:

- InvalidParamsError: structurally invalid request parameters (caller bug).
- ResponseFormatError: an upstream answered 2xx with a body we cannot parse
  or translate (treated as a defect, never masked as degradation).
- AllSourcesFailedError: every source in the aggregator raised; route
  handlers map this to a 5xx.

UpstreamUnavailableError is internal: clients raise it from the retry loop
and convert it to cached or seeded data before returning.
"""

from __future__ import annotations

from typing import List, Optional


class MarketDataError(Exception):
    """Base exception for crypto_market_data; catch this for any package-raised error."""

    pass


class InvalidParamsError(MarketDataError, ValueError):
    """Request parameters are structurally invalid (bad page size, empty id, unknown family)."""

    pass


class UpstreamUnavailableError(MarketDataError):
    """Live fetch failed after all retry attempts."""

    def __init__(self, message: str, status_code: Optional[int] = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts


class ResponseFormatError(MarketDataError):
    """Upstream payload could not be decoded or translated."""

    pass


class AllSourcesFailedError(MarketDataError):
    """Every configured source raised for one aggregator call."""

    def __init__(self, operation: str, errors: List[str]) -> None:
        self.operation = operation
        self.errors = list(errors)
        super().__init__(f"All market data sources failed for {operation}: {'; '.join(self.errors)}")


__all__ = [
    "AllSourcesFailedError",
    "InvalidParamsError",
    "MarketDataError",
    "ResponseFormatError",
    "UpstreamUnavailableError",
]
