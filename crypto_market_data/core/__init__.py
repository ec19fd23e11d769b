"""
Stable facade: shared error types only. No providers, config, or network.
Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    AllSourcesFailedError,
    InvalidParamsError,
    MarketDataError,
    ResponseFormatError,
    UpstreamUnavailableError,
)

# Do not add exports without updating __all__.
__all__ = [
    "AllSourcesFailedError",
    "InvalidParamsError",
    "MarketDataError",
    "ResponseFormatError",
    "UpstreamUnavailableError",
]
