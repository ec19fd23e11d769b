"""
Top-level public API surface. Stable facades only.

Route handlers build one service at process start and share it:

    from crypto_market_data import create_market_data_service
    service = create_market_data_service()
    result = service.get_markets({"vs_currency": "usd", "per_page": 50})
    result.data, result.source   # [...], "coingecko-live"
"""

from __future__ import annotations

from . import config, core, providers
from ._version import __version__
from .core.errors import AllSourcesFailedError, InvalidParamsError, MarketDataError
from .providers.chain import MarketDataAggregator
from .providers.defaults import create_default_registry, create_market_data_service

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "AllSourcesFailedError",
    "InvalidParamsError",
    "MarketDataAggregator",
    "MarketDataError",
    "config",
    "core",
    "create_default_registry",
    "create_market_data_service",
    "providers",
]
