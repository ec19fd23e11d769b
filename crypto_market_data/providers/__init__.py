"""
Market data sources for cryptocurrency prices.

Two upstream clients (CoinGecko primary, CoinAPI secondary) share one
caching/retry/degrade policy, and an aggregator chains them with automatic
failover. Upstream outages degrade to stale cache or seed data; only total
multi-source failure raises.
"""

from __future__ import annotations

from .base import (
    CacheEntry,
    MarketSource,
    Provenance,
    ProviderHealth,
    ResourceFamily,
    UnifiedResult,
)
from .cache import CacheStore, cache_key
from .chain import MarketDataAggregator
from .client import UpstreamClient
from .coinapi import CoinApiClient
from .coingecko import CoinGeckoClient
from .registry import ProviderRegistry
from .resilience import ResilienceConfig, fetch_json_with_retry

__all__ = [
    "CacheEntry",
    "CacheStore",
    "CoinApiClient",
    "CoinGeckoClient",
    "MarketDataAggregator",
    "MarketSource",
    "Provenance",
    "ProviderHealth",
    "ProviderRegistry",
    "ResilienceConfig",
    "ResourceFamily",
    "UnifiedResult",
    "UpstreamClient",
    "cache_key",
    "fetch_json_with_retry",
]
