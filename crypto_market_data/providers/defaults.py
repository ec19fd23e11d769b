"""
Default provider registry configuration.

Registers the built-in sources and builds the aggregator from config.yaml
settings. To add a new source, register it here and add it to the priority list.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from .. import config
from .chain import MarketDataAggregator
from .coinapi import CoinApiClient
from .coingecko import CoinGeckoClient
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Default source priority (config.yaml can override these)
DEFAULT_PRIORITY = ["coingecko", "coinapi"]


def _client_kwargs(name: str) -> dict:
    settings = config.provider_settings(name)
    return {
        "api_key": settings.get("api_key"),
        "base_url": settings.get("base_url"),
        "config": config.resilience_config(name),
        "single_flight": bool(settings.get("single_flight", True)),
    }


def create_default_registry(**client_overrides: Any) -> ProviderRegistry:
    """
    Create a registry with all built-in sources configured from config.yaml/env.
    `client_overrides` (session, clock, sleep, ...) are passed to every client.
    """
    registry = ProviderRegistry()
    registry.register(
        "coingecko", lambda: CoinGeckoClient(**{**_client_kwargs("coingecko"), **client_overrides})
    )
    registry.register(
        "coinapi", lambda: CoinApiClient(**{**_client_kwargs("coinapi"), **client_overrides})
    )
    return registry


def create_market_data_service(
    registry: Optional[ProviderRegistry] = None,
    priority: Optional[List[str]] = None,
) -> MarketDataAggregator:
    """Build the aggregator in configured priority order."""
    reg = registry or create_default_registry()
    order = priority or config.provider_priority() or DEFAULT_PRIORITY
    sources = reg.build_chain(order)
    logger.info("Market data sources in priority order: %s", [s.provider_name for s in sources])
    return MarketDataAggregator(sources)
