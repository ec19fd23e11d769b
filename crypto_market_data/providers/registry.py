"""
Provider registry: central catalog of available market data sources.

Sources register themselves here. The registry is config-driven: a priority
list (config.yaml `providers.priority`) determines the order the aggregator
tries them in.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .base import MarketSource

logger = logging.getLogger(__name__)

SourceFactory = Union[Callable[[], MarketSource], MarketSource]


class ProviderRegistry:
    """
    Registry mapping provider names to factories/instances.

    Usage:
        registry = ProviderRegistry()
        registry.register("coingecko", CoinGeckoClient)
        registry.register("coinapi", lambda: CoinApiClient(api_key="..."))

        sources = registry.build_chain(["coingecko", "coinapi"])
    """

    def __init__(self) -> None:
        self._factories: Dict[str, Any] = {}
        self._instances: Dict[str, MarketSource] = {}

    def register(self, name: str, factory: SourceFactory) -> None:
        """Register a source class, zero-arg factory, or ready instance by name."""
        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.debug("Registered market data source: %s", name)

    def get(self, name: str) -> MarketSource:
        """Get or instantiate a source by name."""
        if name not in self._instances:
            factory = self._factories.get(name)
            if factory is None:
                raise KeyError(
                    f"Unknown market data source '{name}'. "
                    f"Available: {list(self._factories)}"
                )
            # Classes and zero-arg factories are called; ready instances are kept as-is.
            if isinstance(factory, type) or not hasattr(factory, "get_markets"):
                self._instances[name] = factory()
            else:
                self._instances[name] = factory
        return self._instances[name]

    @property
    def names(self) -> List[str]:
        return list(self._factories)

    def build_chain(self, priority: Optional[List[str]] = None) -> List[MarketSource]:
        """Ordered list of sources from a priority list; unknown names are skipped."""
        names = priority or list(self._factories)
        skipped = [n for n in names if n not in self._factories]
        if skipped:
            logger.warning("Ignoring unknown sources in priority list: %s", skipped)
        return [self.get(n) for n in names if n in self._factories]
