"""
Aggregator: one entry point over an ordered chain of market data sources.

Each source already absorbs rate limits and outages (stale cache, seed data),
so a source only raises for something truly exceptional: a payload it cannot
parse, a translation fault, a bug. The chain then tries the next source. When
every source raises, AllSourcesFailedError is the single error callers handle.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..core.errors import AllSourcesFailedError, InvalidParamsError
from .base import MarketSource, ProviderHealth, UnifiedResult

logger = logging.getLogger(__name__)


class MarketDataAggregator:
    """
    Ordered chain of market data sources with transparent failover.

    Returned `source` labels name the winning provider and its provenance,
    e.g. "coingecko-live", "coinapi-fallback".
    """

    def __init__(self, sources: List[MarketSource]) -> None:
        if not sources:
            raise ValueError("MarketDataAggregator needs at least one source")
        self._sources = list(sources)
        self._health: Dict[str, ProviderHealth] = {
            s.provider_name: ProviderHealth(provider_name=s.provider_name) for s in self._sources
        }

    @property
    def sources(self) -> List[MarketSource]:
        return list(self._sources)

    def _first_success(
        self,
        operation: str,
        call: Callable[[Any], UnifiedResult],
        sources: Optional[List[Any]] = None,
    ) -> UnifiedResult:
        errors: List[str] = []
        candidates = self._sources if sources is None else sources
        for source in candidates:
            name = source.provider_name
            health = self._health[name]
            try:
                result = call(source)
            except InvalidParamsError:
                raise
            except Exception as exc:
                msg = f"{name}: {type(exc).__name__}: {exc}"
                errors.append(msg)
                health.record_failure(msg)
                logger.warning("%s failed on %s, trying next source: %s", operation, name, msg)
                continue
            labelled = result.labelled(name)
            health.record_success(labelled.source)
            return labelled

        if not errors:
            errors.append("no source supports this operation")
        logger.error("%s failed on every source: %s", operation, "; ".join(errors))
        raise AllSourcesFailedError(operation, errors)

    def _supporting(self, method: str) -> List[Any]:
        return [s for s in self._sources if callable(getattr(s, method, None))]

    def get_markets(self, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        """Coin listing: vs_currency, order, per_page, page, sparkline, price_change_percentage."""
        return self._first_success("get_markets", lambda s: s.get_markets(params))

    def get_coin_details(self, coin_id: str, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        return self._first_success(
            f"get_coin_details({coin_id})", lambda s: s.get_coin_details(coin_id, params)
        )

    get_entity_details = get_coin_details

    def get_global_data(self) -> UnifiedResult:
        return self._first_success("get_global_data", lambda s: s.get_global_data())

    def get_exchange_rates(self, base: str = "USD") -> UnifiedResult:
        """Native exchange-rate table from the first source that serves one."""
        return self._first_success(
            f"get_exchange_rates({base})",
            lambda s: s.get_exchange_rates(base),
            self._supporting("get_exchange_rates"),
        )

    def get_asset_history(self, asset_id: str, period: str = "1DAY", limit: int = 7) -> UnifiedResult:
        """Native OHLCV candles from the first source that serves them."""
        return self._first_success(
            f"get_asset_history({asset_id})",
            lambda s: s.get_asset_history(asset_id, period, limit),
            self._supporting("get_asset_history"),
        )

    def invalidate_all_caches(self) -> int:
        """Clear every cache family on every source; returns entries removed."""
        removed = sum(source.invalidate_cache() for source in self._sources)
        logger.info("Invalidated all market data caches (%d entries)", removed)
        return removed

    def get_cache_stats(self) -> Dict[str, Dict[str, Any]]:
        return {source.provider_name: source.cache_stats() for source in self._sources}

    def get_health(self) -> Dict[str, ProviderHealth]:
        """Return success/failure counters for every source in the chain."""
        return dict(self._health)
