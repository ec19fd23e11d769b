"""
Provider interfaces and data contracts.

Every upstream client returns a UnifiedResult whose source is the provenance
of the payload (live, cache, fallback). The aggregator re-labels it with the
provider name ("coingecko-live", "coinapi-fallback", ...).

Sources implement the MarketSource protocol: the CoinGecko-shaped listing,
coin detail and global snapshot operations.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


class Provenance(enum.Enum):
    """How a returned value was ultimately produced."""

    LIVE = "live"
    CACHE = "cache"
    FALLBACK = "fallback"

    @classmethod
    def worst(cls, *items: "Provenance") -> "Provenance":
        """Most degraded provenance of a composed result (live < cache < fallback)."""
        order = [cls.LIVE, cls.CACHE, cls.FALLBACK]
        return max(items, key=order.index) if items else cls.LIVE


class ResourceFamily(enum.Enum):
    """Category of upstream data; each has its own cache map and TTL."""

    MARKETS = "markets"
    ENTITY_DETAIL = "entity_detail"
    GLOBAL = "global"
    EXCHANGE_RATES = "exchange_rates"
    HISTORY = "history"


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cache entry. Replaced wholesale, never mutated."""

    data: Any
    captured_at: float
    provenance: Provenance

    def age(self, now: float) -> float:
        return now - self.captured_at


@dataclass(frozen=True)
class UnifiedResult:
    """Payload plus a label naming where it came from."""

    data: Any
    source: str

    @property
    def provenance(self) -> Provenance:
        return Provenance(self.source.rsplit("-", 1)[-1])

    def labelled(self, provider_name: str) -> "UnifiedResult":
        return UnifiedResult(data=self.data, source=f"{provider_name}-{self.provenance.value}")


@dataclass
class ProviderHealth:
    """Mutable health counters for a single source inside the aggregator."""

    provider_name: str
    ok_count: int = 0
    fail_count: int = 0
    last_ok_at: Optional[str] = None
    last_source: Optional[str] = None
    last_error: Optional[str] = None

    def record_success(self, source: str) -> None:
        self.ok_count += 1
        self.last_ok_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self.last_source = source
        self.last_error = None

    def record_failure(self, error: str) -> None:
        self.fail_count += 1
        self.last_error = error[:500]


@runtime_checkable
class MarketSource(Protocol):
    """Protocol for sources the aggregator can chain."""

    @property
    def provider_name(self) -> str: ...

    def get_markets(self, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        """Market listing in CoinGecko /coins/markets shape."""
        ...

    def get_coin_details(self, coin_id: str, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        """Single coin in CoinGecko /coins/{id} shape."""
        ...

    def get_global_data(self) -> UnifiedResult:
        """Global snapshot in CoinGecko /global shape."""
        ...

    def invalidate_cache(self, family: Optional[ResourceFamily] = None, key: Optional[str] = None) -> int: ...

    def cache_stats(self) -> Dict[str, Dict[str, Any]]: ...
