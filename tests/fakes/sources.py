"""
Fake market data sources and canned upstream payloads for aggregator and
client tests. No live network.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from crypto_market_data.providers.base import ResourceFamily, UnifiedResult

COINGECKO_MARKETS = [
    {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "current_price": 50000.0,
        "market_cap": 980000000000,
        "market_cap_rank": 1,
        "total_volume": 30000000000,
        "high_24h": 51000.0,
        "low_24h": 49000.0,
        "price_change_24h": 500.0,
        "price_change_percentage_24h": 1.0,
        "circulating_supply": 19600000,
        "total_supply": 21000000,
        "max_supply": 21000000,
        "last_updated": "2026-01-01T00:00:00.000Z",
    },
    {
        "id": "ethereum",
        "symbol": "eth",
        "name": "Ethereum",
        "current_price": 3000.0,
        "market_cap": 360000000000,
        "market_cap_rank": 2,
        "total_volume": 15000000000,
        "high_24h": 3100.0,
        "low_24h": 2950.0,
        "price_change_24h": -20.0,
        "price_change_percentage_24h": -0.66,
        "circulating_supply": 120000000,
        "total_supply": 120000000,
        "max_supply": None,
        "last_updated": "2026-01-01T00:00:00.000Z",
    },
]

COINGECKO_GLOBAL = {
    "data": {
        "active_cryptocurrencies": 12000,
        "total_market_cap": {"usd": 2400000000000},
        "total_volume": {"usd": 90000000000},
        "market_cap_percentage": {"btc": 52.1, "eth": 15.3},
        "market_cap_change_percentage_24h_usd": 1.2,
        "updated_at": 1767225600,
    }
}


def coinapi_asset(asset_id: str, price: float, volume: float, crypto: int = 1) -> Dict[str, Any]:
    return {
        "asset_id": asset_id,
        "name": asset_id.title(),
        "type_is_crypto": crypto,
        "price_usd": price,
        "volume_1day_usd": volume,
    }


def coinapi_assets(n: int = 25) -> List[Dict[str, Any]]:
    """n crypto assets with strictly decreasing estimated market cap, plus noise rows."""
    assets = [coinapi_asset(f"A{i:02d}", price=100.0 - i, volume=1_000_000.0 - i * 1000) for i in range(n)]
    assets.append(coinapi_asset("USD", 1.0, 9e12, crypto=0))
    assets.append(coinapi_asset("DUST", 0.01, 50.0))
    return assets


COINAPI_USD_RATES = {
    "asset_id_base": "USD",
    "rates": [
        {"time": "2026-01-01T00:00:00.0000000Z", "asset_id_quote": "EUR", "rate": 0.9},
        {"time": "2026-01-01T00:00:00.0000000Z", "asset_id_quote": "GBP", "rate": 0.8},
    ],
}

COINAPI_CANDLES = [
    {"price_open": 49000.0, "price_high": 51000.0, "price_low": 48500.0, "price_close": 50000.0},
    {"price_open": 48000.0, "price_high": 49500.0, "price_low": 47000.0, "price_close": 40000.0},
    {"price_open": 47000.0, "price_high": 48500.0, "price_low": 46000.0, "price_close": 38000.0},
]


class FakeSource:
    """Source that always answers with fixed data and provenance."""

    def __init__(self, name: str, data: Any = None, provenance: str = "live"):
        self._name = name
        self._data = data if data is not None else [{"id": "bitcoin"}]
        self._provenance = provenance
        self.call_count = 0
        self.invalidations = 0

    @property
    def provider_name(self) -> str:
        return self._name

    def _answer(self) -> UnifiedResult:
        self.call_count += 1
        return UnifiedResult(self._data, self._provenance)

    def get_markets(self, params=None) -> UnifiedResult:
        return self._answer()

    def get_coin_details(self, coin_id: str, params=None) -> UnifiedResult:
        return self._answer()

    def get_global_data(self) -> UnifiedResult:
        return self._answer()

    def invalidate_cache(self, family: Optional[ResourceFamily] = None, key: Optional[str] = None) -> int:
        self.invalidations += 1
        return 0

    def cache_stats(self) -> Dict[str, Dict[str, Any]]:
        return {}


class FakeSourceAlwaysFail(FakeSource):
    """Source whose every operation raises, like a client hitting a parse fault."""

    def _answer(self) -> UnifiedResult:
        self.call_count += 1
        raise RuntimeError(f"{self._name} always fails")
