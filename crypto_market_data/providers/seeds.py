"""
Seed data: static, plausible payloads served when an upstream is unreachable
and nothing has ever been cached for the key.

One table per provider, keyed by ResourceFamily. Each entry is a builder
called with the request context (params, coin/asset id) and returns a fresh
payload in that provider's native shape. Sparklines and candles come from a
Random seeded by the asset id, so the same key always yields the same series.
"""
from __future__ import annotations

import random
from typing import Any, Callable, Dict, List, Optional

from ..timeutils import now_epoch_ms, now_utc_iso
from .base import ResourceFamily

SeedBuilder = Callable[..., Any]

# id, symbol, name, price, market cap, rank, volume, 24h change %, circulating, total, max
_SEED_COINS: List[tuple] = [
    ("bitcoin", "btc", "Bitcoin", 60234.21, 1183383834660, 1, 28584304842, 2.4, 19460000, 21000000, 21000000),
    ("ethereum", "eth", "Ethereum", 3112.45, 374235489302, 2, 14378954321, 1.8, 120250981, 120250981, None),
    ("binancecoin", "bnb", "BNB", 566.78, 87312456789, 3, 1987654321, 2.9, 153856150, 163276975, 163276975),
    ("solana", "sol", "Solana", 124.57, 53791234567, 4, 1423456789, 2.7, 430973731, 539201727, None),
    ("dogecoin", "doge", "Dogecoin", 0.14523, 19435678901, 8, 987654321, 3.6, 133737237990, 133737237990, None),
]

_SPARKLINE_VOLATILITY = {"bitcoin": 0.05, "ethereum": 0.04, "binancecoin": 0.03, "solana": 0.06, "dogecoin": 0.08}

_COIN_DESCRIPTIONS = {
    "bitcoin": "Bitcoin is the first decentralized peer-to-peer digital currency, "
    "with a fixed supply of 21 million coins.",
    "ethereum": "Ethereum is a smart contract platform; ETH pays for computation "
    "and transaction fees on the network.",
}

_UNAVAILABLE_DESCRIPTION = "Data temporarily unavailable due to API limitations. Please check again later."


def random_walk(base_price: float, points: int, volatility: float, seed: str) -> List[float]:
    """Deterministic bounded random walk used for sparklines and candle closes."""
    rng = random.Random(seed)
    prices: List[float] = []
    current = base_price
    for _ in range(points):
        current = current * (1 + (rng.random() * 2 - 1) * volatility)
        if current <= 0:
            current = base_price * 0.1
        prices.append(current)
    return prices


# ---------------------------------------------------------------------------
# CoinGecko-shaped seeds
# ---------------------------------------------------------------------------


def _seed_market_row(row: tuple) -> Dict[str, Any]:
    coin_id, symbol, name, price, mcap, rank, volume, change_pct, circ, total, max_supply = row
    return {
        "id": coin_id,
        "symbol": symbol,
        "name": name,
        "current_price": price,
        "market_cap": mcap,
        "market_cap_rank": rank,
        "total_volume": volume,
        "high_24h": round(price * 1.017, 8),
        "low_24h": round(price * 0.982, 8),
        "price_change_24h": round(price * change_pct / 100, 8),
        "price_change_percentage_24h": change_pct,
        "circulating_supply": circ,
        "total_supply": total,
        "max_supply": max_supply,
        "sparkline_in_7d": {
            "price": random_walk(price, 7 * 24, _SPARKLINE_VOLATILITY.get(coin_id, 0.05), coin_id),
        },
        "last_updated": now_utc_iso(),
    }


def seed_coingecko_markets(params: Optional[Dict[str, Any]] = None, **_: Any) -> List[Dict[str, Any]]:
    """Seed listing sliced to the requested page; pages past the seed set are empty."""
    params = params or {}
    per_page = int(params.get("per_page", len(_SEED_COINS)))
    start = (int(params.get("page", 1)) - 1) * per_page
    return [_seed_market_row(row) for row in _SEED_COINS[start:start + per_page]]


def seed_coingecko_coin_details(coin_id: str = "", **_: Any) -> Dict[str, Any]:
    known = {row[0]: row for row in _SEED_COINS if row[0] in _COIN_DESCRIPTIONS}
    if coin_id in known:
        _, symbol, name, price, mcap, _rank, volume, change_pct, circ, total, max_supply = known[coin_id]
        description = _COIN_DESCRIPTIONS[coin_id]
    else:
        symbol, name = coin_id[:4], coin_id[:1].upper() + coin_id[1:]
        price, mcap, volume, change_pct = 100.0, 10_000_000_000, 500_000_000, 5.0
        circ, total, max_supply = 100_000_000, 100_000_000, None
        description = _UNAVAILABLE_DESCRIPTION
    return {
        "id": coin_id,
        "symbol": symbol,
        "name": name,
        "description": {"en": description},
        "market_data": {
            "current_price": {"usd": price},
            "market_cap": {"usd": mcap},
            "total_volume": {"usd": volume},
            "high_24h": {"usd": round(price * 1.05, 8)},
            "low_24h": {"usd": round(price * 0.95, 8)},
            "price_change_24h": round(price * change_pct / 100, 8),
            "price_change_percentage_24h": change_pct,
            "circulating_supply": circ,
            "total_supply": total,
            "max_supply": max_supply,
        },
        "last_updated": now_utc_iso(),
    }


def seed_coingecko_global(**_: Any) -> Dict[str, Any]:
    return {
        "data": {
            "active_cryptocurrencies": 10673,
            "markets": 877,
            "total_market_cap": {"usd": 2521958762967},
            "total_volume": {"usd": 82147287408},
            "market_cap_percentage": {"btc": 46.89, "eth": 16.25, "bnb": 3.62, "sol": 3.14, "xrp": 2.54},
            "market_cap_change_percentage_24h_usd": 3.21,
            "updated_at": now_epoch_ms() // 1000,
        }
    }


COINGECKO_SEEDS: Dict[ResourceFamily, SeedBuilder] = {
    ResourceFamily.MARKETS: seed_coingecko_markets,
    ResourceFamily.ENTITY_DETAIL: seed_coingecko_coin_details,
    ResourceFamily.GLOBAL: seed_coingecko_global,
}


# ---------------------------------------------------------------------------
# CoinAPI-shaped seeds
# ---------------------------------------------------------------------------

# asset_id, name, price_usd, volume_1day_usd
_SEED_ASSETS: List[tuple] = [
    ("BTC", "Bitcoin", 60234.21, 28584304842.0),
    ("ETH", "Ethereum", 3112.45, 14378954321.0),
    ("BNB", "BNB", 566.78, 1987654321.0),
    ("SOL", "Solana", 124.57, 1423456789.0),
    ("XRP", "XRP", 0.52, 1102345678.0),
    ("DOGE", "Dogecoin", 0.14523, 987654321.0),
]

_SEED_USD_RATES = {"EUR": 0.92, "GBP": 0.79, "JPY": 151.2, "BTC": 1 / 60234.21, "ETH": 1 / 3112.45}


def seed_coinapi_assets(**_: Any) -> List[Dict[str, Any]]:
    updated = now_utc_iso()
    return [
        {
            "asset_id": asset_id,
            "name": name,
            "type_is_crypto": 1,
            "price_usd": price,
            "volume_1day_usd": volume,
            "data_end": updated[:10],
        }
        for asset_id, name, price, volume in _SEED_ASSETS
    ]


def seed_coinapi_exchange_rates(base: str = "USD", **_: Any) -> Dict[str, Any]:
    stamp = now_utc_iso()
    rates = _SEED_USD_RATES if base.upper() == "USD" else {}
    return {
        "asset_id_base": base.upper(),
        "rates": [{"time": stamp, "asset_id_quote": quote, "rate": rate} for quote, rate in rates.items()],
    }


def seed_coinapi_history(asset_id: str = "", limit: int = 7, **_: Any) -> List[Dict[str, Any]]:
    """Newest-first candles, like /ohlcv/{id}/USD/latest."""
    base = next((p for a, _n, p, _v in _SEED_ASSETS if a == asset_id.upper()), 100.0)
    closes = random_walk(base, max(int(limit), 1), 0.03, asset_id.upper())
    return [
        {
            "price_open": close,
            "price_high": close * 1.02,
            "price_low": close * 0.98,
            "price_close": close,
            "volume_traded": 0.0,
            "trades_count": 0,
        }
        for close in closes
    ]


COINAPI_SEEDS: Dict[ResourceFamily, SeedBuilder] = {
    ResourceFamily.MARKETS: seed_coinapi_assets,
    ResourceFamily.EXCHANGE_RATES: seed_coinapi_exchange_rates,
    ResourceFamily.HISTORY: seed_coinapi_history,
}
