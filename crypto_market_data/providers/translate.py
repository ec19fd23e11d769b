"""
Translate CoinAPI payloads into the CoinGecko shapes callers consume.

CoinAPI reports neither market cap nor 24h change for assets. Market cap is
estimated as volume_1day_usd * price_usd (used for ranking only); fields
CoinAPI cannot supply are zero-filled so every row has the same keys as a
CoinGecko /coins/markets row.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.errors import ResponseFormatError
from ..timeutils import now_epoch_ms, now_utc_iso

MIN_VOLUME_1DAY_USD = 10_000
DOMINANCE_TOP_N = 5

# Keys every translated market row carries, in CoinGecko order.
MARKET_FIELDS = (
    "id",
    "symbol",
    "name",
    "current_price",
    "market_cap",
    "market_cap_rank",
    "total_volume",
    "high_24h",
    "low_24h",
    "price_change_24h",
    "price_change_percentage_24h",
    "circulating_supply",
    "total_supply",
    "max_supply",
    "last_updated",
)


def _num(x: Any) -> float:
    if x is None:
        return 0.0
    try:
        return float(x)
    except (TypeError, ValueError):
        return 0.0


def _asset_id(asset: Mapping[str, Any]) -> str:
    asset_id = asset.get("asset_id") if isinstance(asset, Mapping) else None
    if not asset_id:
        raise ResponseFormatError(f"CoinAPI asset without asset_id: {asset!r}"[:200])
    return str(asset_id)


def estimated_market_cap(asset: Mapping[str, Any]) -> float:
    return _num(asset.get("volume_1day_usd")) * _num(asset.get("price_usd"))


def crypto_only(assets: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    if not isinstance(assets, list):
        raise ResponseFormatError(f"CoinAPI /assets returned {type(assets).__name__}, expected list")
    return [a for a in assets if isinstance(a, Mapping) and a.get("type_is_crypto") == 1]


def rank_assets(assets: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Tradeable crypto assets, descending by estimated market cap (stable on ties)."""
    eligible = [
        a
        for a in crypto_only(list(assets))
        if _num(a.get("price_usd")) > 0 and _num(a.get("volume_1day_usd")) > MIN_VOLUME_1DAY_USD
    ]
    return sorted(eligible, key=estimated_market_cap, reverse=True)


def paginate(items: Sequence[Any], page: int, per_page: int) -> List[Any]:
    start = (page - 1) * per_page
    return list(items[start:start + per_page])


def usd_rate_for(rates_payload: Any, currency: str) -> Optional[float]:
    """Units of `currency` per 1 USD from an /exchangerate/USD payload; None if not quoted."""
    if currency.upper() == "USD":
        return 1.0
    if not isinstance(rates_payload, Mapping):
        raise ResponseFormatError("CoinAPI exchange rate payload is not an object")
    for row in rates_payload.get("rates") or []:
        if isinstance(row, Mapping) and str(row.get("asset_id_quote", "")).upper() == currency.upper():
            rate = _num(row.get("rate"))
            return rate if rate > 0 else None
    return None


def assets_to_markets(
    ranked: Sequence[Mapping[str, Any]],
    page: int = 1,
    per_page: int = 20,
    vs_rate: float = 1.0,
    now_iso: Optional[str] = None,
    sparkline: bool = False,
) -> List[Dict[str, Any]]:
    """
    Slice an already-ranked asset list and reshape each row like CoinGecko.
    market_cap_rank is global: page 2 with per_page 10 starts at rank 11.
    With `sparkline`, rows carry an empty `sparkline_in_7d` (CoinAPI has no series).
    """
    stamp = now_iso or now_utc_iso()
    start = (page - 1) * per_page
    rows: List[Dict[str, Any]] = []
    for offset, asset in enumerate(paginate(ranked, page, per_page)):
        asset_id = _asset_id(asset)
        price_usd = _num(asset.get("price_usd"))
        volume_usd = _num(asset.get("volume_1day_usd"))
        rows.append(
            {
                "id": asset_id.lower(),
                "symbol": asset_id.lower(),
                "name": asset.get("name") or asset_id,
                "current_price": price_usd * vs_rate,
                "market_cap": estimated_market_cap(asset) * vs_rate,
                "market_cap_rank": start + offset + 1,
                "total_volume": volume_usd * vs_rate,
                "high_24h": 0,
                "low_24h": 0,
                "price_change_24h": 0,
                "price_change_percentage_24h": 0,
                "circulating_supply": volume_usd / (price_usd or 1),
                "total_supply": None,
                "max_supply": None,
                "last_updated": stamp,
            }
        )
        if sparkline:
            rows[-1]["sparkline_in_7d"] = {"price": []}
    return rows


def history_to_coin_details(
    coin_id: str,
    candles: Sequence[Mapping[str, Any]],
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a /coins/{id}-shaped document from newest-first daily candles.
    24h change compares the two most recent closes; zero with fewer than two.
    """
    if not isinstance(candles, list):
        raise ResponseFormatError(f"CoinAPI OHLCV returned {type(candles).__name__}, expected list")
    if not all(isinstance(c, Mapping) for c in candles):
        raise ResponseFormatError("CoinAPI OHLCV contains a non-object candle")
    closes = [_num(c.get("price_close")) for c in candles]
    latest = closes[0] if closes else 0.0
    change = latest - closes[1] if len(closes) > 1 else 0.0
    change_pct = (change / closes[1]) * 100 if len(closes) > 1 and closes[1] else 0.0
    return {
        "id": coin_id,
        "symbol": coin_id,
        "name": coin_id[:1].upper() + coin_id[1:],
        "description": {"en": "Data provided by CoinAPI."},
        "market_data": {
            "current_price": {"usd": latest},
            "market_cap": {"usd": 0},
            "total_volume": {"usd": 0},
            "high_24h": {"usd": _num(candles[0].get("price_high")) if candles else 0},
            "low_24h": {"usd": _num(candles[0].get("price_low")) if candles else 0},
            "price_change_24h": change,
            "price_change_percentage_24h": change_pct,
            "circulating_supply": 0,
            "total_supply": None,
            "max_supply": None,
            "sparkline_7d": {"price": list(reversed(closes[:7]))},
        },
        "last_updated": now_iso or now_utc_iso(),
    }


def assets_to_global(assets: Sequence[Mapping[str, Any]], now_ms: Optional[int] = None) -> Dict[str, Any]:
    """Global snapshot: totals over crypto assets and dominance of the top five."""
    cryptos = crypto_only(list(assets))
    total_cap = sum(estimated_market_cap(a) for a in cryptos)
    total_volume = sum(_num(a.get("volume_1day_usd")) for a in cryptos)
    top = sorted(cryptos, key=estimated_market_cap, reverse=True)[:DOMINANCE_TOP_N]
    dominance: Dict[str, float] = {}
    for asset in top:
        share = (estimated_market_cap(asset) / total_cap) * 100 if total_cap else 0.0
        dominance[_asset_id(asset).lower()] = round(share, 2)
    return {
        "data": {
            "active_cryptocurrencies": len(cryptos),
            "total_market_cap": {"usd": total_cap},
            "total_volume": {"usd": total_volume},
            "market_cap_percentage": dominance,
            "market_cap_change_percentage_24h_usd": 0,
            "updated_at": (now_ms if now_ms is not None else now_epoch_ms()) // 1000,
        }
    }
