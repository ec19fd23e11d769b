"""
CoinAPI market data client (secondary source, different schema).

Native endpoints (API key required, header X-CoinAPI-Key):
  GET https://rest.coinapi.io/v1/assets
  GET https://rest.coinapi.io/v1/exchangerate/{base}
  GET https://rest.coinapi.io/v1/ohlcv/{asset_id}/USD/latest?period_id=..&limit=..

get_markets / get_coin_details / get_global_data reshape those payloads into
the CoinGecko contract via translate.py, so the aggregator can swap sources
without callers noticing.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..core.errors import InvalidParamsError, MarketDataError
from .base import Provenance, ResourceFamily, UnifiedResult
from .client import UpstreamClient
from .params import normalize_market_params, require_id
from .seeds import COINAPI_SEEDS
from .translate import (
    assets_to_global,
    assets_to_markets,
    crypto_only,
    history_to_coin_details,
    rank_assets,
    usd_rate_for,
)

logger = logging.getLogger(__name__)

COINAPI_BASE_URL = "https://rest.coinapi.io/v1"
API_KEY_HEADER = "X-CoinAPI-Key"
DETAIL_HISTORY_DAYS = 30

_PERIOD_ALIASES = {
    "1h": "1HRS",
    "1d": "1DAY",
    "7d": "7DAY",
    "30d": "30DAY",
}

# CoinGecko ids callers use -> CoinAPI asset ids. Unknown ids are upper-cased.
_COIN_ID_TO_ASSET = {
    "bitcoin": "BTC",
    "ethereum": "ETH",
    "binancecoin": "BNB",
    "solana": "SOL",
    "ripple": "XRP",
    "dogecoin": "DOGE",
    "cardano": "ADA",
    "tether": "USDT",
    "usd-coin": "USDC",
}


def _expect_list(payload: Any) -> list:
    if not isinstance(payload, list):
        raise TypeError(f"expected a list, got {type(payload).__name__}")
    return payload


def _expect_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise TypeError(f"expected an object, got {type(payload).__name__}")
    return payload


def asset_id_for(coin_id: str) -> str:
    return _COIN_ID_TO_ASSET.get(coin_id.lower(), coin_id.upper())


class CoinApiClient(UpstreamClient):
    """Cached, retrying CoinAPI client with CoinGecko-compatible views."""

    provider_name = "coinapi"
    families = (ResourceFamily.MARKETS, ResourceFamily.EXCHANGE_RATES, ResourceFamily.HISTORY)
    scoped_families = (ResourceFamily.HISTORY,)

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs: Any) -> None:
        headers = {}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        else:
            logger.warning("No CoinAPI key configured; requests will be rejected and served from fallback data")
        super().__init__(base_url or COINAPI_BASE_URL, headers=headers, seeds=COINAPI_SEEDS, **kwargs)

    # -- native CoinAPI resources ------------------------------------------

    def get_all_assets(self) -> UnifiedResult:
        """All crypto assets (type_is_crypto == 1) in CoinAPI shape."""
        return self.fetch_resource(
            ResourceFamily.MARKETS,
            {},
            path="/assets",
            parse=crypto_only,
        )

    def get_exchange_rates(self, base: str = "USD") -> UnifiedResult:
        base = require_id("base", base).upper()
        return self.fetch_resource(
            ResourceFamily.EXCHANGE_RATES,
            {"base": base},
            path=f"/exchangerate/{base}",
            query={},
            seed_context={"base": base},
            parse=_expect_object,
        )

    def get_asset_history(self, asset_id: str, period: str = "1DAY", limit: int = 7) -> UnifiedResult:
        """Newest-first OHLCV candles against USD."""
        asset_id = require_id("asset_id", asset_id).upper()
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidParamsError(f"limit must be a positive integer, got {limit!r}")
        api_period = _PERIOD_ALIASES.get(period.lower(), period)
        query = {"period_id": api_period, "limit": limit}
        return self.fetch_resource(
            ResourceFamily.HISTORY,
            query,
            path=f"/ohlcv/{asset_id}/USD/latest",
            prefix=asset_id,
            seed_context={"asset_id": asset_id, "limit": limit},
            parse=_expect_list,
        )

    # -- CoinGecko-compatible views ----------------------------------------

    def get_markets(self, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        """
        Listing ranked by estimated market cap, paginated like CoinGecko.
        Non-USD vs_currency is converted through /exchangerate/USD.
        """
        query = normalize_market_params(params)
        assets = self.get_all_assets()
        provenances = [assets.provenance]

        vs_rate = 1.0
        if query["vs_currency"] != "usd":
            rates = self.get_exchange_rates("USD")
            provenances.append(rates.provenance)
            rate = usd_rate_for(rates.data, query["vs_currency"])
            if rate is None:
                # Seed rates only quote a few currencies; a miss there is an outage, not a bad param.
                if rates.provenance is Provenance.FALLBACK:
                    raise MarketDataError(
                        f"CoinAPI exchange rates unavailable for vs_currency '{query['vs_currency']}'"
                    )
                raise InvalidParamsError(f"CoinAPI has no USD rate for vs_currency '{query['vs_currency']}'")
            vs_rate = rate

        data = assets_to_markets(
            rank_assets(assets.data),
            page=query.get("page", 1),
            per_page=query["per_page"],
            vs_rate=vs_rate,
            sparkline=query.get("sparkline", False),
        )
        return UnifiedResult(data, Provenance.worst(*provenances).value)

    def get_coin_details(self, coin_id: str, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        coin_id = require_id("coin_id", coin_id)
        history = self.get_asset_history(asset_id_for(coin_id), "1DAY", DETAIL_HISTORY_DAYS)
        return UnifiedResult(history_to_coin_details(coin_id, history.data), history.source)

    def get_global_data(self) -> UnifiedResult:
        assets = self.get_all_assets()
        return UnifiedResult(assets_to_global(assets.data), assets.source)
