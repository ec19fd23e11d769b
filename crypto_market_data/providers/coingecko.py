"""
CoinGecko market data client (primary source).

Uses the public CoinGecko API, or the Pro API when a key is configured:
  GET https://api.coingecko.com/api/v3/coins/markets
  GET https://api.coingecko.com/api/v3/coins/{id}
  GET https://api.coingecko.com/api/v3/global
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .base import ResourceFamily, UnifiedResult
from .client import UpstreamClient
from .params import normalize_keys, normalize_market_params, require_id
from .seeds import COINGECKO_SEEDS

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"
API_KEY_HEADER = "x-cg-pro-api-key"


def _expect_list(payload: Any) -> list:
    if not isinstance(payload, list):
        raise TypeError(f"expected a list of coins, got {type(payload).__name__}")
    return payload


def _expect_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise TypeError(f"expected an object, got {type(payload).__name__}")
    return payload


class CoinGeckoClient(UpstreamClient):
    """Cached, retrying CoinGecko client. Never raises for upstream outages."""

    provider_name = "coingecko"
    families = (ResourceFamily.MARKETS, ResourceFamily.ENTITY_DETAIL, ResourceFamily.GLOBAL)
    scoped_families = (ResourceFamily.ENTITY_DETAIL,)

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs: Any) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
            default_url = COINGECKO_PRO_BASE_URL
            logger.info("Using CoinGecko Pro API with key")
        else:
            default_url = COINGECKO_BASE_URL
            logger.info("Using CoinGecko free API tier")
        super().__init__(base_url or default_url, headers=headers, seeds=COINGECKO_SEEDS, **kwargs)

    def get_markets(self, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        """Coin listing with price, volume, market cap and rank."""
        query = normalize_market_params(params)
        return self.fetch_resource(
            ResourceFamily.MARKETS,
            query,
            path="/coins/markets",
            seed_context={"params": query},
            parse=_expect_list,
        )

    def get_coin_details(self, coin_id: str, params: Optional[Mapping[str, Any]] = None) -> UnifiedResult:
        coin_id = require_id("coin_id", coin_id)
        query = normalize_keys(params)
        return self.fetch_resource(
            ResourceFamily.ENTITY_DETAIL,
            query,
            path=f"/coins/{coin_id}",
            prefix=coin_id,
            seed_context={"coin_id": coin_id},
            parse=_expect_object,
        )

    def get_global_data(self) -> UnifiedResult:
        return self.fetch_resource(
            ResourceFamily.GLOBAL,
            {},
            path="/global",
            parse=_expect_object,
        )
