"""
Tests for the CoinAPI client: native resources and the CoinGecko-compatible
views (ranking, pagination, currency conversion, provenance composition).
"""
from __future__ import annotations

import pytest

from crypto_market_data.core.errors import InvalidParamsError, MarketDataError
from crypto_market_data.providers.base import ResourceFamily
from crypto_market_data.providers.coinapi import (
    API_KEY_HEADER,
    COINAPI_BASE_URL,
    CoinApiClient,
    asset_id_for,
)
from crypto_market_data.providers.translate import MARKET_FIELDS
from tests.fakes import FakeClock, FakeSession, RecordingSleep, ok, server_error
from tests.fakes.sources import COINAPI_CANDLES, COINAPI_USD_RATES, coinapi_assets


def make_client(session, clock=None, api_key="test-key"):
    return CoinApiClient(
        api_key=api_key,
        session=session,
        clock=clock or FakeClock(),
        sleep=RecordingSleep(),
    )


def routed(**routes):
    return FakeSession(routes={frag: [resp] for frag, resp in routes.items()})


class TestNativeResources:
    def test_assets_keep_only_crypto(self):
        session = FakeSession(ok(coinapi_assets(3)))
        result = make_client(session).get_all_assets()
        assert result.source == "live"
        assert "USD" not in [a["asset_id"] for a in result.data]
        call = session.calls[0]
        assert call["url"] == f"{COINAPI_BASE_URL}/assets"
        assert call["headers"][API_KEY_HEADER] == "test-key"

    def test_exchange_rates_cached_per_base(self):
        session = FakeSession(ok(COINAPI_USD_RATES))
        client = make_client(session)
        client.get_exchange_rates("usd")
        assert client.get_exchange_rates("USD").source == "cache"
        assert session.call_count == 1
        assert session.calls[0]["url"].endswith("/exchangerate/USD")
        assert not session.calls[0]["params"]

    def test_history_period_alias_and_limit(self):
        session = FakeSession(ok(COINAPI_CANDLES))
        make_client(session).get_asset_history("btc", "7d", 3)
        call = session.calls[0]
        assert call["url"] == f"{COINAPI_BASE_URL}/ohlcv/BTC/USD/latest"
        assert call["params"] == {"period_id": "7DAY", "limit": "3"}

    @pytest.mark.parametrize("limit", [0, -2, "7", True])
    def test_history_rejects_bad_limit(self, limit):
        with pytest.raises(InvalidParamsError):
            make_client(FakeSession(ok([]))).get_asset_history("BTC", "1DAY", limit)

    def test_history_invalidation_by_asset(self):
        session = FakeSession(ok(COINAPI_CANDLES))
        client = make_client(session)
        client.get_asset_history("BTC", "1DAY", 7)
        client.get_asset_history("BTC", "1HRS", 24)
        client.get_asset_history("ETH", "1DAY", 7)
        assert client.invalidate_cache(ResourceFamily.HISTORY, "BTC") == 2
        assert client.cache_stats()["history"]["entries"] == 1

    def test_missing_key_degrades_to_seed_data(self):
        session = FakeSession(server_error(401))
        result = make_client(session, api_key=None).get_all_assets()
        assert result.source == "fallback"
        assert result.data[0]["asset_id"] == "BTC"

    def test_asset_id_mapping(self):
        assert asset_id_for("bitcoin") == "BTC"
        assert asset_id_for("Ethereum") == "ETH"
        assert asset_id_for("pepe") == "PEPE"


class TestCompatibleMarkets:
    def test_rows_carry_coingecko_fields(self):
        client = make_client(FakeSession(ok(coinapi_assets())))
        result = client.get_markets({"per_page": 5})
        assert len(result.data) == 5
        for row in result.data:
            assert tuple(row) == MARKET_FIELDS
            assert row["price_change_percentage_24h"] == 0
            assert row["high_24h"] == 0

    def test_page_two_is_ranks_eleven_to_twenty(self):
        client = make_client(FakeSession(ok(coinapi_assets())))
        rows = client.get_markets({"page": 2, "per_page": 10}).data
        assert [r["symbol"] for r in rows] == [f"a{i:02d}" for i in range(10, 20)]
        assert [r["market_cap_rank"] for r in rows] == list(range(11, 21))

    def test_filters_dust_and_fiat(self):
        client = make_client(FakeSession(ok(coinapi_assets(3))))
        ids = [r["id"] for r in client.get_markets({"per_page": 50}).data]
        assert ids == ["a00", "a01", "a02"]

    def test_page_beyond_end_is_empty(self):
        client = make_client(FakeSession(ok(coinapi_assets(3))))
        assert client.get_markets({"page": 9}).data == []

    def test_non_usd_converted_through_exchange_rates(self):
        session = routed(**{"/assets": ok(coinapi_assets(2)), "/exchangerate/": ok(COINAPI_USD_RATES)})
        client = make_client(session)
        usd = client.get_markets({"vs_currency": "usd"}).data[0]
        eur = client.get_markets({"vs_currency": "eur"}).data[0]
        assert eur["current_price"] == pytest.approx(usd["current_price"] * 0.9)
        assert eur["market_cap"] == pytest.approx(usd["market_cap"] * 0.9)
        assert session.calls_to("/assets") == 1

    def test_unknown_currency_is_invalid(self):
        session = routed(**{"/assets": ok(coinapi_assets(2)), "/exchangerate/": ok(COINAPI_USD_RATES)})
        with pytest.raises(InvalidParamsError):
            make_client(session).get_markets({"vs_currency": "xyz"})

    def test_currency_missing_from_seed_rates_is_an_outage(self):
        session = routed(**{"/assets": ok(coinapi_assets(2)), "/exchangerate/": server_error()})
        with pytest.raises(MarketDataError) as info:
            make_client(session).get_markets({"vs_currency": "cad"})
        assert not isinstance(info.value, InvalidParamsError)

    def test_currency_in_seed_rates_is_served_as_fallback(self):
        session = FakeSession(server_error())
        result = make_client(session).get_markets({"vs_currency": "eur"})
        assert result.source == "fallback"
        assert result.data

    def test_sparkline_requested_adds_empty_series(self):
        client = make_client(FakeSession(ok(coinapi_assets(3))))
        rows = client.get_markets({"sparkline": True}).data
        assert all(row["sparkline_in_7d"] == {"price": []} for row in rows)
        assert "sparkline_in_7d" not in client.get_markets({"sparkline": False}).data[0]

    def test_provenance_is_worst_of_inputs(self):
        clock = FakeClock()
        session = routed(**{"/assets": ok(coinapi_assets(2)), "/exchangerate/": server_error()})
        client = make_client(session, clock)
        client.get_all_assets()
        result = client.get_markets({"vs_currency": "eur"})
        # Assets come from cache, rates from seed data.
        assert result.source == "fallback"
        assert client.get_markets({"vs_currency": "usd"}).source == "cache"


class TestCompatibleDetailsAndGlobal:
    def test_coin_details_from_candles(self):
        session = FakeSession(ok(COINAPI_CANDLES))
        result = make_client(session).get_coin_details("bitcoin")
        assert "/ohlcv/BTC/USD/latest" in session.calls[0]["url"]
        assert session.calls[0]["params"] == {"period_id": "1DAY", "limit": "30"}
        md = result.data["market_data"]
        assert result.data["id"] == "bitcoin"
        assert md["current_price"]["usd"] == 50000.0
        assert md["price_change_24h"] == 10000.0
        assert md["price_change_percentage_24h"] == pytest.approx(25.0)
        assert md["sparkline_7d"]["price"] == [38000.0, 40000.0, 50000.0]

    def test_global_dominance(self):
        client = make_client(FakeSession(ok(coinapi_assets(10))))
        data = client.get_global_data().data["data"]
        assert data["active_cryptocurrencies"] == 11  # includes DUST
        assert list(data["market_cap_percentage"]) == ["a00", "a01", "a02", "a03", "a04"]
        assert sum(data["market_cap_percentage"].values()) < 100

    def test_compat_views_never_raise_on_outage(self):
        client = make_client(FakeSession(server_error()))
        assert client.get_markets().source == "fallback"
        assert client.get_coin_details("bitcoin").source == "fallback"
        assert client.get_global_data().source == "fallback"
