"""
Integration smoke test: registry -> default service -> clients with mocked
HTTP. No live network calls.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from crypto_market_data import create_default_registry, create_market_data_service
from crypto_market_data.providers.base import MarketSource
from crypto_market_data.providers.coinapi import CoinApiClient
from crypto_market_data.providers.coingecko import CoinGeckoClient
from crypto_market_data.providers.registry import ProviderRegistry
from tests.fakes import FakeClock, FakeSession, FakeSource, RecordingSleep, ok, server_error
from tests.fakes.sources import COINGECKO_MARKETS, coinapi_assets


@pytest.fixture(autouse=True)
def no_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("CRYPTO_MARKET_DATA_CONFIG", str(tmp_path / "missing.yaml"))
    for name in ("COINGECKO_API_KEY", "VITE_COINGECKO_API_KEY", "COINAPI_KEY", "CRYPTO_MARKET_DATA_PRIORITY"):
        monkeypatch.delenv(name, raising=False)


class TestRegistry:
    def test_register_and_build_chain(self):
        registry = ProviderRegistry()
        registry.register("coingecko", CoinGeckoClient)
        registry.register("coinapi", lambda: CoinApiClient(api_key="k"))

        assert registry.names == ["coingecko", "coinapi"]
        chain = registry.build_chain(["coinapi", "nope", "coingecko"])
        assert [s.provider_name for s in chain] == ["coinapi", "coingecko"]
        assert all(isinstance(s, MarketSource) for s in chain)

    def test_instances_are_reused(self):
        registry = ProviderRegistry()
        registry.register("coingecko", CoinGeckoClient)
        assert registry.get("coingecko") is registry.get("coingecko")

    def test_ready_instance_kept_as_is(self):
        source = FakeSource("fake")
        registry = ProviderRegistry()
        registry.register("fake", source)
        assert registry.get("fake") is source

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            ProviderRegistry().get("nope")


class TestDefaultService:
    def test_default_priority(self):
        service = create_market_data_service(
            create_default_registry(session=FakeSession(ok([])), clock=FakeClock(), sleep=RecordingSleep())
        )
        assert [s.provider_name for s in service.sources] == ["coingecko", "coinapi"]

    def test_env_priority(self, monkeypatch):
        monkeypatch.setenv("CRYPTO_MARKET_DATA_PRIORITY", "coinapi")
        service = create_market_data_service(create_default_registry(session=FakeSession(ok([]))))
        assert [s.provider_name for s in service.sources] == ["coinapi"]

    def test_configured_key_reaches_client(self, monkeypatch):
        monkeypatch.setenv("COINGECKO_API_KEY", "pro")
        session = FakeSession(ok(COINGECKO_MARKETS))
        service = create_market_data_service(
            create_default_registry(session=session, clock=FakeClock(), sleep=RecordingSleep())
        )
        service.get_markets()
        assert session.calls[0]["url"].startswith("https://pro-api.coingecko.com/")

    def test_mocked_session_end_to_end(self):
        resp = MagicMock()
        resp.status_code = 200
        resp.json.return_value = COINGECKO_MARKETS
        session = MagicMock()
        session.get.return_value = resp

        service = create_market_data_service(
            create_default_registry(session=session, clock=FakeClock(), sleep=RecordingSleep()),
            priority=["coingecko"],
        )
        result = service.get_markets({"vs_currency": "usd", "per_page": 2})
        assert result.source == "coingecko-live"
        assert result.data[0]["id"] == "bitcoin"
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"vs_currency": "usd", "per_page": "2"}

    def test_coinapi_only_chain_serves_seed_data_during_outage(self):
        sleep = RecordingSleep()
        service = create_market_data_service(
            create_default_registry(session=FakeSession(server_error()), clock=FakeClock(), sleep=sleep),
            priority=["coinapi"],
        )
        result = service.get_markets({"per_page": 3})
        assert result.source == "coinapi-fallback"
        assert [row["market_cap_rank"] for row in result.data] == [1, 2, 3]
        assert sleep.waits == [2.0, 4.0]

    def test_coinapi_compat_rows_from_live_assets(self):
        service = create_market_data_service(
            create_default_registry(session=FakeSession(ok(coinapi_assets())), clock=FakeClock()),
            priority=["coinapi"],
        )
        assert service.get_markets({"page": 2, "per_page": 10}).data[0]["market_cap_rank"] == 11
