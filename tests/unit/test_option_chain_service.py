"""
Unit Tests for the Option Chain Service

These tests verify that the OptionChainService:
- Normalizes and filters each asset's chain
- Fetches candles for the top calls and puts only when enabled
- Isolates failures per asset and per instrument

Run with:
    pytest tests/unit/test_option_chain_service.py -v
"""

import pytest

from core.schemas import FetchSettings
from exchanges.delta.api_client import DeltaAPIClient
from exchanges.delta.errors import DeltaAPIError
from services.option_chain_service import OptionChainService


NOW = 1700000000


def ticker(symbol, oi):
    return {"symbol": symbol, "product_id": 1, "oi": str(oi), "mark_price": "10"}


class FakeDeltaClient:
    """Stands in for DeltaAPIClient with canned per-asset chains"""

    base_url = "https://api.example.test"

    def __init__(self, chains, failing_assets=(), failing_symbols=()):
        self.chains = chains
        self.failing_assets = set(failing_assets)
        self.failing_symbols = set(failing_symbols)
        self.candle_calls = []

    async def get_option_chain(self, asset, expiry_date=""):
        if asset in self.failing_assets:
            raise DeltaAPIError(500, "/v2/tickers", "internal")
        return self.chains.get(asset, [])

    async def get_ohlc_candles(self, symbol, resolution, start_sec, end_sec):
        self.candle_calls.append((symbol, resolution, start_sec, end_sec))
        if symbol in self.failing_symbols:
            raise DeltaAPIError(404, "/v2/history/candles", "not_found")
        return {"t": [start_sec], "o": [1], "h": [2], "l": [1], "c": [2], "v": [5]}


CHAINS = {
    "BTC": [
        ticker("C-BTC-95200-200225", 10),
        ticker("P-BTC-95200-200225", 0),
        ticker("C-BTC-96000-200225", 30),
        ticker("P-BTC-90000-200225", 20),
        ticker("bogus", 99),
    ],
    "ETH": [
        ticker("C-ETH-2800-280325", 7),
    ],
}


class TestFetchAsset:
    """Tests for single-asset fetches"""

    @pytest.mark.asyncio
    async def test_records_are_normalized_and_filtered(self):
        service = OptionChainService(FakeDeltaClient(CHAINS), clock=lambda: NOW)

        result = await service.fetch_asset("BTC", FetchSettings(assets=["BTC"], min_open_interest=5))

        assert [r.symbol for r in result.records] == [
            "C-BTC-95200-200225", "C-BTC-96000-200225", "P-BTC-90000-200225",
        ]
        assert result.candlestick_data == []

    @pytest.mark.asyncio
    async def test_candles_for_top_instruments_per_type(self):
        client = FakeDeltaClient(CHAINS)
        service = OptionChainService(client, clock=lambda: NOW)
        settings = FetchSettings(assets=["BTC"], candlestick=True, top_per_type=1,
                                 resolution=15, lookback_hours=2)

        result = await service.fetch_asset("BTC", settings)

        assert [c.symbol for c in result.candlestick_data] == ["C-BTC-96000-200225", "P-BTC-90000-200225"]
        assert [c.option_type for c in result.candlestick_data] == ["call", "put"]
        symbol, resolution, start, end = client.candle_calls[0]
        assert resolution == "15m"
        assert end == NOW
        assert start == NOW - 2 * 3600

    @pytest.mark.asyncio
    async def test_failed_candle_request_drops_only_that_instrument(self):
        client = FakeDeltaClient(CHAINS, failing_symbols={"C-BTC-96000-200225"})
        service = OptionChainService(client, clock=lambda: NOW)
        settings = FetchSettings(assets=["BTC"], candlestick=True, top_per_type=2)

        result = await service.fetch_asset("BTC", settings)

        symbols = [c.symbol for c in result.candlestick_data]
        assert "C-BTC-96000-200225" not in symbols
        assert "C-BTC-95200-200225" in symbols
        assert len(result.records) == 4


class TestFetchOptionChains:
    """Tests for multi-asset fetches"""

    @pytest.mark.asyncio
    async def test_all_assets_succeed(self):
        service = OptionChainService(FakeDeltaClient(CHAINS), clock=lambda: NOW)

        report = await service.fetch_option_chains(FetchSettings(assets=["btc", "ETH"]))

        assert list(report.results) == ["BTC", "ETH"]
        assert report.errors == []
        assert len(report.results["ETH"].records) == 1

    @pytest.mark.asyncio
    async def test_one_failing_asset_does_not_blank_others(self):
        service = OptionChainService(FakeDeltaClient(CHAINS, failing_assets={"BTC"}), clock=lambda: NOW)

        report = await service.fetch_option_chains(FetchSettings(assets=["BTC", "ETH"]))

        assert list(report.results) == ["ETH"]
        assert len(report.errors) == 1
        assert report.errors[0].startswith("BTC: HTTP 500 for /v2/tickers")

    @pytest.mark.asyncio
    async def test_empty_chain_is_not_an_error(self):
        service = OptionChainService(FakeDeltaClient({}), clock=lambda: NOW)

        report = await service.fetch_option_chains(FetchSettings(assets=["SOL"], candlestick=True))

        assert report.errors == []
        assert report.results["SOL"].records == []
        assert report.results["SOL"].candlestick_data == []

    @pytest.mark.asyncio
    async def test_invalid_metric_raises(self):
        service = OptionChainService(FakeDeltaClient(CHAINS))

        with pytest.raises(ValueError):
            await service.fetch_option_chains(FetchSettings(metric="not_a_field"))

    @pytest.mark.asyncio
    async def test_invalid_resolution_raises_when_candles_enabled(self):
        service = OptionChainService(FakeDeltaClient(CHAINS))

        with pytest.raises(ValueError, match="Unsupported resolution"):
            await service.fetch_option_chains(FetchSettings(candlestick=True, resolution=7))


class RawResponse:
    """Minimal aiohttp response stand-in carrying raw bytes"""

    def __init__(self, status, body=b"", json_data=None):
        self.status = status
        self._body = body
        self._json_data = json_data

    async def json(self, content_type=None):
        return self._json_data

    async def text(self, errors="strict"):
        return self._body.decode("utf-8", errors=errors)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


class TestFailureIsolation:
    """Tests that one asset's failure never discards the others"""

    @pytest.mark.asyncio
    async def test_undecodable_gateway_page_for_one_asset(self):
        def mock_get(url, params=None, headers=None, timeout=None):
            if params["underlying_asset_symbols"] == "BTC":
                return RawResponse(502, body=b"<html>\xff\xfe Bad Gateway</html>")
            return RawResponse(200, json_data={"success": True, "result": CHAINS["ETH"]})

        async with DeltaAPIClient(base_url="https://api.example.test", retry_delay=0) as client:
            client.session.get = mock_get
            service = OptionChainService(client, clock=lambda: NOW)

            report = await service.fetch_option_chains(FetchSettings(assets=["BTC", "ETH"]))

        assert list(report.results) == ["ETH"]
        assert len(report.results["ETH"].records) == 1
        assert len(report.errors) == 1
        assert report.errors[0].startswith("BTC: HTTP 502 for /v2/tickers")

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_reported_per_asset(self):
        class BrokenClient(FakeDeltaClient):
            async def get_option_chain(self, asset, expiry_date=""):
                if asset == "ETH":
                    raise RuntimeError("boom")
                return await super().get_option_chain(asset, expiry_date)

        service = OptionChainService(BrokenClient(CHAINS), clock=lambda: NOW)

        report = await service.fetch_option_chains(FetchSettings(assets=["ETH", "BTC"]))

        assert list(report.results) == ["BTC"]
        assert report.errors == ["ETH: boom"]
