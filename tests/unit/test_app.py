"""
Unit Tests for the FastAPI Application

Routes are exercised with TestClient; the Delta client dependency is replaced
by a fake so no network access happens.

Run with:
    pytest tests/unit/test_app.py -v
"""

import csv
import io

import pytest
from fastapi.testclient import TestClient

from app.main import app, get_client
from exchanges.delta.errors import DeltaAPIError


TICKERS = [
    {"symbol": "C-BTC-95200-200225", "product_id": 1, "oi": "10", "mark_price": "1520.5",
     "spot_price": "96000", "greeks": {"delta": "0.61"}},
    {"symbol": "P-BTC-95200-200225", "product_id": 2, "oi": "0", "mark_price": "700"},
    {"symbol": "C-BTC-99000-280325", "product_id": 3, "oi": "4", "mark_price": "300"},
    {"symbol": "broken", "oi": "100"},
]


class FakeDeltaClient:
    base_url = "https://api.example.test"

    def __init__(self, fail=False):
        self.fail = fail

    async def get_option_chain(self, asset, expiry_date=""):
        if self.fail:
            raise DeltaAPIError(500, "/v2/tickers", "internal")
        return TICKERS if asset == "BTC" else []

    async def get_ohlc_candles(self, symbol, resolution, start_sec, end_sec):
        if symbol == "C-BTC-95200-200225":
            return {"t": [1700000000], "o": [10], "h": [12], "l": [9], "c": [11], "v": [100]}
        return {}


@pytest.fixture
def client():
    app.dependency_overrides[get_client] = lambda: FakeDeltaClient()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client():
    app.dependency_overrides[get_client] = lambda: FakeDeltaClient(fail=True)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSystemEndpoints:
    """Tests for system and catalogue routes"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_metrics_catalogue(self, client):
        values = [m["value"] for m in client.get("/options/metrics").json()]

        assert "mark_price" in values
        assert "vega" in values

    def test_resolutions_catalogue(self, client):
        values = [r["value"] for r in client.get("/options/resolutions").json()]

        assert values[0] == 1
        assert 10080 in values


class TestChainEndpoints:
    """Tests for option chain routes"""

    def test_chain_with_min_oi(self, client):
        response = client.get("/options/btc/chain", params={"min_oi": 5})

        assert response.status_code == 200
        data = response.json()
        assert [r["symbol"] for r in data] == ["C-BTC-95200-200225"]
        assert data[0]["strike"] == 95200
        assert data[0]["expiry_date"] == "2025-02-20"
        assert data[0]["bid_price"] is None

    def test_expiries(self, client):
        data = client.get("/options/BTC/expiries").json()

        assert [e["expiry_date"] for e in data] == ["2025-02-20", "2025-03-28"]

    def test_summary(self, client):
        data = client.get("/options/BTC/summary").json()

        assert data == {"strikes": 2, "expiries": 2, "contracts": 3, "spot_price": 96000.0}

    def test_strike_series(self, client):
        data = client.get("/options/BTC/strike-series", params={"metric": "mark_price"}).json()

        assert len(data) == 2
        assert data[0]["series"]["call"] == [[95200.0, 1520.5]]
        assert data[0]["series"]["put"] == [[95200.0, 700.0]]

    def test_strike_series_rejects_unknown_metric(self, client):
        response = client.get("/options/BTC/strike-series", params={"metric": "nope"})

        assert response.status_code == 400

    def test_chain_csv(self, client):
        response = client.get("/options/BTC/chain.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "BTC_option_chain_" in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert len(rows) == 4
        assert rows[0][0] == "symbol"

    def test_upstream_failure_maps_to_502(self, failing_client):
        response = failing_client.get("/options/BTC/chain")

        assert response.status_code == 502
        assert "HTTP 500 for /v2/tickers" in response.json()["detail"]


class TestCandleEndpoint:
    """Tests for the candlestick route"""

    def test_candles(self, client):
        response = client.get("/options/candles/C-BTC-95200-200225", params={"resolution": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["ohlc"] == [[1700000000000, 10.0, 12.0, 9.0, 11.0]]
        assert data["volume"] == [[1700000000000, 100.0]]

    def test_no_candles_is_404(self, client):
        response = client.get("/options/candles/P-BTC-95200-200225")

        assert response.status_code == 404

    def test_bad_resolution_is_400(self, client):
        response = client.get("/options/candles/C-BTC-95200-200225", params={"resolution": 7})

        assert response.status_code == 400


class TestSnapshotEndpoint:
    """Tests for the multi-asset snapshot"""

    def test_snapshot(self, client):
        response = client.get("/options/snapshot", params={"assets": "BTC,ETH", "min_oi": 1})

        assert response.status_code == 200
        data = response.json()
        assert list(data["results"]) == ["BTC", "ETH"]
        assert len(data["results"]["BTC"]["records"]) == 2
        assert data["results"]["ETH"]["records"] == []
        assert data["errors"] == []

    def test_snapshot_reports_failures(self, failing_client):
        data = failing_client.get("/options/snapshot", params={"assets": "BTC"}).json()

        assert data["results"] == {}
        assert data["errors"][0].startswith("BTC: ")
