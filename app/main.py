"""
FastAPI Application - Delta Exchange Options API

Serves normalized option chain data, chart series and CSV exports built from
the Delta Exchange public REST API.

Features:
    - Normalized option chain records (with min OI / expiry filters)
    - Distinct expiries and chain summary
    - Strike-vs-metric series per expiry
    - Candlestick series per instrument
    - Multi-asset snapshot with per-asset error reporting
    - CSV export of the option chain

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from core.aggregator import chain_summary, get_expiry_options
from core.config import load_settings, validate_configuration
from core.csv_export import records_to_csv
from core.logging import logger
from core.schemas import (
    CandlestickSeries,
    ChainSummary,
    ExpiryOption,
    ExpiryStrikeSeries,
    FetchReport,
    FetchSettings,
    NormalizedRecord,
)
from core.series import (
    METRICS,
    RESOLUTIONS,
    build_candlestick_series,
    build_strike_series_by_expiry,
    resolution_to_api,
    validate_metric,
)
from core.utils.time import current_utc_timestamp, export_timestamp
from exchanges.delta.api_client import DeltaAPIClient
from exchanges.delta.errors import DeltaAPIError
from services.option_chain_service import OptionChainService


settings = load_settings()


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared Delta client on startup, close it on shutdown."""
    logger.info("=== Application Starting ===")
    validate_configuration(settings)
    client = DeltaAPIClient.from_settings(settings)
    await client.__aenter__()
    app.state.client = client
    logger.info("=== Started Successfully ===")

    yield

    logger.info("=== Shutting Down ===")
    await client.__aexit__(None, None, None)
    logger.info("=== Shutdown Complete ===")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Delta Exchange Options API",
    description=(
        "Normalized option chain data from the Delta Exchange public REST API.\n\n"
        "## REST Endpoints\n"
        "- `GET /options/{asset}/chain` - Normalized option chain records\n"
        "- `GET /options/{asset}/expiries` - Distinct expiries\n"
        "- `GET /options/{asset}/summary` - Strike/expiry/contract counts and spot\n"
        "- `GET /options/{asset}/strike-series` - Strike vs metric per expiry\n"
        "- `GET /options/{asset}/chain.csv` - Option chain as CSV\n"
        "- `GET /options/candles/{symbol}` - Candlestick series for one instrument\n"
        "- `GET /options/snapshot` - Multi-asset fetch with per-asset errors\n"
        "- `GET /options/metrics`, `GET /options/resolutions` - Catalogues\n"
        "- `GET /health` - Health check\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ============================================
# Dependencies
# ============================================

def get_client(request: Request) -> DeltaAPIClient:
    """The Delta client opened during lifespan startup."""
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Delta client not initialized")
    return client


def get_service(client: DeltaAPIClient = Depends(get_client)) -> OptionChainService:
    return OptionChainService(client)


def _upstream_error(context: str, e: DeltaAPIError) -> HTTPException:
    logger.error(f"{context}: {e}")
    return HTTPException(status_code=502, detail=str(e))


def _bad_request(e: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(e))


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information."""
    return {
        "name": "Delta Exchange Options API",
        "version": "1.0.0",
        "exchange": settings.delta_base_url,
        "docs": "/docs",
    }


@app.get("/health", tags=["System"])
async def health_check():
    """Liveness probe."""
    return {"status": "healthy"}


@app.get("/options/metrics", tags=["Catalogues"])
async def list_metrics():
    """Metrics available for strike charts."""
    return METRICS


@app.get("/options/resolutions", tags=["Catalogues"])
async def list_resolutions():
    """Candle resolutions in minutes."""
    return [{"value": r["value"], "label": r["label"]} for r in RESOLUTIONS]


# ============================================
# Option Chain Endpoints
# ============================================

@app.get("/options/snapshot", response_model=FetchReport, tags=["Option Chain"])
async def get_snapshot(
    assets: str = Query(default="", description="Comma-separated assets, e.g. BTC,ETH"),
    min_oi: float = Query(default=0, ge=0, description="Minimum open interest"),
    metric: str = Query(default="mark_price"),
    candlestick: bool = Query(default=False),
    resolution: int = Query(default=60, description="Candle resolution in minutes"),
    lookback_hours: int = Query(default=24, gt=0),
    top_per_type: int = Query(default=5, ge=0, le=50),
    service: OptionChainService = Depends(get_service),
):
    """
    Fetch several assets concurrently.

    Failed assets are listed in `errors`; successful assets are returned in `results`.

    Example:
        GET /options/snapshot?assets=BTC,ETH&min_oi=5&candlestick=true&resolution=15
    """
    asset_list = [a for a in assets.split(",") if a.strip()] or settings.assets_list
    fetch_settings = FetchSettings(
        base_url=service.client.base_url,
        assets=asset_list,
        metric=metric,
        min_open_interest=min_oi,
        candlestick=candlestick,
        resolution=resolution,
        lookback_hours=lookback_hours,
        top_per_type=top_per_type,
    )
    try:
        return await service.fetch_option_chains(fetch_settings)
    except ValueError as e:
        raise _bad_request(e)


@app.get("/options/candles/{symbol}", response_model=CandlestickSeries, tags=["Option Chain"])
async def get_candles(
    symbol: str,
    resolution: int = Query(default=60, description="Candle resolution in minutes"),
    lookback_hours: int = Query(default=24, gt=0),
    client: DeltaAPIClient = Depends(get_client),
):
    """
    Candlestick series for one instrument.

    Example:
        GET /options/candles/C-BTC-95200-200225?resolution=5&lookback_hours=6
    """
    try:
        code = resolution_to_api(resolution)
    except ValueError as e:
        raise _bad_request(e)

    end_sec = current_utc_timestamp()
    try:
        chart_data = await client.get_ohlc_candles(symbol, code, end_sec - lookback_hours * 3600, end_sec)
    except DeltaAPIError as e:
        raise _upstream_error(f"Candles error {symbol}", e)

    series = build_candlestick_series(chart_data)
    if series is None:
        raise HTTPException(status_code=404, detail=f"No candle data for {symbol}")
    return series


@app.get("/options/{asset}/chain", response_model=List[NormalizedRecord], tags=["Option Chain"])
async def get_chain(
    asset: str,
    min_oi: float = Query(default=0, ge=0, description="Minimum open interest"),
    expiry_date: str = Query(default="", description="Expiry filter, DD-MM-YYYY"),
    service: OptionChainService = Depends(get_service),
):
    """
    Normalized option chain.

    Example:
        GET /options/BTC/chain?min_oi=5
    """
    try:
        return await service.fetch_records(asset.upper(), min_oi, expiry_date)
    except DeltaAPIError as e:
        raise _upstream_error(f"Chain error {asset}", e)


@app.get("/options/{asset}/expiries", response_model=List[ExpiryOption], tags=["Option Chain"])
async def get_expiries(asset: str, service: OptionChainService = Depends(get_service)):
    """Distinct expiries of the chain, ascending."""
    try:
        records = await service.fetch_records(asset.upper())
    except DeltaAPIError as e:
        raise _upstream_error(f"Expiries error {asset}", e)
    return get_expiry_options(records)


@app.get("/options/{asset}/summary", response_model=ChainSummary, tags=["Option Chain"])
async def get_summary(
    asset: str,
    min_oi: float = Query(default=0, ge=0),
    service: OptionChainService = Depends(get_service),
):
    """Distinct strikes, expiries, contract count and spot price."""
    try:
        records = await service.fetch_records(asset.upper(), min_oi)
    except DeltaAPIError as e:
        raise _upstream_error(f"Summary error {asset}", e)
    return chain_summary(records)


@app.get("/options/{asset}/strike-series", response_model=List[ExpiryStrikeSeries], tags=["Option Chain"])
async def get_strike_series(
    asset: str,
    metric: str = Query(default="mark_price"),
    min_oi: float = Query(default=0, ge=0),
    service: OptionChainService = Depends(get_service),
):
    """
    Strike-vs-metric series, one entry per expiry.

    Example:
        GET /options/ETH/strike-series?metric=delta
    """
    try:
        validate_metric(metric)
    except ValueError as e:
        raise _bad_request(e)

    try:
        records = await service.fetch_records(asset.upper(), min_oi)
    except DeltaAPIError as e:
        raise _upstream_error(f"Strike series error {asset}", e)
    return build_strike_series_by_expiry(records, metric)


@app.get("/options/{asset}/chain.csv", tags=["Export"])
async def get_chain_csv(
    asset: str,
    min_oi: float = Query(default=0, ge=0),
    service: OptionChainService = Depends(get_service),
):
    """Option chain as a CSV attachment."""
    asset = asset.upper()
    try:
        records = await service.fetch_records(asset, min_oi)
    except DeltaAPIError as e:
        raise _upstream_error(f"CSV export error {asset}", e)

    filename = f"{asset}_option_chain_{export_timestamp()}.csv"
    return Response(
        content=records_to_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
