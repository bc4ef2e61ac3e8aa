"""
Normalized Data Schemas

This module defines Pydantic models for all option chain data types.

Key Principle:
    Delta Exchange ticker payloads are loosely typed (numbers arrive as strings,
    nested quote/greek objects may be missing). They are parsed once, at the
    normalizer boundary, into these schemas. Every layer after that works with
    fully typed records.

    A field the exchange did not provide (or provided as garbage) is None.
    A genuine zero stays 0.0.

Models:
    - OptionSymbol: Decoded {C|P}-{ASSET}-{STRIKE}-{DDMMYY} symbol
    - NormalizedRecord: One option contract's flat ticker record
    - ExpiryOption: Distinct expiry entry for selectors
    - StrikeSeries / ExpiryStrikeSeries: Strike-vs-metric chart series
    - CandlestickSeries: OHLC + volume chart series
    - InstrumentCandles: Raw candle history of one selected instrument
    - FetchSettings: Per-fetch configuration surface
    - AssetResult / FetchReport: Outcome of a (multi-asset) fetch
"""

from typing import Any, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.config import PROD_BASE_URL


OptionType = Literal["call", "put"]


# ============================================
# Symbol Schema
# ============================================

class OptionSymbol(BaseModel):
    """
    Decoded Delta Exchange option symbol.

    Example:
        "C-BTC-95200-200225" -> call, BTC, strike 95200, expiry 2025-02-20

    Notes:
        - expiry_ms is the expiry date at 08:00:00 UTC (Delta settlement hour)
        - expiry_raw keeps the original DDMMYY segment
    """

    option_type: OptionType
    asset: str
    strike: float = Field(..., ge=0)
    expiry_date: str = Field(..., description="ISO date YYYY-MM-DD")
    expiry_ms: int = Field(..., description="Expiry epoch milliseconds (08:00 UTC)")
    expiry_raw: str = Field(..., min_length=6, max_length=6)

    model_config = ConfigDict(frozen=True)


# ============================================
# Normalized Ticker Record
# ============================================

class NormalizedRecord(BaseModel):
    """
    Flat Option Contract Record

    Built by the ticker normalizer from one raw /v2/tickers entry. Consumed
    unchanged by the aggregator, series builder and CSV codec.

    Identity:
        symbol, product_id, asset, option_type, strike, expiry_date,
        expiry_ms, expiry_raw
    Pricing:
        mark_price, spot_price, bid_price, ask_price, bid_size, ask_size,
        bid_iv, ask_iv
    Market:
        open_interest, volume, turnover_usd
    Greeks:
        delta, gamma, rho, theta, vega
    """

    # Identity
    symbol: str
    product_id: Optional[int] = None
    asset: str
    option_type: OptionType
    strike: float
    expiry_date: str
    expiry_ms: int
    expiry_raw: str

    # Pricing
    mark_price: Optional[float] = None
    spot_price: Optional[float] = None
    bid_price: Optional[float] = None
    ask_price: Optional[float] = None
    bid_size: Optional[float] = None
    ask_size: Optional[float] = None
    bid_iv: Optional[float] = None
    ask_iv: Optional[float] = None

    # Market data
    open_interest: Optional[float] = None
    volume: Optional[float] = None
    turnover_usd: Optional[float] = None

    # Greeks
    delta: Optional[float] = None
    gamma: Optional[float] = None
    rho: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "symbol": "C-BTC-95200-200225",
                "product_id": 84210,
                "asset": "BTC",
                "option_type": "call",
                "strike": 95200.0,
                "expiry_date": "2025-02-20",
                "expiry_ms": 1740038400000,
                "expiry_raw": "200225",
                "mark_price": 1520.5,
                "spot_price": 96010.2,
                "open_interest": 10.0,
                "delta": 0.61
            }
        }
    )


# ============================================
# Aggregation / Chart Schemas
# ============================================

class ExpiryOption(BaseModel):
    """Distinct expiry entry (one per expiry_ms)."""

    expiry_ms: int
    expiry_date: str
    expiry_raw: str
    display_label: str


class ChainSummary(BaseModel):
    """Headline figures for one asset's option chain."""

    strikes: int
    expiries: int
    contracts: int
    spot_price: Optional[float] = None


class StrikeSeries(BaseModel):
    """
    Strike-vs-metric series, one list per option type.

    Each point is (strike, value); strikes ascend.
    """

    call: List[Tuple[float, float]] = Field(default_factory=list)
    put: List[Tuple[float, float]] = Field(default_factory=list)


class ExpiryStrikeSeries(BaseModel):
    """Strike series for a single expiry."""

    expiry_ms: int
    expiry_date: str
    series: StrikeSeries


class CandlestickSeries(BaseModel):
    """
    Chart-ready candles.

    ohlc points are (time_ms, open, high, low, close); volume points are
    (time_ms, volume). Both lists share the same timestamps.
    """

    ohlc: List[Tuple[int, Optional[float], Optional[float], Optional[float], Optional[float]]]
    volume: List[Tuple[int, float]]


class InstrumentCandles(BaseModel):
    """
    Candle history of one instrument.

    chart_data holds parallel arrays {t, o, h, l, c, v} with t in seconds.
    """

    symbol: str
    option_type: OptionType
    chart_data: Dict[str, Any] = Field(default_factory=dict)


# ============================================
# Fetch Configuration & Results
# ============================================

class FetchSettings(BaseModel):
    """
    Per-fetch configuration surface.

    Passed explicitly to the option chain service; defaults match the
    dashboard's initial settings.

    Attributes:
        base_url: Delta Exchange REST base URL
        assets: Underlying assets to fetch (e.g., ["BTC", "ETH"])
        metric: NormalizedRecord field plotted against strike
        min_open_interest: Records below this OI are dropped
        candlestick: Fetch candle history for the top instruments
        resolution: Candle resolution in minutes
        lookback_hours: Candle history window
        top_per_type: Instruments per option type selected for candles
    """

    base_url: str = PROD_BASE_URL
    assets: List[str] = Field(default_factory=lambda: ["BTC", "ETH"])
    metric: str = "mark_price"
    min_open_interest: float = Field(default=0, ge=0)
    candlestick: bool = False
    resolution: int = 60
    lookback_hours: int = Field(default=24, gt=0)
    top_per_type: int = Field(default=5, ge=0)

    @field_validator("assets")
    @classmethod
    def validate_assets(cls, v: List[str]) -> List[str]:
        """Uppercase, strip and de-duplicate assets, keeping order"""
        seen = []
        for asset in v:
            asset = asset.strip().upper()
            if asset and asset not in seen:
                seen.append(asset)
        return seen


class AssetResult(BaseModel):
    """Successful fetch outcome for one underlying asset."""

    asset: str
    records: List[NormalizedRecord] = Field(default_factory=list)
    candlestick_data: List[InstrumentCandles] = Field(default_factory=list)


class FetchReport(BaseModel):
    """
    Outcome of a multi-asset fetch.

    results holds every asset that succeeded (in request order); errors holds
    one "ASSET: message" line per asset that failed.
    """

    results: Dict[str, AssetResult] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
