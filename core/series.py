"""
Series Builder

Turns normalized records and candle histories into chart-ready series.

Chart conventions:
    - Strike charts: x = strike (ascending), y = metric, one series per option type
    - Candlestick charts: x = time in milliseconds

Also holds the metric and resolution catalogues offered to chart consumers.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.aggregator import group_by_expiry
from core.schemas import (
    CandlestickSeries,
    ExpiryStrikeSeries,
    NormalizedRecord,
    StrikeSeries,
)


# ============================================
# Catalogues
# ============================================

METRICS = [
    {"value": "mark_price", "label": "Mark Price"},
    {"value": "open_interest", "label": "Open Interest"},
    {"value": "volume", "label": "Volume"},
    {"value": "bid_price", "label": "Bid Price"},
    {"value": "ask_price", "label": "Ask Price"},
    {"value": "bid_iv", "label": "Bid IV"},
    {"value": "ask_iv", "label": "Ask IV"},
    {"value": "delta", "label": "Delta"},
    {"value": "gamma", "label": "Gamma"},
    {"value": "theta", "label": "Theta"},
    {"value": "vega", "label": "Vega"},
]

# Resolutions supported by /v2/history/candles (minutes -> API code)
RESOLUTIONS = [
    {"value": 1, "label": "1 Min", "code": "1m"},
    {"value": 3, "label": "3 Min", "code": "3m"},
    {"value": 5, "label": "5 Min", "code": "5m"},
    {"value": 15, "label": "15 Min", "code": "15m"},
    {"value": 30, "label": "30 Min", "code": "30m"},
    {"value": 60, "label": "1 Hour", "code": "1h"},
    {"value": 120, "label": "2 Hour", "code": "2h"},
    {"value": 240, "label": "4 Hour", "code": "4h"},
    {"value": 360, "label": "6 Hour", "code": "6h"},
    {"value": 1440, "label": "1 Day", "code": "1d"},
    {"value": 10080, "label": "1 Week", "code": "1w"},
]

_NUMERIC_FIELDS = {
    name for name in NormalizedRecord.model_fields
    if name not in ("symbol", "asset", "option_type", "expiry_date", "expiry_raw")
}


def resolution_to_api(minutes: int) -> str:
    """
    Map a resolution in minutes to the Delta API resolution code.

    Raises:
        ValueError: If the resolution is not supported

    Example:
        >>> resolution_to_api(60)
        '1h'
    """
    for entry in RESOLUTIONS:
        if entry["value"] == minutes:
            return entry["code"]
    supported = ", ".join(str(r["value"]) for r in RESOLUTIONS)
    raise ValueError(f"Unsupported resolution: {minutes} minutes. Must be one of: {supported}")


def validate_metric(metric: str) -> str:
    """Ensure metric names a numeric NormalizedRecord field."""
    if metric not in _NUMERIC_FIELDS:
        raise ValueError(f"Unknown metric: '{metric}'")
    return metric


# ============================================
# Strike Series
# ============================================

def build_strike_series(rows: Sequence[NormalizedRecord], metric: str) -> StrikeSeries:
    """
    Build strike-vs-metric series for one expiry.

    Rows whose metric is None are left out. Each side is sorted by strike.

    Args:
        rows: Records (normally sharing one expiry)
        metric: NormalizedRecord field name, e.g. "mark_price"

    Raises:
        ValueError: If metric is not a numeric record field
    """
    validate_metric(metric)

    def points(option_type: str):
        side = [r for r in rows if r.option_type == option_type and getattr(r, metric) is not None]
        side.sort(key=lambda r: r.strike)
        return [(r.strike, getattr(r, metric)) for r in side]

    return StrikeSeries(call=points("call"), put=points("put"))


def build_strike_series_by_expiry(
    records: Sequence[NormalizedRecord],
    metric: str
) -> List[ExpiryStrikeSeries]:
    """One StrikeSeries per expiry, expiries ascending."""
    validate_metric(metric)
    return [
        ExpiryStrikeSeries(
            expiry_ms=expiry_ms,
            expiry_date=rows[0].expiry_date,
            series=build_strike_series(rows, metric),
        )
        for expiry_ms, rows in group_by_expiry(records).items()
    ]


# ============================================
# Candlestick Series
# ============================================

def _at(values: Optional[Sequence[Any]], index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]


def build_candlestick_series(chart_data: Optional[Mapping[str, Any]]) -> Optional[CandlestickSeries]:
    """
    Build OHLC and volume series from a {t, o, h, l, c, v} candle history.

    t is in seconds and becomes milliseconds. Missing volume is 0.

    Returns:
        CandlestickSeries, or None when there is nothing to chart

    Example:
        >>> build_candlestick_series({"t": [1700000000], "o": [10], "h": [12],
        ...                           "l": [9], "c": [11], "v": [100]}).ohlc
        [(1700000000000, 10.0, 12.0, 9.0, 11.0)]
    """
    if not chart_data:
        return None
    times = chart_data.get("t")
    if not isinstance(times, list) or not times:
        return None

    o, h, l, c, v = (chart_data.get(key) for key in ("o", "h", "l", "c", "v"))
    ohlc = []
    volume = []
    for i, time in enumerate(times):
        time_ms = int(round(float(time) * 1000))
        ohlc.append((time_ms, _at(o, i), _at(h, i), _at(l, i), _at(c, i)))
        vol = _at(v, i)
        volume.append((time_ms, vol if vol is not None else 0))

    return CandlestickSeries(ohlc=ohlc, volume=volume)


def candles_to_arrays(candles: List[Dict[str, Any]]) -> Dict[str, list]:
    """
    Convert a list of candle objects into parallel {t, o, h, l, c, v} arrays.

    The live /v2/history/candles endpoint returns
    [{time, open, high, low, close, volume}, ...], newest first. Output is
    sorted by time ascending.
    """
    ordered = sorted(
        (c for c in candles if isinstance(c, dict) and c.get("time") is not None),
        key=lambda c: c["time"],
    )
    return {
        "t": [c["time"] for c in ordered],
        "o": [c.get("open") for c in ordered],
        "h": [c.get("high") for c in ordered],
        "l": [c.get("low") for c in ordered],
        "c": [c.get("close") for c in ordered],
        "v": [c.get("volume") for c in ordered],
    }
