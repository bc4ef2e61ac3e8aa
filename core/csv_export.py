"""
CSV Codec

Serializes normalized option chain records and candle histories to CSV text.

Conventions:
    - Header row is always present
    - None becomes an empty cell
    - Cells containing a comma, double quote or line break ("\\n" or "\\r")
      are quoted, with embedded quotes doubled
    - Rows are joined with "\\n"; there is no trailing newline
"""

import csv
import io
from typing import Any, Iterable, List, Sequence

from core.schemas import InstrumentCandles, NormalizedRecord
from core.utils.time import to_iso_utc


RECORD_COLUMNS = [
    "symbol", "product_id", "asset", "option_type", "strike",
    "expiry_date", "expiry_raw",
    "spot_price",
    "mark_price", "bid_price", "ask_price", "bid_size", "ask_size",
    "bid_iv", "ask_iv",
    "open_interest", "volume", "turnover_usd",
    "delta", "gamma", "theta", "vega", "rho",
]

CANDLE_COLUMNS = [
    "symbol", "option_type", "timestamp_unix", "datetime_utc",
    "open", "high", "low", "close", "volume",
]


def format_cell(value: Any) -> str:
    """
    Render one cell value.

    Examples:
        >>> format_cell(None)
        ''
        >>> format_cell(95200.0)
        '95200'
        >>> format_cell(0.61)
        '0.61'
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _write_rows(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    # QUOTE_MINIMAL only checks the "\n" terminator, so rows carrying "\r" are fully quoted
    quoting_writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        cells = [format_cell(value) for value in row]
        if any("\r" in cell for cell in cells):
            quoting_writer.writerow(cells)
        else:
            writer.writerow(cells)
    # Drop only the final row terminator; quoted cells may end in a newline
    return buffer.getvalue()[:-1]


def records_to_csv(records: Iterable[NormalizedRecord]) -> str:
    """
    Convert normalized option chain records to a CSV document.

    Columns follow RECORD_COLUMNS: identity, spot, pricing, market, greeks.
    """
    return _write_rows(
        RECORD_COLUMNS,
        ([getattr(record, column) for column in RECORD_COLUMNS] for record in records),
    )


def _candle_rows(candlestick_data: Iterable[InstrumentCandles]) -> List[List[Any]]:
    rows = []
    for item in candlestick_data:
        chart_data = item.chart_data or {}
        times = chart_data.get("t")
        if not isinstance(times, list):
            continue
        o, h, l, c, v = (chart_data.get(key) or [] for key in ("o", "h", "l", "c", "v"))
        for i, time in enumerate(times):
            rows.append([
                item.symbol,
                item.option_type,
                time,
                to_iso_utc(time),
                o[i] if i < len(o) else None,
                h[i] if i < len(h) else None,
                l[i] if i < len(l) else None,
                c[i] if i < len(c) else None,
                v[i] if i < len(v) else None,
            ])
    return rows


def candlestick_to_csv(candlestick_data: Iterable[InstrumentCandles]) -> str:
    """
    Convert candle histories of several instruments to one CSV document.

    One row per candle. Instruments appear in input order, candles in
    chronological order within each instrument. Items without a "t" list
    are skipped.
    """
    return _write_rows(CANDLE_COLUMNS, _candle_rows(candlestick_data))
