"""
Ticker Normalizer

Maps raw Delta Exchange ticker objects (GET /v2/tickers) into NormalizedRecord.

Raw ticker shape:
    {
        symbol, product_id, contract_type, mark_price, spot_price, oi, volume,
        turnover_usd,
        quotes: { best_bid, best_ask, bid_iv, ask_iv, bid_size, ask_size },
        greeks: { delta, gamma, rho, theta, vega }
    }

Numbers usually arrive as strings. Anything that does not parse to a finite
number becomes None; a malformed symbol drops the whole ticker.
"""

import math
from typing import Any, Dict, Iterable, List, Optional

from core.logging import get_logger
from core.schemas import NormalizedRecord
from core.symbols import parse_option_symbol

logger = get_logger(__name__)


def parse_number(value: Any) -> Optional[float]:
    """
    Leniently parse a numeric field.

    Returns None for missing values, booleans, unparseable strings, NaN and infinity.

    Examples:
        >>> parse_number("1520.5")
        1520.5
        >>> parse_number("0")
        0.0
        >>> parse_number("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_int(value: Any) -> Optional[int]:
    number = parse_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _sub_object(ticker: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = ticker.get(key)
    return value if isinstance(value, dict) else {}


def normalize_ticker(ticker: Dict[str, Any]) -> Optional[NormalizedRecord]:
    """
    Normalize a raw ticker object into a flat record.

    Args:
        ticker: One element of the /v2/tickers result list

    Returns:
        NormalizedRecord, or None if the symbol cannot be parsed
    """
    if not isinstance(ticker, dict):
        return None

    sym = parse_option_symbol(ticker.get("symbol"))
    if sym is None:
        logger.debug(f"Skipping ticker with unparseable symbol: {ticker.get('symbol')!r}")
        return None

    quotes = _sub_object(ticker, "quotes")
    greeks = _sub_object(ticker, "greeks")

    return NormalizedRecord(
        symbol=ticker["symbol"],
        product_id=_parse_int(ticker.get("product_id")),
        asset=sym.asset,
        option_type=sym.option_type,
        strike=sym.strike,
        expiry_date=sym.expiry_date,
        expiry_ms=sym.expiry_ms,
        expiry_raw=sym.expiry_raw,

        mark_price=parse_number(ticker.get("mark_price")),
        spot_price=parse_number(ticker.get("spot_price")),
        bid_price=parse_number(quotes.get("best_bid")),
        ask_price=parse_number(quotes.get("best_ask")),
        bid_iv=parse_number(quotes.get("bid_iv")),
        ask_iv=parse_number(quotes.get("ask_iv")),
        bid_size=parse_number(quotes.get("bid_size")),
        ask_size=parse_number(quotes.get("ask_size")),

        open_interest=parse_number(ticker.get("oi")),
        volume=parse_number(ticker.get("volume")),
        turnover_usd=parse_number(ticker.get("turnover_usd")),

        delta=parse_number(greeks.get("delta")),
        gamma=parse_number(greeks.get("gamma")),
        rho=parse_number(greeks.get("rho")),
        theta=parse_number(greeks.get("theta")),
        vega=parse_number(greeks.get("vega")),
    )


def normalize_option_chain(
    tickers: Iterable[Dict[str, Any]],
    min_open_interest: float = 0
) -> List[NormalizedRecord]:
    """
    Normalize a raw ticker list and filter by minimum open interest.

    Missing open interest counts as 0. Input order is preserved.

    Args:
        tickers: Raw /v2/tickers result
        min_open_interest: Drop records whose OI is below this value

    Returns:
        List[NormalizedRecord]
    """
    records = []
    skipped = 0
    for ticker in tickers or []:
        record = normalize_ticker(ticker)
        if record is None:
            skipped += 1
            continue
        if (record.open_interest or 0) < min_open_interest:
            continue
        records.append(record)

    if skipped:
        logger.debug(f"Dropped {skipped} ticker(s) with unparseable symbols")
    return records
