"""
Option Symbol Codec

Delta Exchange option symbol format:
    {C|P}-{ASSET}-{STRIKE}-{DDMMYY}
    e.g. C-BTC-95200-200225  ->  BTC CALL  95200  20-Feb-2025
"""

import math
from datetime import datetime, timezone
from typing import Optional

from core.schemas import OptionSymbol
from core.utils.time import datetime_to_timestamp

# Delta lists and settles options at 08:00 UTC
EXPIRY_HOUR_UTC = 8

_TYPE_CODES = {"C": "call", "P": "put"}


def parse_option_symbol(symbol: Optional[str]) -> Optional[OptionSymbol]:
    """
    Parse a Delta Exchange option symbol into its components.

    Returns None when the symbol cannot be parsed. Never raises.

    Example:
        >>> parse_option_symbol("C-BTC-95200-200225")
        OptionSymbol(option_type='call', asset='BTC', strike=95200.0,
                     expiry_date='2025-02-20', expiry_ms=1740038400000, expiry_raw='200225')
    """
    if not symbol or not isinstance(symbol, str):
        return None

    parts = symbol.split("-")
    if len(parts) < 4:
        return None

    type_code, asset, strike_str, expiry_str = parts[:4]
    option_type = _TYPE_CODES.get(type_code)
    if option_type is None:
        return None

    try:
        strike = float(strike_str)
    except ValueError:
        return None
    if not math.isfinite(strike) or strike < 0:
        return None

    if len(expiry_str) < 6 or not (expiry_str[:6].isascii() and expiry_str[:6].isdigit()):
        return None
    expiry_raw = expiry_str[:6]
    day, month, year = expiry_raw[0:2], expiry_raw[2:4], f"20{expiry_raw[4:6]}"

    try:
        expiry_dt = datetime(int(year), int(month), int(day), EXPIRY_HOUR_UTC, tzinfo=timezone.utc)
    except ValueError:
        # e.g. day 32 or month 13
        return None

    return OptionSymbol(
        option_type=option_type,
        asset=asset,
        strike=strike,
        expiry_date=f"{year}-{month}-{day}",
        expiry_ms=datetime_to_timestamp(expiry_dt, milliseconds=True),
        expiry_raw=expiry_raw,
    )


def format_expiry_raw(expiry_raw: Optional[str]) -> Optional[str]:
    """
    Format a raw DDMMYY expiry into display form DD-MM-YYYY.

    Inputs shorter than 6 characters are returned unchanged.

    Example:
        >>> format_expiry_raw("200225")
        '20-02-2025'
    """
    if not expiry_raw or len(expiry_raw) < 6:
        return expiry_raw
    return f"{expiry_raw[0:2]}-{expiry_raw[2:4]}-20{expiry_raw[4:6]}"
