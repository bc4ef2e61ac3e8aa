#!/usr/bin/env python3
"""
Validate the option chain endpoint of the server.

Checks performed:
- HTTP 200 and JSON array
- Required fields present with correct types
- option_type is call/put and matches the symbol prefix
- asset matches the requested asset
- expiry_date parses and expiry_ms is that date at 08:00 UTC
- Non-negative strike and open interest; OI respects --min-oi

Usage examples:
  python -m scripts.validate_option_chain --asset BTC
  python -m scripts.validate_option_chain --host 127.0.0.1 --port 8000 --asset ETH --min-oi 5
"""

import argparse
import sys
from datetime import timezone
from typing import Any, Tuple

import httpx
from dateutil import parser as dateparser


REQUIRED_FIELDS = [
    "symbol",
    "asset",
    "option_type",
    "strike",
    "expiry_date",
    "expiry_ms",
    "expiry_raw",
]

NUMERIC_OPTIONAL_FIELDS = [
    "mark_price", "spot_price", "bid_price", "ask_price", "bid_size", "ask_size",
    "bid_iv", "ask_iv", "open_interest", "volume", "turnover_usd",
    "delta", "gamma", "rho", "theta", "vega",
]


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Validate option chain endpoint response.")
    p.add_argument("--host", default="localhost", help="Server host (default: localhost)")
    p.add_argument("--port", type=int, default=8000, help="Server port (default: 8000)")
    p.add_argument("--asset", required=True, help="Underlying asset (e.g., BTC, ETH)")
    p.add_argument("--min-oi", type=float, default=0, help="Minimum open interest to request")
    p.add_argument("--allow-empty", action="store_true", help="Do not fail if endpoint returns empty list")
    p.add_argument("--print-sample", type=int, default=0, help="Print first N items for visual inspection")
    return p.parse_args()


def is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def validate_record(item: dict, req_asset: str, min_oi: float = 0) -> Tuple[bool, str]:
    for f in REQUIRED_FIELDS:
        if f not in item:
            return False, f"missing field: {f}"

    if item["option_type"] not in ("call", "put"):
        return False, f"invalid option_type: {item['option_type']}"

    prefix = "C" if item["option_type"] == "call" else "P"
    if not str(item["symbol"]).startswith(f"{prefix}-"):
        return False, f"symbol {item['symbol']} does not match option_type {item['option_type']}"

    if item["asset"] != req_asset.upper():
        return False, f"asset mismatch: expected {req_asset.upper()}, got {item['asset']}"

    if not is_number(item["strike"]) or item["strike"] < 0:
        return False, f"invalid strike: {item['strike']}"

    for f in NUMERIC_OPTIONAL_FIELDS:
        if item.get(f) is not None and not is_number(item[f]):
            return False, f"{f} must be a number or null"

    try:
        expiry = dateparser.isoparse(item["expiry_date"])
    except (ValueError, OverflowError, TypeError):
        return False, f"invalid expiry_date: {item['expiry_date']}"

    expected_ms = int(expiry.replace(hour=8, tzinfo=timezone.utc).timestamp()) * 1000
    if item["expiry_ms"] != expected_ms:
        return False, f"expiry_ms {item['expiry_ms']} != {expected_ms} for {item['expiry_date']}"

    if len(str(item["expiry_raw"])) != 6:
        return False, f"expiry_raw must have 6 digits: {item['expiry_raw']}"

    oi = item.get("open_interest") or 0
    if oi < 0:
        return False, "negative open_interest"
    if oi < min_oi:
        return False, f"open_interest {oi} below requested minimum {min_oi}"

    return True, ""


def main() -> int:
    args = parse_args()
    url = f"http://{args.host}:{args.port}/options/{args.asset}/chain?min_oi={args.min_oi}"
    print(f"[Info] Requesting: {url}")

    try:
        resp = httpx.get(url, timeout=30.0)
    except httpx.HTTPError as e:
        print(f"[Error] Request failed: {e}")
        return 2

    if resp.status_code != 200:
        print(f"[Error] HTTP {resp.status_code}: {resp.text[:300]}")
        return 2

    try:
        data = resp.json()
    except ValueError as e:
        print(f"[Error] Invalid JSON: {e}")
        return 2

    if not isinstance(data, list):
        print("[Error] Response is not a list")
        return 2

    if not data:
        if args.allow_empty:
            print("[Warn] Empty list (allowed by flag).")
            return 0
        print("[Error] Empty list (use --allow-empty to accept).")
        return 1

    for idx, item in enumerate(data):
        ok, msg = validate_record(item, args.asset, args.min_oi)
        if not ok:
            print(f"[Error] Item {idx} invalid: {msg}")
            return 1

    if args.print_sample > 0:
        sample = data[: args.print_sample]
        print(f"[Info] Sample ({len(sample)} of {len(data)}):")
        for it in sample:
            print(it)

    print(f"[OK] Validated {len(data)} option records for {args.asset.upper()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
