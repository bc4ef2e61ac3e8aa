#!/usr/bin/env python3
"""
Fetch Delta Exchange option chains and export them as CSV.

Writes, per asset:
    {ASSET}_option_chain_{ts}.csv
    {ASSET}_candlestick_{ts}.csv   (with --candlestick)

Failed assets are reported and do not stop the others from being exported.
The exit code is 1 if any asset failed.

Usage examples:
  python -m scripts.export_option_chain --assets BTC,ETH
  python -m scripts.export_option_chain --assets BTC --min-oi 5 --candlestick --resolution 15 --lookback-hours 6
  python -m scripts.export_option_chain --testnet --out-dir /tmp/delta
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from core.config import load_settings
from core.logging import logger, set_log_level
from core.schemas import FetchSettings
from services.option_chain_service import fetch_option_chains
from storage.csv_store import export_report


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Export Delta Exchange option chains to CSV.")
    p.add_argument("--assets", default="", help="Comma-separated assets (default: DEFAULT_ASSETS)")
    p.add_argument("--base-url", default="", help="API base URL (default: DELTA_BASE_URL)")
    p.add_argument("--testnet", action="store_true", help="Use the Delta testnet base URL")
    p.add_argument("--min-oi", type=float, default=0, help="Minimum open interest")
    p.add_argument("--candlestick", action="store_true", help="Also export candles for the top instruments")
    p.add_argument("--resolution", type=int, default=60, help="Candle resolution in minutes")
    p.add_argument("--lookback-hours", type=int, default=24, help="Candle history window in hours")
    p.add_argument("--top-per-type", type=int, default=5, help="Instruments per option type for candles")
    p.add_argument("--out-dir", default="", help="Output directory (default: EXPORT_DIR)")
    p.add_argument("--log-level", default="", help="Override LOG_LEVEL")
    return p.parse_args(argv)


def build_fetch_settings(args: argparse.Namespace, settings) -> FetchSettings:
    if args.base_url:
        base_url = args.base_url
    elif args.testnet:
        base_url = settings.delta_testnet_url
    else:
        base_url = settings.delta_base_url

    assets = [a for a in args.assets.split(",") if a.strip()] or settings.assets_list
    return FetchSettings(
        base_url=base_url,
        assets=assets,
        min_open_interest=args.min_oi,
        candlestick=args.candlestick,
        resolution=args.resolution,
        lookback_hours=args.lookback_hours,
        top_per_type=args.top_per_type,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    if args.log_level:
        set_log_level(args.log_level)

    try:
        fetch_settings = build_fetch_settings(args, settings)
        report = asyncio.run(fetch_option_chains(fetch_settings, settings))
    except ValueError as e:
        print(f"[Error] {e}")
        return 2

    written = export_report(report, args.out_dir or settings.export_dir)
    for path in written:
        print(f"[OK] {path}")
    for error in report.errors:
        print(f"[Error] {error}")

    logger.info(f"Exported {len(written)} file(s); {len(report.errors)} asset(s) failed")
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
