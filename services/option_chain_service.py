"""
Option Chain Service

Orchestrates one fetch for the dashboard:

    for each asset (concurrently):
        GET /v2/tickers                -> normalize_option_chain (min OI filter)
        if candlestick enabled:
            top-N calls + top-N puts   -> GET /v2/history/candles (sequential)

Failure policy:
    - An asset whose chain request fails is reported in FetchReport.errors;
      other assets keep their results
    - A failed candle request drops only that instrument's candles
    - Malformed symbols are dropped by the normalizer
"""

import asyncio
from typing import Callable, Dict, List, Optional

from core.aggregator import top_instruments_for_candles
from core.config import Settings
from core.logging import get_logger
from core.normalizer import normalize_option_chain
from core.schemas import AssetResult, FetchReport, FetchSettings, InstrumentCandles, NormalizedRecord
from core.series import resolution_to_api, validate_metric
from core.utils.time import current_utc_timestamp
from exchanges.delta.api_client import DeltaAPIClient
from exchanges.delta.errors import DeltaAPIError


class OptionChainService:
    """
    Fetches and normalizes option chains for one or more underlying assets.

    Args:
        client: An entered DeltaAPIClient
        clock: Returns the current Unix time in seconds (injectable for tests)

    Example:
        >>> async with DeltaAPIClient() as client:
        ...     service = OptionChainService(client)
        ...     report = await service.fetch_option_chains(FetchSettings(assets=["BTC"]))
    """

    def __init__(self, client: DeltaAPIClient, clock: Callable[[], int] = current_utc_timestamp):
        self.client = client
        self.clock = clock
        self.logger = get_logger(__name__)

    async def fetch_records(
        self,
        asset: str,
        min_open_interest: float = 0,
        expiry_date: str = ""
    ) -> List[NormalizedRecord]:
        """Fetch and normalize one asset's option chain."""
        tickers = await self.client.get_option_chain(asset, expiry_date)
        records = normalize_option_chain(tickers, min_open_interest)
        self.logger.info(f"{asset}: {len(records)} record(s) after normalization (min OI {min_open_interest})")
        return records

    async def fetch_candles(
        self,
        records: List[NormalizedRecord],
        settings: FetchSettings
    ) -> List[InstrumentCandles]:
        """
        Fetch candle history for the top instruments of each option type.

        Calls come first, then puts, each ranked by open interest.
        """
        resolution = resolution_to_api(settings.resolution)
        end_sec = self.clock()
        start_sec = end_sec - settings.lookback_hours * 3600

        selected = (
            top_instruments_for_candles(records, "call", settings.top_per_type)
            + top_instruments_for_candles(records, "put", settings.top_per_type)
        )

        candles = []
        for record in selected:
            try:
                chart_data = await self.client.get_ohlc_candles(record.symbol, resolution, start_sec, end_sec)
            except DeltaAPIError as e:
                self.logger.warning(f"Skipping candles for {record.symbol}: {e}")
                continue
            candles.append(InstrumentCandles(
                symbol=record.symbol,
                option_type=record.option_type,
                chart_data=chart_data,
            ))
        return candles

    async def fetch_asset(self, asset: str, settings: FetchSettings) -> AssetResult:
        """
        Fetch one asset: records, and candles when settings.candlestick is set.

        Raises:
            DeltaAPIError: If the option chain request fails
        """
        records = await self.fetch_records(asset, settings.min_open_interest)
        candlestick_data = []
        if settings.candlestick and records:
            candlestick_data = await self.fetch_candles(records, settings)
        return AssetResult(asset=asset, records=records, candlestick_data=candlestick_data)

    async def fetch_option_chains(self, settings: FetchSettings) -> FetchReport:
        """
        Fetch every asset in settings.assets concurrently.

        Each asset's requests stay sequential. Results are collected after all
        tasks finish; failed assets become "ASSET: message" entries in errors.

        Raises:
            ValueError: If the metric or resolution is invalid
        """
        validate_metric(settings.metric)
        if settings.candlestick:
            resolution_to_api(settings.resolution)

        tasks: Dict[str, asyncio.Task] = {
            asset: asyncio.create_task(self.fetch_asset(asset, settings))
            for asset in settings.assets
        }
        outcomes = await asyncio.gather(*tasks.values(), return_exceptions=True)

        report = FetchReport()
        for asset, outcome in zip(tasks, outcomes):
            if isinstance(outcome, DeltaAPIError):
                self.logger.error(f"Fetch failed for {asset}: {outcome}")
                report.errors.append(f"{asset}: {outcome}")
            elif isinstance(outcome, BaseException):
                self.logger.error(f"Unexpected error fetching {asset}: {outcome!r}", exc_info=outcome)
                report.errors.append(f"{asset}: {str(outcome) or type(outcome).__name__}")
            else:
                report.results[asset] = outcome

        self.logger.info(
            f"Fetch complete: {len(report.results)} asset(s) ok, {len(report.errors)} failed"
        )
        return report


async def fetch_option_chains(
    fetch_settings: FetchSettings,
    settings: Optional[Settings] = None
) -> FetchReport:
    """
    One-shot multi-asset fetch with its own client session.

    Args:
        fetch_settings: Per-fetch configuration (assets, filters, candles)
        settings: Application settings for transport tuning (defaults to Settings())
    """
    settings = settings or Settings()
    async with DeltaAPIClient.from_settings(settings, base_url=fetch_settings.base_url) as client:
        return await OptionChainService(client).fetch_option_chains(fetch_settings)
