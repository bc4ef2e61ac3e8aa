"""
Delta Exchange REST API Client

This module provides an async HTTP client for the Delta Exchange public v2 API.
It handles:
- HTTP GET requests with retry logic (rate limits, connection errors)
- Cursor-based pagination (meta.after)
- Translation of every failure into a single DeltaAPIError
- Normalizing candle history into parallel arrays

API Documentation:
    https://docs.delta.exchange/

Pagination:
    List endpoints return {success, result: [...], meta: {after}}. The client
    keeps requesting with ?after=<cursor> until the cursor is missing or a
    page comes back shorter than page_size. A short page ends pagination even
    if the server echoes a cursor.

Usage:
    async with DeltaAPIClient(base_url) as client:
        tickers = await client.get_option_chain("BTC")
        candles = await client.get_ohlc_candles("C-BTC-95200-200225", "1h", start, end)
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import aiohttp

from core.config import PROD_BASE_URL, Settings
from core.logging import get_logger, log_api_request, log_api_response
from core.series import candles_to_arrays
from exchanges.delta.errors import (
    DeltaAPIError,
    application_detail,
    error_detail,
    parse_error_payload,
)

OPTION_CONTRACT_TYPES = "call_options,put_options"


class DeltaAPIClient:
    """
    Async HTTP client for the Delta Exchange REST API

    Attributes:
        base_url: API base URL (production or testnet)
        page_size: Records requested per page on paginated endpoints
        session: aiohttp ClientSession for HTTP requests

    Example:
        >>> async with DeltaAPIClient() as client:
        ...     products = await client.get_option_products("BTC")
        ...     print(f"Fetched {len(products)} products")

    Notes:
        - Uses context manager for automatic session cleanup
        - Retries 429 responses and connection errors with exponential backoff
        - Any other non-2xx status, or success: false, fails immediately
    """

    EXCHANGE = "delta"

    def __init__(
        self,
        base_url: str = PROD_BASE_URL,
        page_size: int = 1000,
        request_timeout: float = 30,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the Delta API client.

        Args:
            base_url: API base URL; a trailing slash is removed
            page_size: Page size for fetch_all
            request_timeout: Total timeout per HTTP request (seconds)
            max_retries: Attempts per request on 429 / connection errors
            retry_delay: Base backoff delay (seconds), doubled per attempt
            headers: Extra request headers
        """
        self.logger = get_logger(__name__)
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.request_timeout = request_timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.headers = headers or {"Accept": "application/json"}
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings: Settings, base_url: Optional[str] = None) -> "DeltaAPIClient":
        """Build a client from application settings (base_url overrides the configured one)."""
        return cls(
            base_url=base_url or settings.delta_base_url,
            page_size=settings.page_size,
            request_timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            headers=settings.get_delta_headers(),
        )

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        """Enter async context - creates HTTP session."""
        self.session = aiohttp.ClientSession()
        self.logger.debug(f"DeltaAPIClient session created ({self.base_url})")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context - closes HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("DeltaAPIClient session closed")

    # ============================================
    # HTTP Request Handler with Retry Logic
    # ============================================

    @staticmethod
    def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
        """Drop None/empty values and stringify the rest."""
        return {
            key: str(value)
            for key, value in (params or {}).items()
            if value is not None and value != ""
        }

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Make one GET request and return the decoded success envelope.

        Args:
            path: API path (e.g., "/v2/tickers")
            params: Query parameters

        Returns:
            The full JSON payload ({success, result, meta?})

        Raises:
            RuntimeError: If the session is not initialized
            DeltaAPIError: On non-2xx status, network failure or success: false
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        url = f"{self.base_url}{path}"
        query = self._clean_params(params)

        for attempt in range(self.max_retries):
            is_last = attempt == self.max_retries - 1
            log_api_request(self.EXCHANGE, path, query)
            started = time.monotonic()
            try:
                async with self.session.get(
                    url,
                    params=query,
                    headers=self.headers,
                    timeout=aiohttp.ClientTimeout(total=self.request_timeout)
                ) as response:
                    status = response.status
                    log_api_response(self.EXCHANGE, path, status, time.monotonic() - started)

                    if status == 429 and not is_last:
                        wait_time = self.retry_delay * (2 ** attempt)
                        self.logger.warning(f"Rate limited on {path} (attempt {attempt + 1}), retrying in {wait_time}s")
                        await asyncio.sleep(wait_time)
                        continue

                    if not 200 <= status < 300:
                        body = await response.text(errors="replace")
                        raise DeltaAPIError(status, path, error_detail(parse_error_payload(body)))

                    try:
                        payload = await response.json(content_type=None)
                    except ValueError:
                        raise DeltaAPIError(status, path, "invalid JSON body")

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if is_last:
                    self.logger.error(f"Delta request {path} failed after {self.max_retries} attempts: {e!r}")
                    raise DeltaAPIError(None, path, str(e) or type(e).__name__) from e
                wait_time = self.retry_delay * (2 ** attempt)
                self.logger.warning(f"Delta request {path} failed (attempt {attempt + 1}), retrying in {wait_time}s: {e!r}")
                await asyncio.sleep(wait_time)
                continue

            if not isinstance(payload, dict) or not payload.get("success"):
                raise DeltaAPIError(status, path, application_detail(payload), kind="application")
            return payload

        # Unreachable: the last attempt either returns or raises
        raise DeltaAPIError(None, path, "no attempts made")

    # ============================================
    # Generic Fetch Methods
    # ============================================

    async def fetch_one(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Single GET without pagination.

        Returns:
            payload["result"], or [] when the result is null/absent
        """
        payload = await self._request(path, params)
        result = payload.get("result")
        return [] if result is None else result

    async def fetch_all(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        Follow cursor pagination to completion and concatenate every page.

        Termination:
            - meta.after is missing or null, or
            - the page has fewer than page_size records (even with a cursor)

        Any failed page raises DeltaAPIError; no partial result is returned.
        """
        results: List[Any] = []
        after: Optional[str] = None
        pages = 0

        while True:
            page_params = dict(params or {})
            page_params["page_size"] = self.page_size
            if after:
                page_params["after"] = after

            payload = await self._request(path, page_params)
            page = payload.get("result") or []
            results.extend(page)
            pages += 1

            meta = payload.get("meta") or {}
            after = meta.get("after")
            if len(page) < self.page_size:
                after = None
            if not after:
                break

        self.logger.info(f"Fetched {len(results)} record(s) from {path} in {pages} page(s)")
        return results

    # ============================================
    # Market Data Methods
    # ============================================

    async def get_option_products(self, underlying_asset: str) -> List[Dict[str, Any]]:
        """
        Fetch all live option products for one underlying asset.

        Delta Endpoint:
            GET /v2/products?contract_types=call_options,put_options&states=live
        """
        asset = underlying_asset.upper()
        self.logger.info(f"Fetching option products: {asset}")
        products = await self.fetch_all("/v2/products", {
            "contract_types": OPTION_CONTRACT_TYPES,
            "states": "live",
        })
        return [
            p for p in products
            if isinstance(p, dict) and (p.get("underlying_asset") or {}).get("symbol") == asset
        ]

    async def get_option_chain(self, underlying_asset: str, expiry_date: str = "") -> List[Dict[str, Any]]:
        """
        Fetch option chain tickers for one underlying asset.

        Args:
            underlying_asset: e.g. "BTC"
            expiry_date: Optional expiry filter in DD-MM-YYYY form

        Delta Endpoint:
            GET /v2/tickers?contract_types=call_options,put_options&underlying_asset_symbols=BTC
        """
        asset = underlying_asset.upper()
        self.logger.info(f"Fetching option chain: {asset}{f' ({expiry_date})' if expiry_date else ''}")
        tickers = await self.fetch_one("/v2/tickers", {
            "contract_types": OPTION_CONTRACT_TYPES,
            "underlying_asset_symbols": asset,
            "expiry_date": expiry_date,
        })
        self.logger.info(f"Fetched {len(tickers)} ticker(s) for {asset}")
        return tickers

    async def get_ohlc_candles(
        self,
        symbol: str,
        resolution: str,
        start_sec: int,
        end_sec: int
    ) -> Dict[str, list]:
        """
        Fetch candle history for one symbol.

        Args:
            symbol: Option symbol (e.g., "C-BTC-95200-200225")
            resolution: API resolution code (e.g., "5m", "1h", "1d")
            start_sec: Window start, Unix seconds
            end_sec: Window end, Unix seconds

        Returns:
            Parallel arrays {t, o, h, l, c, v}, ascending by time

        Delta Endpoint:
            GET /v2/history/candles?symbol=...&resolution=...&start=...&end=...
        """
        self.logger.debug(f"Fetching candles: {symbol} {resolution} [{start_sec}, {end_sec}]")
        data = await self.fetch_one("/v2/history/candles", {
            "symbol": symbol,
            "resolution": resolution,
            "start": int(start_sec),
            "end": int(end_sec),
        })
        if isinstance(data, list):
            return candles_to_arrays(data)
        if isinstance(data, dict):
            return data
        return {}
