"""Binance spot REST client for fetching historical candles."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from core.models.candle import Candle

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MAX_LIMIT = 1000


def to_ms(dt: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return (dt - EPOCH) // timedelta(milliseconds=1)


def from_ms(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


def parse_kline(item: Any) -> Candle:
    """Parse one ``/api/v3/klines`` row into a Candle.

    Raises:
        ValueError: the row does not look like a kline
    """
    try:
        return Candle(
            open_time=from_ms(int(item[0])),
            open=Decimal(str(item[1])),
            high=Decimal(str(item[2])),
            low=Decimal(str(item[3])),
            close=Decimal(str(item[4])),
            volume=Decimal(str(item[5])),
        )
    except (IndexError, KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise ValueError(f"Malformed kline row: {item!r}") from e


class RateLimiter:
    """Enforce a minimum delay between consecutive API calls."""

    def __init__(self, min_interval: float = 0.5):
        self.interval = min_interval
        self.last_call: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect the interval."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            if self.last_call is not None:
                wait_time = self.last_call + self.interval - loop.time()
                if wait_time > 0:
                    await asyncio.sleep(wait_time)
            self.last_call = loop.time()


class BinanceKlineClient:
    """Binance spot klines client with backwards pagination."""

    BASE_URL = "https://api.binance.com"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        page_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.rate_limiter = RateLimiter(page_delay)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> BinanceKlineClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        """Make a rate-limited GET request."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        response = await client.get(endpoint, params=params)
        response.raise_for_status()
        return response.json()

    async def get_klines(
        self,
        symbol: str,
        interval: str,
        limit: int = MAX_LIMIT,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> list[Candle]:
        """
        Fetch one page of candles, oldest first.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Candle interval (e.g., "1h")
            limit: Maximum number of candles (max 1000)
            start_time: Start time (inclusive)
            end_time: End time (inclusive)

        Raises:
            httpx.HTTPStatusError: non-2xx response
            ValueError: malformed payload
        """
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, MAX_LIMIT),
        }
        if start_time:
            params["startTime"] = to_ms(start_time)
        if end_time:
            params["endTime"] = to_ms(end_time)

        data = await self._request("/api/v3/klines", params)
        if not isinstance(data, list):
            raise ValueError(f"Unexpected klines response: {data!r}")

        return [parse_kline(item) for item in data]

    async def get_historical_candles(
        self,
        symbol: str,
        interval: str,
        total: int,
        end_time: datetime | None = None,
        limit: int = MAX_LIMIT,
    ) -> list[Candle]:
        """
        Fetch the newest ``total`` candles up to ``end_time``, paging backwards.

        Each page ends 1 ms before the oldest candle already fetched.
        Stops early when a page comes back empty or short.

        Returns:
            At most ``total`` candles, oldest first
        """
        if end_time is None:
            end_time = datetime.now(timezone.utc)

        page_size = min(limit, MAX_LIMIT)
        all_candles: list[Candle] = []
        current_end = end_time

        while len(all_candles) < total:
            candles = await self.get_klines(
                symbol, interval, limit=page_size, end_time=current_end
            )
            if not candles:
                break

            all_candles[:0] = candles
            logger.debug(
                f"[{symbol}] Fetched {len(candles)} candles back to "
                f"{candles[0].open_time:%Y-%m-%d %H:%M} ({len(all_candles)}/{total})"
            )

            if len(candles) < page_size:
                break
            current_end = from_ms(to_ms(candles[0].open_time) - 1)

        if len(all_candles) > total:
            all_candles = all_candles[-total:]

        logger.info(f"[{symbol}] Fetched {len(all_candles):,} {interval} candles")
        return all_candles
