"""Tests for the Binance klines client (paged historical fetch)."""

import httpx
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from backtest.client import BinanceKlineClient, from_ms, parse_kline, to_ms


T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
HOUR_MS = 3_600_000


def make_row(index: int) -> list:
    """Binance kline row for the index-th hourly candle after T0."""
    open_ms = to_ms(T0) + index * HOUR_MS
    price = 100 + index
    return [
        open_ms,
        f"{price}.00",
        f"{price + 1}.50",
        f"{price - 1}.25",
        f"{price}.75",
        "12.5",
        open_ms + HOUR_MS - 1,
        "0",
        10,
        "0",
        "0",
        "0",
    ]


class FakeExchange:
    """Serves ``count`` hourly klines, honouring endTime and limit."""

    def __init__(self, count: int):
        self.rows = [make_row(i) for i in range(count)]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        limit = int(request.url.params["limit"])
        end_ms = int(request.url.params.get("endTime", 2**62))
        rows = [r for r in self.rows if r[0] <= end_ms][-limit:]
        return httpx.Response(200, json=rows)

    def client(self) -> BinanceKlineClient:
        return BinanceKlineClient(
            page_delay=0,
            transport=httpx.MockTransport(self.handler),
        )


class TestParseKline:
    def test_parses_decimal_prices_and_utc_time(self):
        candle = parse_kline(make_row(2))

        assert candle.open_time == T0 + timedelta(hours=2)
        assert candle.open_time.tzinfo is not None
        assert candle.open == Decimal("102.00")
        assert candle.high == Decimal("103.50")
        assert candle.low == Decimal("101.25")
        assert candle.close == Decimal("102.75")
        assert candle.volume == Decimal("12.5")

    def test_malformed_row(self):
        with pytest.raises(ValueError, match="Malformed"):
            parse_kline([1700000000000, "abc"])

    def test_non_numeric_price(self):
        with pytest.raises(ValueError):
            parse_kline([1700000000000, "x", "1", "1", "1", "1"])

    def test_ms_conversion_is_exact(self):
        ms = 1700000000123
        assert to_ms(from_ms(ms)) == ms


class TestGetKlines:
    async def test_single_page(self):
        exchange = FakeExchange(5)
        async with exchange.client() as client:
            candles = await client.get_klines("BTCUSDT", "1h", limit=10)

        assert len(candles) == 5
        request = exchange.requests[0]
        assert request.url.path == "/api/v3/klines"
        assert request.url.params["symbol"] == "BTCUSDT"
        assert request.url.params["interval"] == "1h"

    async def test_http_error_propagates(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"code": -1003}))
        client = BinanceKlineClient(page_delay=0, transport=transport)

        with pytest.raises(httpx.HTTPStatusError):
            await client.get_klines("BTCUSDT", "1h")
        await client.close()

    async def test_unexpected_payload(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"code": -1121}))
        client = BinanceKlineClient(page_delay=0, transport=transport)

        with pytest.raises(ValueError):
            await client.get_klines("NOPE", "1h")
        await client.close()


class TestHistoricalCandles:
    async def test_pages_backwards_and_trims(self):
        exchange = FakeExchange(25)
        end = T0 + timedelta(hours=100)

        async with exchange.client() as client:
            candles = await client.get_historical_candles(
                "BTCUSDT", "1h", total=22, end_time=end, limit=10
            )

        # Pages of 10, 10, then a short page of 5 stops the loop
        assert len(exchange.requests) == 3
        assert len(candles) == 22
        # Newest 22 of 25 → starts at the 4th candle
        assert candles[0].open_time == T0 + timedelta(hours=3)
        assert candles[-1].open_time == T0 + timedelta(hours=24)
        times = [c.open_time for c in candles]
        assert times == sorted(times)
        assert len(set(times)) == len(times)

    async def test_next_page_ends_before_oldest_candle(self):
        exchange = FakeExchange(25)

        async with exchange.client() as client:
            await client.get_historical_candles("BTCUSDT", "1h", total=15, limit=10)

        first_page_oldest = make_row(15)[0]
        assert int(exchange.requests[1].url.params["endTime"]) == first_page_oldest - 1

    async def test_stops_once_total_reached(self):
        exchange = FakeExchange(100)

        async with exchange.client() as client:
            candles = await client.get_historical_candles("BTCUSDT", "1h", total=20, limit=10)

        assert len(exchange.requests) == 2
        assert len(candles) == 20

    async def test_empty_response(self):
        exchange = FakeExchange(0)

        async with exchange.client() as client:
            candles = await client.get_historical_candles("BTCUSDT", "1h", total=50)

        assert candles == []
