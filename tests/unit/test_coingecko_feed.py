"""Tests for CoinGeckoPriceFeed against an httpx.MockTransport."""

from decimal import Decimal

import httpx
import pytest

from src.pt_common.errors import CoinNotFoundError, FeedUnavailableError
from src.pt_market.infrastructure.coingecko import CoinGeckoPriceFeed, parse_market_chart

CHART = {"prices": [[3000, 101.5], [1000, 100.0], [2000, 0], [4000, 102.25]]}


def _feed(handler: httpx.MockTransport) -> CoinGeckoPriceFeed:
    client = httpx.AsyncClient(transport=handler, base_url="https://api.test/api/v3")
    return CoinGeckoPriceFeed(client=client)


class TestParseMarketChart:
    def test_sorts_and_drops_non_positive(self) -> None:
        samples = parse_market_chart(CHART)
        assert [s.time for s in samples] == [1000, 3000, 4000]
        assert samples[0].price == Decimal("100.0")
        assert samples[-1].price == Decimal("102.25")

    @pytest.mark.parametrize("payload", [{}, {"prices": [[1]]}, {"prices": [["x", "y"]]}, None])
    def test_malformed_payload(self, payload: object) -> None:
        with pytest.raises(FeedUnavailableError):
            parse_market_chart(payload)


class TestFetchHistory:
    async def test_requests_market_chart(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=CHART)

        feed = _feed(httpx.MockTransport(handler))
        samples = await feed.fetch_history("bitcoin", 2)

        assert [s.time for s in samples] == [3000, 4000]
        assert seen[0].url.path == "/api/v3/coins/bitcoin/market_chart"
        assert seen[0].url.params["vs_currency"] == "usd"
        assert seen[0].url.params["days"] == "1"

    async def test_unknown_coin(self) -> None:
        feed = _feed(httpx.MockTransport(lambda r: httpx.Response(404, json={"error": "nope"})))
        with pytest.raises(CoinNotFoundError):
            await feed.fetch_history("notacoin", 24)

    async def test_server_error_is_feed_unavailable(self) -> None:
        feed = _feed(httpx.MockTransport(lambda r: httpx.Response(429)))
        with pytest.raises(FeedUnavailableError, match="429"):
            await feed.fetch_history("bitcoin", 24)

    async def test_network_error_is_feed_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        feed = _feed(httpx.MockTransport(handler))
        with pytest.raises(FeedUnavailableError, match="unreachable"):
            await feed.fetch_history("bitcoin", 24)

    async def test_invalid_json(self) -> None:
        feed = _feed(httpx.MockTransport(lambda r: httpx.Response(200, content=b"<html>")))
        with pytest.raises(FeedUnavailableError):
            await feed.fetch_history("bitcoin", 24)


class TestListCoins:
    async def test_lists_markets(self) -> None:
        payload = [{"id": "bitcoin", "name": "Bitcoin", "symbol": "btc", "current_price": 1}]
        feed = _feed(httpx.MockTransport(lambda r: httpx.Response(200, json=payload)))
        coins = await feed.list_coins()
        assert coins[0].id == "bitcoin"
        assert coins[0].symbol == "btc"

    async def test_malformed_list(self) -> None:
        feed = _feed(httpx.MockTransport(lambda r: httpx.Response(200, json=[{"id": "x"}])))
        with pytest.raises(FeedUnavailableError):
            await feed.list_coins()
