"""CoinGeckoPriceFeed: live market data over the public CoinGecko REST API.

Endpoints used:
    GET /coins/{id}/market_chart?vs_currency=usd&days=1  -> {"prices": [[ts_ms, price], ...]}
    GET /coins/markets?vs_currency=usd&order=market_cap_desc&per_page=20&page=1&sparkline=false
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from src.pt_common.errors import CoinNotFoundError, FeedUnavailableError
from src.pt_market.domain.models import Coin, PriceSample

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"


def parse_market_chart(payload: Any) -> list[PriceSample]:
    """Turn a market_chart payload into time-ordered samples.

    Non-positive prices are dropped; anything structurally wrong raises
    FeedUnavailableError.
    """
    try:
        raw = payload["prices"]
        samples = [
            PriceSample(time=int(point[0]), price=Decimal(str(point[1])))
            for point in raw
            if point[1] is not None
        ]
    except (KeyError, TypeError, IndexError, ValueError, InvalidOperation) as exc:
        raise FeedUnavailableError(f"Malformed market_chart payload: {exc}") from exc
    return sorted((s for s in samples if s.price > 0), key=lambda s: s.time)


class CoinGeckoPriceFeed:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        vs_currency: str = "usd",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._vs_currency = vs_currency
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any], symbol: str | None = None) -> Any:
        try:
            resp = await self._client.get(path, params=params)
            if resp.status_code == 404 and symbol is not None:
                raise CoinNotFoundError(symbol)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("CoinGecko %s returned %d", path, exc.response.status_code)
            raise FeedUnavailableError(
                f"Price source returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("CoinGecko %s request failed: %s", path, exc)
            raise FeedUnavailableError(f"Price source unreachable: {exc}") from exc
        except ValueError as exc:
            raise FeedUnavailableError(f"Price source returned invalid JSON: {exc}") from exc

    async def fetch_history(self, symbol: str, points: int) -> list[PriceSample]:
        payload = await self._get_json(
            f"/coins/{symbol}/market_chart",
            {"vs_currency": self._vs_currency, "days": 1},
            symbol=symbol,
        )
        samples = parse_market_chart(payload)
        return samples[-points:] if points > 0 else []

    async def list_coins(self) -> list[Coin]:
        payload = await self._get_json(
            "/coins/markets",
            {
                "vs_currency": self._vs_currency,
                "order": "market_cap_desc",
                "per_page": 20,
                "page": 1,
                "sparkline": "false",
            },
        )
        try:
            return [Coin(id=c["id"], name=c["name"], symbol=c["symbol"]) for c in payload]
        except (KeyError, TypeError) as exc:
            raise FeedUnavailableError(f"Malformed coin list payload: {exc}") from exc
