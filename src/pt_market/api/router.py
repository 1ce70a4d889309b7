"""pt_market REST API: coin list, chart history and latest polled price for the
configured feed."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bootstrap import AppComponents, get_components
from src.pt_common.response import ApiResponse, success_response
from src.pt_market.application.schemas import CoinItem, LatestPriceResponse, PricePoint
from src.pt_market.infrastructure.simulated import MAX_POINTS

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/coins")
async def list_coins(
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    coins = await components.feed.list_coins()
    data = [CoinItem.from_domain(c).model_dump() for c in coins]
    return success_response(data, getattr(request.state, "request_id", None))


@router.get("/market_chart/{symbol}")
async def market_chart(
    symbol: str,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
    points: int = Query(24, ge=1, le=MAX_POINTS),
) -> ApiResponse:
    samples = await components.feed.fetch_history(symbol, points)
    data = [PricePoint.from_domain(s).model_dump() for s in samples]
    return success_response(data, getattr(request.state, "request_id", None))


@router.get("/latest")
async def latest_price(
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    poller = components.poller
    sample = poller.latest()
    data = LatestPriceResponse(
        symbol=poller.symbol,
        sample=PricePoint.from_domain(sample) if sample else None,
        poller_running=poller.running,
        feed_error=poller.last_error.message if poller.last_error else None,
    )
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
