"""pt_testnet REST API: simulated market plus the demo ledger.

No authentication: the ledger belongs to a single fixed demo user.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bootstrap import AppComponents, get_components
from src.pt_common.enums import RejectionReason
from src.pt_common.errors import CoinNotFoundError
from src.pt_common.response import ApiResponse, success_response
from src.pt_engine.engine import rejection_error
from src.pt_gateway.middleware.rate_limit import enforce_trade_rate_limit
from src.pt_market.application.schemas import CoinItem, PricePoint
from src.pt_market.infrastructure.simulated import MAX_POINTS
from src.pt_testnet.application.schemas import (
    TestnetBalanceResponse,
    TestnetTradeRequest,
    TestnetTradeResponse,
    TestnetWalletItem,
    TradeRecordItem,
)

router = APIRouter(prefix="/testnet", tags=["testnet"])


@router.get("/coins")
async def list_coins(
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    coins = await components.simulated_feed.list_coins()
    data = [CoinItem.from_domain(c).model_dump() for c in coins]
    return success_response(data, getattr(request.state, "request_id", None))


@router.get("/market_chart/{symbol}")
async def market_chart(
    symbol: str,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
    points: int = Query(24, ge=1, le=MAX_POINTS, description="Number of most recent samples"),
) -> ApiResponse:
    samples = await components.simulated_feed.fetch_history(symbol, points)
    data = [PricePoint.from_domain(s).model_dump() for s in samples]
    return success_response(data, getattr(request.state, "request_id", None))


@router.post("/trade", dependencies=[Depends(enforce_trade_rate_limit)])
async def trade(
    body: TestnetTradeRequest,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    ledger = components.testnet
    try:
        sample = await components.simulated_feed.latest(body.coin)
    except CoinNotFoundError:
        ledger.record_rejection(body.coin, body.type, body.amount, RejectionReason.UNKNOWN_COIN)
        raise
    price = sample.price if sample else None
    before = ledger.wallet(body.coin)
    result = ledger.trade(body.coin, body.type, body.amount, price)
    if result.rejection is not None:
        raise rejection_error(result.rejection, before, body.amount, price, symbol=body.coin)
    data = TestnetTradeResponse(
        wallet=TestnetWalletItem.from_state(result.wallet),
        record=TradeRecordItem.from_domain(result.record),
    )
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/wallet")
async def wallet(
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    ledger = components.testnet
    data = TestnetBalanceResponse(
        user_id=ledger.user_id,
        balance=float(ledger.balance),
        holdings={symbol: float(shares) for symbol, shares in ledger.holdings.items()},
    )
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/trades/{symbol}")
async def trade_history(
    symbol: str,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    data = [TradeRecordItem.from_domain(r).model_dump() for r in components.testnet.history(symbol)]
    return success_response(data, getattr(request.state, "request_id", None))
