"""pt_wallet REST API: wallet read, trade execution and trade history for a
caller-supplied user id."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bootstrap import AppComponents, get_components
from src.pt_common.response import ApiResponse, success_response
from src.pt_gateway.middleware.rate_limit import enforce_trade_rate_limit
from src.pt_wallet.application.schemas import TradeRequestBody

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("/{user_id}")
async def get_wallet(
    user_id: str,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    data = await components.wallet_service.get_wallet(user_id)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.post("/{user_id}/trade", dependencies=[Depends(enforce_trade_rate_limit)])
async def execute_trade(
    user_id: str,
    body: TradeRequestBody,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    data = await components.wallet_service.execute_trade(user_id, body.type)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/{user_id}/trades")
async def list_trades(
    user_id: str,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
    limit: int = Query(50, ge=1, le=500),
) -> ApiResponse:
    data = await components.wallet_service.get_trades(user_id, limit)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
