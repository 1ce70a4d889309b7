"""Portfolio valuation API: one-shot view and a live WebSocket stream."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from src.bootstrap import AppComponents, get_components
from src.pt_common.errors import StoreUnavailableError
from src.pt_common.response import ApiResponse, success_response
from src.pt_sync.models import PortfolioView, compute_view
from src.pt_sync.schemas import PortfolioViewResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wallet", tags=["portfolio"])


@router.get("/{user_id}/portfolio")
async def get_portfolio(
    user_id: str,
    components: Annotated[AppComponents, Depends(get_components)],
    request: Request,
) -> ApiResponse:
    poller = components.poller
    feed_error = poller.last_error.message if poller.last_error else None
    try:
        wallet = await components.store.read(user_id)
    except StoreUnavailableError as exc:
        view = compute_view(user_id, None, poller.latest(), store_error=exc.message)
    else:
        view = compute_view(user_id, wallet, poller.latest(), feed_error=feed_error)
    data = PortfolioViewResponse.from_view(view)
    return success_response(data.model_dump(mode="json"), getattr(request.state, "request_id", None))


@router.websocket("/{user_id}/stream")
async def stream_portfolio(
    websocket: WebSocket,
    user_id: str,
    components: Annotated[AppComponents, Depends(get_components)],
) -> None:
    """Push a PortfolioView message on every wallet change or new price sample."""
    await websocket.accept()
    queue: asyncio.Queue[PortfolioView] = asyncio.Queue()
    synchronizer = components.new_synchronizer(user_id)
    synchronizer.add_observer(queue.put_nowait)

    async def send_views() -> None:
        while True:
            view = await queue.get()
            await websocket.send_json(PortfolioViewResponse.from_view(view).model_dump(mode="json"))

    async def wait_for_disconnect() -> None:
        # Client messages are ignored; receiving only detects the close
        while True:
            await websocket.receive_text()

    tasks: list[asyncio.Task[None]] = []
    try:
        await synchronizer.start()
        tasks = [
            asyncio.create_task(send_views()),
            asyncio.create_task(wait_for_disconnect()),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Portfolio stream for %s failed: %r", user_id, exc)
    finally:
        for task in tasks:
            task.cancel()
        await synchronizer.stop()
        synchronizer.close()
        logger.info("Portfolio stream closed for %s", user_id)
