"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import Settings, settings
from src.bootstrap import AppComponents, build_components
from src.pt_common.enums import WalletBackend
from src.pt_common.errors import AppError
from src.pt_common.response import error_response
from src.pt_gateway.middleware.request_log import RequestLogMiddleware
from src.pt_market.api.router import router as market_router
from src.pt_sync.api.router import router as portfolio_router
from src.pt_testnet.api.router import router as testnet_router
from src.pt_wallet.api.router import router as wallet_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(cfg: Settings = settings, components: AppComponents | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup: verify DB (postgres backend), start price polling. Shutdown: stop and dispose."""
        state: AppComponents = app.state.components
        if WalletBackend(cfg.WALLET_BACKEND) == WalletBackend.POSTGRES:
            from src.pt_common.database import engine

            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        await state.start()
        yield
        await state.shutdown()
        if WalletBackend(cfg.WALLET_BACKEND) == WalletBackend.POSTGRES:
            from src.pt_common.database import engine

            await engine.dispose()

    app = FastAPI(
        title=cfg.APP_NAME,
        version=VERSION,
        lifespan=lifespan,
    )
    # Available before lifespan startup runs
    app.state.components = components or build_components(cfg)

    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
        return JSONResponse(
            status_code=exc.http_status,
            content=resp.model_dump(),
        )

    app.include_router(testnet_router, prefix="/api/v1")
    app.include_router(market_router, prefix="/api/v1")
    app.include_router(wallet_router, prefix="/api/v1")
    app.include_router(portfolio_router, prefix="/api/v1")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": VERSION}

    return app


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
