"""Application wiring: builds the long-lived components from Settings.

Everything stateful (stores, poller, testnet ledger) lives on one
AppComponents object attached to app.state, so handlers receive explicit
handles through the get_components dependency and tests can build isolated
instances with their own Settings.
"""

import logging
from dataclasses import dataclass

from starlette.requests import HTTPConnection

from config.settings import Settings
from src.pt_common.enums import FeedMode, WalletBackend, WriteMode
from src.pt_common.redis_client import close_redis, get_redis
from src.pt_engine.engine import TradeEngine
from src.pt_gateway.middleware.rate_limit import TradeRateLimiter
from src.pt_market.application.poller import PricePoller
from src.pt_market.domain.feed import PriceFeedProtocol
from src.pt_market.infrastructure.coingecko import CoinGeckoPriceFeed
from src.pt_market.infrastructure.simulated import MAX_POINTS, SimulatedPriceFeed
from src.pt_sync.synchronizer import StateSynchronizer
from src.pt_testnet.ledger import TestnetLedger
from src.pt_wallet.application.service import WalletApplicationService
from src.pt_wallet.domain.repository import TradeLogProtocol, WalletStoreProtocol
from src.pt_wallet.infrastructure.memory_store import InMemoryTradeLog, InMemoryWalletStore

logger = logging.getLogger(__name__)


@dataclass
class AppComponents:
    settings: Settings
    store: WalletStoreProtocol
    trade_log: TradeLogProtocol
    engine: TradeEngine
    feed: PriceFeedProtocol
    simulated_feed: SimulatedPriceFeed
    poller: PricePoller
    wallet_service: WalletApplicationService
    testnet: TestnetLedger
    rate_limiter: TradeRateLimiter | None = None

    def new_synchronizer(self, user_id: str) -> StateSynchronizer:
        return StateSynchronizer(
            user_id,
            self.store,
            self.poller,
            retry_attempts=self.settings.SYNC_RETRY_ATTEMPTS,
            retry_delay_seconds=self.settings.SYNC_RETRY_DELAY_SECONDS,
        )

    async def start(self) -> None:
        self.poller.start()

    async def shutdown(self) -> None:
        await self.poller.stop()
        self.poller.close()
        if isinstance(self.feed, CoinGeckoPriceFeed):
            await self.feed.aclose()
        if self.rate_limiter is not None:
            await close_redis()


def _build_store(cfg: Settings) -> tuple[WalletStoreProtocol, TradeLogProtocol]:
    backend = WalletBackend(cfg.WALLET_BACKEND)
    if backend == WalletBackend.POSTGRES:
        # Imported lazily: creating the engine needs the asyncpg driver
        from src.pt_common.database import async_session_factory
        from src.pt_wallet.infrastructure.persistence import SqlTradeLog, SqlWalletStore

        return (
            SqlWalletStore(async_session_factory, cfg.APP_ID, cfg.DEFAULT_BALANCE),
            SqlTradeLog(async_session_factory, cfg.APP_ID),
        )
    return InMemoryWalletStore(cfg.DEFAULT_BALANCE), InMemoryTradeLog()


def build_components(cfg: Settings) -> AppComponents:
    simulated = SimulatedPriceFeed(
        seed=cfg.SIM_SEED,
        step_seconds=cfg.PRICE_POLL_INTERVAL_SECONDS,
        capacity=MAX_POINTS,
    )
    feed: PriceFeedProtocol
    if FeedMode(cfg.PRICE_FEED_MODE) == FeedMode.LIVE:
        feed = CoinGeckoPriceFeed(cfg.COINGECKO_BASE_URL, cfg.FEED_TIMEOUT_SECONDS)
    else:
        feed = simulated

    poller = PricePoller(
        feed,
        cfg.PRICE_SYMBOL,
        interval_seconds=cfg.PRICE_POLL_INTERVAL_SECONDS,
        points=cfg.PRICE_HISTORY_POINTS,
        retry_attempts=cfg.FEED_RETRY_ATTEMPTS,
        retry_delay_seconds=cfg.FEED_RETRY_DELAY_SECONDS,
        history_capacity=cfg.PRICE_HISTORY_CAPACITY,
    )
    store, trade_log = _build_store(cfg)
    engine = TradeEngine(buy_notional=cfg.BUY_NOTIONAL, sell_fraction=cfg.SELL_FRACTION)
    rate_limiter = (
        TradeRateLimiter(get_redis, cfg.TRADE_RATE_LIMIT_PER_MINUTE)
        if cfg.TRADE_RATE_LIMIT_PER_MINUTE > 0
        else None
    )
    logger.info(
        "Components: wallet=%s write=%s feed=%s symbol=%s",
        cfg.WALLET_BACKEND, cfg.WALLET_WRITE_MODE, cfg.PRICE_FEED_MODE, cfg.PRICE_SYMBOL,
    )
    return AppComponents(
        settings=cfg,
        store=store,
        trade_log=trade_log,
        engine=engine,
        feed=feed,
        simulated_feed=simulated,
        poller=poller,
        wallet_service=WalletApplicationService(
            store, engine, poller, WriteMode(cfg.WALLET_WRITE_MODE), trade_log=trade_log
        ),
        testnet=TestnetLedger(cfg.TESTNET_USER_ID, cfg.DEFAULT_BALANCE),
        rate_limiter=rate_limiter,
    )


def get_components(conn: HTTPConnection) -> AppComponents:
    """FastAPI dependency (HTTP and WebSocket): the app's AppComponents."""
    components: AppComponents = conn.app.state.components
    return components
