"""Tests for pt_engine.engine: pure BUY/SELL rules."""

import random
from decimal import Decimal

import pytest

from src.pt_common.enums import RejectionReason, TradeKind
from src.pt_common.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidPriceError,
    NoHoldingsError,
)
from src.pt_engine.engine import TradeEngine, buy, rejection_error, sell
from src.pt_engine.models import Rejection
from src.pt_wallet.domain.models import WalletState


def _wallet(balance: str = "10000", shares: str = "0", version: int = 0) -> WalletState:
    return WalletState(balance=Decimal(balance), shares=Decimal(shares), version=version)


class TestBuy:
    def test_buy_spends_notional(self) -> None:
        result = buy(_wallet(), Decimal("1000"), Decimal("100"))
        assert isinstance(result, WalletState)
        assert result.balance == Decimal("9000")
        assert result.shares == Decimal("10")

    def test_buy_adds_to_existing_shares(self) -> None:
        result = buy(_wallet("5000", "2"), Decimal("1000"), Decimal("250"))
        assert isinstance(result, WalletState)
        assert result.shares == Decimal("6")

    def test_buy_exact_balance_leaves_zero(self) -> None:
        result = buy(_wallet("1000"), Decimal("1000"), Decimal("100"))
        assert isinstance(result, WalletState)
        assert result.balance == Decimal("0")

    def test_buy_insufficient_balance(self) -> None:
        result = buy(_wallet("999.99"), Decimal("1000"), Decimal("100"))
        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.INSUFFICIENT_BALANCE

    def test_buy_keeps_version(self) -> None:
        result = buy(_wallet(version=7), Decimal("1000"), Decimal("100"))
        assert isinstance(result, WalletState)
        assert result.version == 7


class TestSell:
    def test_sell_half(self) -> None:
        result = sell(_wallet("9000", "10"), Decimal("0.5"), Decimal("100"))
        assert isinstance(result, WalletState)
        assert result.balance == Decimal("9500")
        assert result.shares == Decimal("5")

    def test_sell_everything(self) -> None:
        result = sell(_wallet("0", "4"), Decimal("1"), Decimal("25"))
        assert isinstance(result, WalletState)
        assert result.balance == Decimal("100")
        assert result.shares == Decimal("0")

    def test_sell_without_holdings(self) -> None:
        result = sell(_wallet(), Decimal("0.5"), Decimal("100"))
        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.NO_HOLDINGS


class TestInvalidPrice:
    @pytest.mark.parametrize("price", [None, Decimal("0"), Decimal("-5")])
    def test_buy_rejects_unusable_price(self, price: Decimal | None) -> None:
        result = buy(_wallet(), Decimal("1000"), price)
        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.INVALID_PRICE

    def test_price_checked_before_holdings(self) -> None:
        result = sell(_wallet(), Decimal("0.5"), None)
        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.INVALID_PRICE

    def test_price_checked_before_balance(self) -> None:
        result = buy(_wallet("0"), Decimal("1000"), Decimal("0"))
        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.INVALID_PRICE


class TestRoundTrip:
    def test_buy_then_sell_all_restores_balance(self) -> None:
        price = Decimal("65000.37")
        bought = buy(_wallet(), Decimal("1000"), price)
        assert isinstance(bought, WalletState)
        sold = sell(bought, Decimal("1"), price)
        assert isinstance(sold, WalletState)
        assert abs(sold.balance - Decimal("10000")) <= Decimal("1e-18")
        assert sold.shares == Decimal("0")

    def test_random_sequence_never_goes_negative(self) -> None:
        rng = random.Random(7)
        engine = TradeEngine()
        state = WalletState.initial()
        for _ in range(300):
            kind = rng.choice([TradeKind.BUY, TradeKind.SELL])
            price = Decimal(str(round(rng.uniform(1, 1000), 2)))
            outcome = engine.execute(state, kind, price)
            if isinstance(outcome, WalletState):
                state = outcome
            assert state.balance >= 0
            assert state.shares >= 0


class TestTradeEngine:
    def test_defaults(self) -> None:
        engine = TradeEngine()
        assert engine.buy_notional == Decimal("1000")
        assert engine.sell_fraction == Decimal("0.5")

    def test_accepts_float_config(self) -> None:
        engine = TradeEngine(buy_notional=250, sell_fraction=0.25)  # type: ignore[arg-type]
        assert engine.buy_notional == Decimal("250")
        assert engine.sell_fraction == Decimal("0.25")

    def test_rejects_non_positive_notional(self) -> None:
        with pytest.raises(ValueError, match="buy_notional"):
            TradeEngine(buy_notional=Decimal("0"))

    @pytest.mark.parametrize("fraction", [Decimal("0"), Decimal("1.5")])
    def test_rejects_bad_fraction(self, fraction: Decimal) -> None:
        with pytest.raises(ValueError, match="sell_fraction"):
            TradeEngine(sell_fraction=fraction)

    def test_execute_dispatches_on_kind(self) -> None:
        engine = TradeEngine(buy_notional=Decimal("500"))
        bought = engine.execute(_wallet(), TradeKind.BUY, Decimal("50"))
        assert isinstance(bought, WalletState)
        assert bought.shares == Decimal("10")
        sold = engine.execute(bought, TradeKind.SELL, Decimal("50"))
        assert isinstance(sold, WalletState)
        assert sold.shares == Decimal("5")


class TestRejectionError:
    def test_maps_each_reason(self) -> None:
        current = _wallet("500")
        notional, price = Decimal("1000"), Decimal("100")
        insufficient = Rejection(RejectionReason.INSUFFICIENT_BALANCE, "x")
        no_holdings = Rejection(RejectionReason.NO_HOLDINGS, "x")
        invalid = Rejection(RejectionReason.INVALID_PRICE, "x")

        assert isinstance(
            rejection_error(insufficient, current, notional, price), InsufficientBalanceError
        )
        err = rejection_error(no_holdings, current, notional, price, symbol="solana")
        assert isinstance(err, NoHoldingsError)
        assert "solana" in err.message
        assert isinstance(rejection_error(invalid, current, notional, None), InvalidPriceError)
        bad_amount = Rejection(RejectionReason.INVALID_AMOUNT, "x")
        err = rejection_error(bad_amount, current, Decimal("0"), price)
        assert isinstance(err, InvalidAmountError)
        assert err.http_status == 422
