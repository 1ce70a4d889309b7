"""Unified error codes and custom exceptions.

Error code ranges:
  2xxx: Wallet
  3xxx: Market / price feed
  4xxx: Trade execution
  9xxx: System
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class NoHoldingsError(AppError):
    def __init__(self, symbol: str | None = None) -> None:
        detail = f" of {symbol}" if symbol else ""
        super().__init__(2002, f"No holdings{detail} to sell", 422)


class WriteConflictError(AppError):
    def __init__(self, user_id: str, expected: int, actual: int | None) -> None:
        super().__init__(
            2003,
            f"Wallet of user {user_id} changed concurrently: "
            f"expected version {expected}, found {actual}",
            409,
        )


# --- 3xxx: Market / price feed ---

class InvalidPriceError(AppError):
    def __init__(self, price: Decimal | None) -> None:
        super().__init__(3001, f"No valid price available (got {price})", 422)


class CoinNotFoundError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(3002, f"Coin not found: {symbol}", 404)


# --- 4xxx: Trade execution ---

class TradeInProgressError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(4001, f"A trade for user {user_id} is already in progress", 409)


class InvalidAmountError(AppError):
    def __init__(self, amount: Decimal) -> None:
        super().__init__(4002, f"Trade amount must be positive, got {amount}", 422)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class LedgerInvariantError(InternalError):
    """A trade computed a negative balance or share count beyond rounding noise."""

    def __init__(self, field: str, value: Decimal) -> None:
        super().__init__(f"Ledger invariant violated: {field} would become {value}")


class StoreUnavailableError(AppError):
    def __init__(self, detail: str = "Wallet store unavailable") -> None:
        super().__init__(9003, detail, 503)


class FeedUnavailableError(AppError):
    def __init__(self, detail: str = "Price feed unavailable") -> None:
        super().__init__(9004, detail, 503)
