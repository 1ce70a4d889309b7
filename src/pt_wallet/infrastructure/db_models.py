"""SQLAlchemy ORM model for pt_wallet.

Maps to the wallet_states table created by the Alembic migration.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pt_common.database import Base


class WalletStateORM(Base):
    __tablename__ = "wallet_states"

    app_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(32), primary_key=True, default="current_state")
    balance: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    shares: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False, default=0)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class WalletTradeORM(Base):
    __tablename__ = "wallet_trades"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    app_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[str] = mapped_column(String(8), nullable=False)
    symbol: Mapped[str] = mapped_column(String(64), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    shares: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False)
    executed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
