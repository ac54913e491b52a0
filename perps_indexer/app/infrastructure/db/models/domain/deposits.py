from __future__ import annotations

from decimal import Decimal

from sqlalchemy import BigInteger, Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class DepositsDB(EventColumns, BaseDB):
    """DepositCreated events."""

    __tablename__ = "deposits"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_deposits_account", "account"),
        {"schema": "domain"},
    )

    account: Mapped[str | None] = mapped_column(Text, nullable=True)
    receiver: Mapped[str | None] = mapped_column(Text, nullable=True)
    callback_contract: Mapped[str | None] = mapped_column(Text, nullable=True)
    market: Mapped[str | None] = mapped_column(Text, nullable=True)
    initial_long_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    initial_short_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    long_token_swap_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_token_swap_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    initial_long_token_amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    initial_short_token_amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    min_market_tokens: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    updated_at_block: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    execution_fee: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    callback_gas_limit: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
