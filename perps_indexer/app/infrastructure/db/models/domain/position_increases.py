from __future__ import annotations

from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class PositionIncreasesDB(EventColumns, BaseDB):
    """PositionIncrease events; every column is mandatory."""

    __tablename__ = "position_increases"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_position_increases_key", "key"),
        Index("ix_position_increases_account_market", "account", "market"),
        {"schema": "domain"},
    )

    key: Mapped[str] = mapped_column(Text, nullable=False)
    account: Mapped[str] = mapped_column(Text, nullable=False)
    market: Mapped[str] = mapped_column(Text, nullable=False)
    collateral_token: Mapped[str] = mapped_column(Text, nullable=False)
    size_in_usd: Mapped[Decimal] = mapped_column(Numeric(78, 0), nullable=False)
    size_in_tokens: Mapped[Decimal] = mapped_column(Numeric(78, 0), nullable=False)
    collateral_amount: Mapped[Decimal] = mapped_column(Numeric(78, 0), nullable=False)
    borrowing_factor: Mapped[Decimal] = mapped_column(Numeric(78, 0), nullable=False)
    funding_fee_amount_per_size: Mapped[Decimal] = mapped_column(Numeric(78, 0), nullable=False)
    long_token_claimable_funding_amount_per_size: Mapped[Decimal] = mapped_column(
        Numeric(78, 0), nullable=False
    )
    short_token_claimable_funding_amount_per_size: Mapped[Decimal] = mapped_column(
        Numeric(78, 0), nullable=False
    )
    increased_at_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    decreased_at_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_long: Mapped[bool] = mapped_column(Boolean, nullable=False)
