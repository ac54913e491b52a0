from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class SwapFeesCollectedDB(EventColumns, BaseDB):
    __tablename__ = "swap_fees_collected"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_swap_fees_collected_market_token", "market", "token"),
        {"schema": "domain"},
    )

    market: Mapped[str | None] = mapped_column(Text, nullable=True)
    token: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_price: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    action: Mapped[str | None] = mapped_column(Text, nullable=True)
    fee_receiver_amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    fee_amount_for_pool: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    amount_after_fees: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    ui_fee_receiver: Mapped[str | None] = mapped_column(Text, nullable=True)
    ui_fee_receiver_factor: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    ui_fee_amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
