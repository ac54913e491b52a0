from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class PoolAmountUpdatesDB(EventColumns, BaseDB):
    """PoolAmountUpdated events."""

    __tablename__ = "pool_amount_updates"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_pool_amount_updates_market_token", "market", "token"),
        {"schema": "domain"},
    )

    market: Mapped[str | None] = mapped_column(Text, nullable=True)
    token: Mapped[str | None] = mapped_column(Text, nullable=True)
    delta_mag: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    delta_sign: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    next_value: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
