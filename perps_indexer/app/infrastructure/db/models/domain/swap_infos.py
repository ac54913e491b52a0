from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class SwapInfosDB(EventColumns, BaseDB):
    """SwapInfo events (one per hop of an executed swap)."""

    __tablename__ = "swap_infos"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_swap_infos_order_key", "order_key"),
        Index("ix_swap_infos_market", "market"),
        {"schema": "domain"},
    )

    order_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    market: Mapped[str | None] = mapped_column(Text, nullable=True)
    receiver: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_in: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_out: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_in_price: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    token_out_price: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    amount_in: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    amount_in_after_fees: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    amount_out: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)

    # signed i128 split into magnitude + sign
    price_impact_usd_mag: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    price_impact_usd_sign: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    price_impact_amount_mag: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    price_impact_amount_sign: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
