from __future__ import annotations

from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class OrdersDB(EventColumns, BaseDB):
    """OrderCreated events."""

    __tablename__ = "orders"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_orders_order_key", "order_key"),
        Index("ix_orders_account", "account"),
        {"schema": "domain"},
    )

    order_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    decrease_position_swap_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    account: Mapped[str | None] = mapped_column(Text, nullable=True)
    receiver: Mapped[str | None] = mapped_column(Text, nullable=True)
    callback_contract: Mapped[str | None] = mapped_column(Text, nullable=True)
    ui_fee_receiver: Mapped[str | None] = mapped_column(Text, nullable=True)
    market: Mapped[str | None] = mapped_column(Text, nullable=True)
    initial_collateral_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    swap_path: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False, default=list)

    # u256 amounts
    size_delta_usd: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    initial_collateral_delta_amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    trigger_price: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    acceptable_price: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    execution_fee: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    callback_gas_limit: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    min_output_amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)

    updated_at_block: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_long: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_frozen: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
