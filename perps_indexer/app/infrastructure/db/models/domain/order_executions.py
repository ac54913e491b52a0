from __future__ import annotations

from sqlalchemy import Index, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class OrderExecutionsDB(EventColumns, BaseDB):
    """OrderExecuted events; the order key is carried in primary_key."""

    __tablename__ = "order_executions"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_order_executions_primary_key", "primary_key"),
        {"schema": "domain"},
    )

    secondary_order_type: Mapped[str | None] = mapped_column(Text, nullable=True)
