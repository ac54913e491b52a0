from __future__ import annotations

from sqlalchemy import Index, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.event_columns import EventColumns


class MarketsDB(EventColumns, BaseDB):
    """
    Market registry (MarketCreated events).

    market_token is the market address referenced by every other table.
    """

    __tablename__ = "markets"
    __table_args__ = (
        PrimaryKeyConstraint("transaction_hash", "event_index"),
        Index("ix_markets_market_token", "market_token"),
        {"schema": "domain"},
    )

    creator: Mapped[str | None] = mapped_column(Text, nullable=True)
    market_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    index_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    long_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    market_type: Mapped[str | None] = mapped_column(Text, nullable=True)
