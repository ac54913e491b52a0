from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, Text, false
from sqlalchemy.orm import Mapped, mapped_column


class EventColumns:
    """
    Columns shared by every domain event table.

    One row = one decoded event; (transaction_hash, event_index) is the
    primary key and the ON CONFLICT target of inserts.
    provisional rows hold an estimated block until a confirmed insert
    overwrites them.
    """

    transaction_hash: Mapped[str] = mapped_column(Text, nullable=False)
    event_index: Mapped[int] = mapped_column(Integer, nullable=False)
    block_number: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    primary_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    block_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    provisional: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
