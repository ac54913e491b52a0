from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from perps_indexer.app.infrastructure.db.db_base import BaseDB


HEAD_POINTER_ROW_ID = 1


class LastIndexedBlockDB(BaseDB):
    """
    Head pointer of the confirmed stream.

    Single row (id = 1); absent until the first confirmed event is indexed.
    """

    __tablename__ = "last_indexed_block"
    __table_args__ = ({"schema": "indexer"},)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
