from __future__ import annotations

import dataclasses
import enum
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Numeric, func, select
from sqlalchemy.dialects.postgresql import Insert, insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from perps_indexer.app.domain.errors import StoreError
from perps_indexer.app.domain.models.records import (
    Deposit,
    EventRecord,
    MarketCreated,
    Order,
    OrderExecuted,
    PoolAmountUpdated,
    PositionIncrease,
    SwapFeesCollected,
    SwapInfo,
    Withdrawal,
)
from perps_indexer.app.infrastructure.db.db_base import BaseDB
from perps_indexer.app.infrastructure.db.models.domain.deposits import DepositsDB
from perps_indexer.app.infrastructure.db.models.domain.markets import MarketsDB
from perps_indexer.app.infrastructure.db.models.domain.order_executions import OrderExecutionsDB
from perps_indexer.app.infrastructure.db.models.domain.orders import OrdersDB
from perps_indexer.app.infrastructure.db.models.domain.pool_amount_updates import (
    PoolAmountUpdatesDB,
)
from perps_indexer.app.infrastructure.db.models.domain.position_increases import (
    PositionIncreasesDB,
)
from perps_indexer.app.infrastructure.db.models.domain.swap_fees_collected import (
    SwapFeesCollectedDB,
)
from perps_indexer.app.infrastructure.db.models.domain.swap_infos import SwapInfosDB
from perps_indexer.app.infrastructure.db.models.domain.withdrawals import WithdrawalsDB
from perps_indexer.app.infrastructure.db.models.indexer.last_indexed_block import (
    HEAD_POINTER_ROW_ID,
    LastIndexedBlockDB,
)


logger = logging.getLogger(__name__)

RECORD_MODELS: dict[type[EventRecord], type[BaseDB]] = {
    Order: OrdersDB,
    Deposit: DepositsDB,
    Withdrawal: WithdrawalsDB,
    MarketCreated: MarketsDB,
    SwapInfo: SwapInfosDB,
    PoolAmountUpdated: PoolAmountUpdatesDB,
    PositionIncrease: PositionIncreasesDB,
    SwapFeesCollected: SwapFeesCollectedDB,
    OrderExecuted: OrderExecutionsDB,
}

_CONFLICT_KEY = ("transaction_hash", "event_index")


def _parse_timestamp(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError):
        logger.warning("Ignoring unparsable block timestamp: %r", value)
        return None


def record_to_row(record: EventRecord, model: type[BaseDB]) -> dict[str, Any]:
    """Flatten a record into column values of its table."""
    columns = model.__table__.columns
    row: dict[str, Any] = {}

    for f in dataclasses.fields(record):
        value = getattr(record, f.name)
        if f.name == "block_timestamp":
            value = _parse_timestamp(value)
        elif isinstance(value, enum.Enum):
            value = value.value
        elif isinstance(value, tuple):
            value = list(value)
        elif (
            isinstance(value, int)
            and not isinstance(value, bool)
            and isinstance(columns[f.name].type, Numeric)
        ):
            value = Decimal(value)
        row[f.name] = value

    return row


def build_insert_statement(record: EventRecord, model: type[BaseDB]) -> Insert:
    """
    Idempotent insert for one record.

    A provisional record never touches an existing row. A confirmed record
    replaces the block number and timestamp of a provisional row with the same
    identity and clears its provisional flag; confirmed rows stay as they are.
    """
    stmt = pg_insert(model).values(**record_to_row(record, model))
    if record.provisional:
        return stmt.on_conflict_do_nothing(index_elements=list(_CONFLICT_KEY))
    return stmt.on_conflict_do_update(
        index_elements=list(_CONFLICT_KEY),
        set_={
            "block_number": stmt.excluded.block_number,
            "block_timestamp": stmt.excluded.block_timestamp,
            "provisional": False,
        },
        where=model.__table__.c.provisional.is_(True),
    )


class SqlAlchemyRecordStore:
    """
    RecordStore adapter over PostgreSQL.

    Strategy:
    - one table per record kind in schema `domain`, looked up by record type,
    - INSERT ... ON CONFLICT (transaction_hash, event_index): a replayed event
      is a no-op, except that a confirmed event corrects the block of a row
      first written from the pending block,
    - head pointer kept in indexer.last_indexed_block (single row, upsert).

    Every SQLAlchemy failure is surfaced as StoreError.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def insert(self, record: EventRecord) -> None:
        model = RECORD_MODELS.get(type(record))
        if model is None:
            raise StoreError(f"No table for record type {type(record).__name__}")

        stmt = build_insert_statement(record, model)

        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Failed to insert {type(record).__name__} tx={record.transaction_hash}"
            ) from exc

        if result.rowcount == 0:
            logger.debug(
                "%s already stored: tx=%s event_index=%s",
                type(record).__name__,
                record.transaction_hash,
                record.event_index,
            )

    async def get_head(self) -> int:
        stmt = select(LastIndexedBlockDB.block_number).where(
            LastIndexedBlockDB.id == HEAD_POINTER_ROW_ID
        )
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                block_number = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read head pointer") from exc

        return int(block_number) if block_number is not None else 0

    async def set_head(self, block_number: int) -> None:
        stmt = pg_insert(LastIndexedBlockDB).values(
            id=HEAD_POINTER_ROW_ID,
            block_number=block_number,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LastIndexedBlockDB.id],
            set_={"block_number": stmt.excluded.block_number, "updated_at": func.now()},
        )

        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to write head pointer block={block_number}") from exc
