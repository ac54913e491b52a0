from __future__ import annotations

from typing import Protocol

from perps_indexer.app.domain.models.raw_event import EventFilter, LogPage
from perps_indexer.app.domain.models.records import EventRecord


class LogSource(Protocol):
    """
    Port for reading contract events from a chain node.

    Implementations must return events in block order, then event order within
    the block, and raise LogSourceError on any provider / network failure.
    """

    async def get_events(
        self,
        event_filter: EventFilter,
        *,
        continuation_token: str | None = None,
        page_size: int = 100,
    ) -> LogPage:
        ...

    async def get_latest_block_number(self) -> int:
        ...


class BlockTimestampResolver(Protocol):
    """
    Optional dependency of the confirmed-range indexer.

    Returns the block timestamp (unix seconds, as a decimal string) or None
    when the block cannot be resolved.
    """

    async def get_block_timestamp(self, block_number: int) -> str | None:
        ...


class RecordStore(Protocol):
    """
    Port for persisting decoded records and the head pointer.

    Implementations are responsible for:
    - inserting records idempotently, keyed by (transaction_hash, event_index),
    - keeping exactly one head-pointer row (upsert, last write wins),
    - raising StoreError on any backend failure.
    """

    async def insert(self, record: EventRecord) -> None:
        ...

    async def get_head(self) -> int:
        ...

    async def set_head(self, block_number: int) -> None:
        ...
