from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from perps_indexer.app.application.services.decoder_registry import DecoderRegistry
from perps_indexer.app.application.services.head_pointer import HeadPointerTracker
from perps_indexer.app.application.services.processed_transactions import (
    ProcessedTransactionSet,
)
from perps_indexer.app.domain.errors import LogSourceError, StoreError
from perps_indexer.app.domain.models.raw_event import EventFilter, LogPage, RawLogEntry
from perps_indexer.app.domain.models.records import EventRecord
from perps_indexer.app.infrastructure.adapters.stores.memory_record_store import (
    InMemoryRecordStore,
)
from perps_indexer.app.infrastructure.decoders.starknet.layouts import build_default_registry


CONTRACT = "0x" + "0c" * 32


def felt(n: int) -> str:
    return "0x" + format(n, "064x")


def log_entry(
    tx: int | str,
    signature: str,
    data: Sequence[str] = (),
    *,
    block: int | None = None,
    primary_key: str | None = None,
) -> RawLogEntry:
    keys = (signature,) if primary_key is None else (signature, primary_key)
    return RawLogEntry(
        transaction_hash=felt(tx) if isinstance(tx, int) else tx,
        keys=keys,
        data=tuple(data),
        block_number=block,
        from_address=CONTRACT,
    )


class FakeLogSource:
    """
    Serves fixed pages per stream ('latest' for confirmed, 'pending').

    Continuation tokens are page indexes; every fresh request (no token)
    starts again from the first page.
    """

    def __init__(
        self,
        *,
        confirmed: Sequence[Sequence[RawLogEntry]] = ((),),
        pending: Sequence[Sequence[RawLogEntry]] = ((),),
        latest_block: int = 0,
        timestamps: dict[int, str] | None = None,
    ) -> None:
        self.pages = {"latest": [tuple(p) for p in confirmed], "pending": [tuple(p) for p in pending]}
        self.latest_block = latest_block
        self.timestamps = timestamps or {}
        self.calls: list[tuple[EventFilter, str | None, int]] = []
        self.timestamp_calls: list[int] = []
        self.fail_on_page: int | None = None

    async def get_events(
        self,
        event_filter: EventFilter,
        *,
        continuation_token: str | None = None,
        page_size: int = 100,
    ) -> LogPage:
        self.calls.append((event_filter, continuation_token, page_size))
        pages = self.pages[str(event_filter.to_block)]
        index = int(continuation_token) if continuation_token else 0
        if self.fail_on_page == index:
            raise LogSourceError("node unavailable")
        token = str(index + 1) if index + 1 < len(pages) else None
        return LogPage(events=pages[index], continuation_token=token)

    async def get_latest_block_number(self) -> int:
        return self.latest_block

    async def get_block_timestamp(self, block_number: int) -> str | None:
        self.timestamp_calls.append(block_number)
        return self.timestamps.get(block_number)


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store that can be told to fail inserts or head writes."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_insert_for: set[str] = set()
        self.fail_set_head = False
        self.head_writes: list[int] = []
        self.yield_on_insert = False

    async def insert(self, record: EventRecord) -> None:
        if record.transaction_hash in self.fail_insert_for:
            raise StoreError(f"insert rejected: {record.transaction_hash}")
        if self.yield_on_insert:
            await asyncio.sleep(0)
        await super().insert(record)

    async def set_head(self, block_number: int) -> None:
        if self.fail_set_head:
            raise StoreError("head write rejected")
        self.head_writes.append(block_number)
        await super().set_head(block_number)


@pytest.fixture
def store() -> FlakyRecordStore:
    return FlakyRecordStore()


@pytest.fixture
def head_pointer(store: FlakyRecordStore) -> HeadPointerTracker:
    return HeadPointerTracker(store)


@pytest.fixture
def registry() -> DecoderRegistry:
    return build_default_registry()


@pytest.fixture
def processed() -> ProcessedTransactionSet:
    return ProcessedTransactionSet(max_size=100)
