from __future__ import annotations

import dataclasses

from perps_indexer.app.domain.models.records import EventRecord


class InMemoryRecordStore:
    """
    RecordStore kept in process memory.

    Same idempotency key as the database store: one record per
    (record type, transaction_hash, event_index); re-inserts are ignored, except
    that a confirmed record takes over the block number and timestamp of a
    provisional one.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str, int], EventRecord] = {}
        self._head: int | None = None

    async def insert(self, record: EventRecord) -> None:
        key = (type(record).__name__, record.transaction_hash, record.event_index)
        existing = self._records.get(key)
        if existing is None:
            self._records[key] = record
        elif existing.provisional and not record.provisional:
            self._records[key] = dataclasses.replace(
                existing,
                block_number=record.block_number,
                block_timestamp=record.block_timestamp,
                provisional=False,
            )

    async def get_head(self) -> int:
        return self._head if self._head is not None else 0

    async def set_head(self, block_number: int) -> None:
        self._head = block_number

    @property
    def records(self) -> list[EventRecord]:
        return list(self._records.values())

    def records_of(self, record_type: type[EventRecord]) -> list[EventRecord]:
        return [r for r in self._records.values() if isinstance(r, record_type)]
