from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import replace
from typing import Final

from perps_indexer.app.application.services.decoder_registry import DecoderRegistry
from perps_indexer.app.application.services.head_pointer import HeadPointerTracker
from perps_indexer.app.domain.errors import DecodeError, StoreError
from perps_indexer.app.domain.models.raw_event import (
    LATEST,
    EventFilter,
    EventIndexCounter,
    RawEvent,
    RawLogEntry,
)
from perps_indexer.app.domain.ports.out import BlockTimestampResolver, LogSource, RecordStore


logger = logging.getLogger(__name__)

_DEFAULT_PAGE_SIZE: Final[int] = 100
_TIMESTAMP_CACHE_SIZE: Final[int] = 1_024


class ConfirmedRangeIndexer:
    """
    Indexes confirmed events for [from_block, latest] in a single, exhaustive pass.

    Strategy:
    - filter by contract address + every signature in the registry,
    - follow continuation tokens until the log source has no more pages,
    - dispatch events in log-source order, advancing the head pointer after each
      successfully dispatched (or permanently undecodable) event.

    Error policy:
    - LogSourceError: propagates; progress made so far is kept.
    - DecodeError: logged, event skipped, pointer still advanced past it.
    - StoreError on insert: propagates without advancing past the event.
    - StoreError on head write: logged; the next cycle re-processes from the
      persisted pointer and idempotent inserts absorb the replay.

    The component is stateless between invocations apart from the durable
    head pointer (and a timestamp cache, which is only an optimization).
    """

    def __init__(
        self,
        *,
        log_source: LogSource,
        registry: DecoderRegistry,
        store: RecordStore,
        head_pointer: HeadPointerTracker,
        contract_address: str,
        page_size: int = _DEFAULT_PAGE_SIZE,
        timestamps: BlockTimestampResolver | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._log_source = log_source
        self._registry = registry
        self._store = store
        self._head = head_pointer
        self._contract_address = contract_address
        self._page_size = page_size
        self._timestamps = timestamps
        self._timestamp_cache: OrderedDict[int, str | None] = OrderedDict()

    def build_filter(self, from_block: int) -> EventFilter:
        return EventFilter(
            address=self._contract_address,
            signatures=self._registry.signatures,
            from_block=from_block,
            to_block=LATEST,
        )

    async def run(self, from_block: int) -> int:
        if from_block < 0:
            raise ValueError("from_block must be non-negative")

        event_filter = self.build_filter(from_block)
        counter = EventIndexCounter()
        processed = 0
        skipped = 0
        failed = 0
        pages = 0
        token: str | None = None

        logger.info(
            "Indexing confirmed events: address=%s, blocks=[%s, latest], kinds=%s",
            self._contract_address,
            from_block,
            len(event_filter.signatures),
        )

        while True:
            page = await self._log_source.get_events(
                event_filter,
                continuation_token=token,
                page_size=self._page_size,
            )
            pages += 1

            for entry in page.events:
                outcome = await self._process_entry(entry, counter)
                if outcome == "decoded":
                    processed += 1
                elif outcome == "failed":
                    failed += 1
                else:
                    skipped += 1

            logger.debug(
                "Page %s done: events=%s, continuation_token=%s",
                pages,
                len(page.events),
                page.continuation_token,
            )

            token = page.continuation_token
            if not token:
                break

        logger.info(
            "Finished confirmed events: from_block=%s, pages=%s, processed=%s, "
            "skipped=%s, undecodable=%s",
            from_block,
            pages,
            processed,
            skipped,
            failed,
        )
        return processed

    async def _process_entry(self, entry: RawLogEntry, counter: EventIndexCounter) -> str:
        """Return 'decoded', 'skipped' or 'failed' (undecodable)."""
        try:
            event = RawEvent.from_log_entry(
                entry,
                event_index=counter.next_index(entry.transaction_hash),
            )
            if self._registry.lookup(event.signature) is None:
                # Unknown kinds leave the head pointer untouched.
                return "skipped"
            if event.block_number is not None and self._timestamps is not None:
                event = replace(event, timestamp=await self._block_timestamp(event.block_number))
            result = await self._registry.dispatch(event, self._store)
        except DecodeError as exc:
            # Permanent: count the event as seen so the pointer cannot get stuck.
            logger.warning(
                "Undecodable event skipped: block=%s tx=%s error=%s",
                entry.block_number,
                entry.transaction_hash,
                exc,
            )
            await self._advance(entry.block_number)
            return "failed"

        if not result.decoded:
            return "skipped"
        await self._advance(event.block_number)
        return "decoded"

    async def _advance(self, block_number: int | None) -> None:
        if block_number is None:
            return
        try:
            await self._head.advance(block_number)
        except StoreError:
            logger.exception("Failed to advance head pointer to block %s", block_number)

    async def _block_timestamp(self, block_number: int) -> str | None:
        if self._timestamps is None:
            return None
        if block_number in self._timestamp_cache:
            self._timestamp_cache.move_to_end(block_number)
            return self._timestamp_cache[block_number]

        timestamp = await self._timestamps.get_block_timestamp(block_number)
        self._timestamp_cache[block_number] = timestamp
        if len(self._timestamp_cache) > _TIMESTAMP_CACHE_SIZE:
            self._timestamp_cache.popitem(last=False)
        return timestamp
