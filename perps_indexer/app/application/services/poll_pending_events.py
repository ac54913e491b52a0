from __future__ import annotations

import logging
import time
from typing import Callable, Final

from perps_indexer.app.application.services.decoder_registry import DecoderRegistry
from perps_indexer.app.application.services.head_pointer import HeadPointerTracker
from perps_indexer.app.application.services.processed_transactions import (
    ProcessedTransactionSet,
)
from perps_indexer.app.domain.errors import DecodeError
from perps_indexer.app.domain.models.raw_event import (
    PENDING,
    EventFilter,
    EventIndexCounter,
    RawEvent,
    RawLogEntry,
    normalize_felt,
)
from perps_indexer.app.domain.ports.out import LogSource, RecordStore


logger = logging.getLogger(__name__)

_DEFAULT_PAGE_SIZE: Final[int] = 100


def _unix_now() -> str:
    return str(int(time.time()))


class PendingStreamPoller:
    """
    Polls events of the pending block and persists the ones not seen yet.

    Pending events have no final block, so each is stamped with
    head_pointer + 1 and the wall-clock time. They are provisional: the head
    pointer is never advanced here; the confirmed stream re-observes them later.

    Dedup is per transaction hash against a volatile ProcessedTransactionSet,
    checked and updated under its lock.
    """

    def __init__(
        self,
        *,
        log_source: LogSource,
        registry: DecoderRegistry,
        store: RecordStore,
        head_pointer: HeadPointerTracker,
        processed: ProcessedTransactionSet,
        contract_address: str,
        page_size: int = _DEFAULT_PAGE_SIZE,
        clock: Callable[[], str] = _unix_now,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._log_source = log_source
        self._registry = registry
        self._store = store
        self._head = head_pointer
        self._processed = processed
        self._contract_address = contract_address
        self._page_size = page_size
        self._clock = clock

    def build_filter(self) -> EventFilter:
        return EventFilter(
            address=self._contract_address,
            signatures=self._registry.signatures,
            from_block=PENDING,
            to_block=PENDING,
        )

    async def poll_once(self) -> int:
        event_filter = self.build_filter()
        provisional_block = await self._head.get() + 1
        counter = EventIndexCounter()
        processed = 0
        duplicates = 0
        token: str | None = None

        while True:
            page = await self._log_source.get_events(
                event_filter,
                continuation_token=token,
                page_size=self._page_size,
            )
            for entry in page.events:
                outcome = await self._process_entry(entry, counter, provisional_block)
                if outcome == "decoded":
                    processed += 1
                elif outcome == "duplicate":
                    duplicates += 1

            token = page.continuation_token
            if not token:
                break

        if processed or duplicates:
            logger.info(
                "Pending poll done: processed=%s, already_seen=%s, provisional_block=%s",
                processed,
                duplicates,
                provisional_block,
            )
        return processed

    async def _process_entry(
        self,
        entry: RawLogEntry,
        counter: EventIndexCounter,
        provisional_block: int,
    ) -> str:
        """Return 'decoded', 'duplicate', 'skipped' or 'failed'."""
        event_index = counter.next_index(entry.transaction_hash)
        try:
            tx_hash = normalize_felt(entry.transaction_hash)
        except ValueError:
            logger.warning("Pending event with malformed tx hash: %r", entry.transaction_hash)
            return "failed"

        async with self._processed.lock:
            if tx_hash in self._processed:
                return "duplicate"

            try:
                event = RawEvent.from_log_entry(
                    entry,
                    event_index=event_index,
                    block_number=provisional_block,
                    timestamp=self._clock(),
                    provisional=True,
                )
                result = await self._registry.dispatch(event, self._store)
            except DecodeError as exc:
                logger.warning("Undecodable pending event: tx=%s error=%s", tx_hash, exc)
                # Permanent failure: don't re-decode it every poll.
                self._processed.add(tx_hash)
                return "failed"

            if not result.decoded:
                return "skipped"
            self._processed.add(tx_hash)
            return "decoded"
