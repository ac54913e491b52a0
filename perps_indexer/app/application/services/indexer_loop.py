from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Final

from perps_indexer.app.application.services.head_pointer import HeadPointerTracker
from perps_indexer.app.application.services.index_confirmed_events import (
    ConfirmedRangeIndexer,
)
from perps_indexer.app.application.services.poll_pending_events import PendingStreamPoller
from perps_indexer.app.domain.ports.out import LogSource


logger = logging.getLogger(__name__)

_DEFAULT_PENDING_INTERVAL: Final[float] = 10.0
_DEFAULT_BACKFILL_INTERVAL: Final[float] = 30.0


class IndexerLoop:
    """
    Driver: runs the confirmed backfill and the pending poll as two independent
    repeating tasks until stop() is called.

    A failing cycle is logged and retried on the next interval; it never ends
    the loop.
    """

    def __init__(
        self,
        *,
        log_source: LogSource,
        head_pointer: HeadPointerTracker,
        indexer: ConfirmedRangeIndexer,
        poller: PendingStreamPoller,
        start_block: int = 0,
        pending_interval: float = _DEFAULT_PENDING_INTERVAL,
        backfill_interval: float = _DEFAULT_BACKFILL_INTERVAL,
    ) -> None:
        if start_block < 0:
            raise ValueError("start_block must be non-negative")
        if pending_interval <= 0 or backfill_interval <= 0:
            raise ValueError("intervals must be positive")
        self._log_source = log_source
        self._head = head_pointer
        self._indexer = indexer
        self._poller = poller
        self._start_block = start_block
        self._pending_interval = pending_interval
        self._backfill_interval = backfill_interval
        self._stop = asyncio.Event()

    async def resume_block(self) -> int:
        """
        First block the next backfill should read.

        The head block itself is re-read: the pointer moves per event, so an
        insert that failed midway through a block left the rest of that block
        unindexed. Idempotent inserts absorb the events already stored.
        """
        head = await self._head.get()
        return head if head > 0 else self._start_block

    async def backfill_once(self) -> int:
        """Catch up from the head pointer to the chain tip, if behind."""
        from_block = await self.resume_block()
        tip = await self._log_source.get_latest_block_number()
        if from_block > tip:
            logger.debug("Head pointer is past the tip (next=%s, tip=%s)", from_block, tip)
            return 0
        return await self._indexer.run(from_block)

    async def poll_pending_once(self) -> int:
        return await self._poller.poll_once()

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run_forever(self) -> None:
        logger.info(
            "Starting indexer loop: backfill every %ss, pending poll every %ss",
            self._backfill_interval,
            self._pending_interval,
        )
        await asyncio.gather(
            self._repeat("backfill", self.backfill_once, self._backfill_interval),
            self._repeat("pending", self.poll_pending_once, self._pending_interval),
        )
        logger.info("Indexer loop stopped")

    async def _repeat(
        self,
        name: str,
        cycle: Callable[[], Awaitable[int]],
        interval: float,
    ) -> None:
        while not self._stop.is_set():
            try:
                count = await cycle()
                logger.debug("%s cycle processed %s events", name, count)
            except Exception:
                logger.exception("%s cycle failed; retrying in %ss", name, interval)

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
