from __future__ import annotations

import logging

from perps_indexer.app.domain.ports.out import RecordStore


logger = logging.getLogger(__name__)


class HeadPointerTracker:
    """
    Durable checkpoint of the last block fully indexed by the confirmed stream.

    - get() returns the stored value, or 0 if it was never set.
    - advance() is a plain upsert: last write wins, so advancing to a lower
      block moves the pointer back. Callers advance once per event in log
      order, so the final value of a batch is its highest block.

    Only the confirmed-range indexer advances the pointer.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get(self) -> int:
        return await self._store.get_head()

    async def advance(self, block_number: int) -> None:
        if block_number < 0:
            raise ValueError("block_number must be non-negative")
        await self._store.set_head(block_number)
        logger.debug("Head pointer set to block %s", block_number)
