from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import Final


_DEFAULT_MAX_SIZE: Final[int] = 10_000


class ProcessedTransactionSet:
    """
    In-memory set of transaction hashes already persisted from the pending stream.

    Bounded with LRU eviction: a pending transaction older than a few thousand
    newer ones has either been confirmed (and is handled by the confirmed
    stream) or dropped. Not durable; a restart replays recent pending events and
    relies on idempotent inserts.

    `lock` must be held around check, dispatch and add so that concurrent polls
    never persist the same transaction twice.
    """

    def __init__(self, *, max_size: int = _DEFAULT_MAX_SIZE) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._hashes: OrderedDict[str, None] = OrderedDict()
        self.lock = asyncio.Lock()

    def __contains__(self, transaction_hash: object) -> bool:
        if not isinstance(transaction_hash, str):
            return False
        key = transaction_hash.lower()
        if key in self._hashes:
            self._hashes.move_to_end(key)
            return True
        return False

    def __len__(self) -> int:
        return len(self._hashes)

    def add(self, transaction_hash: str) -> None:
        key = transaction_hash.lower()
        self._hashes[key] = None
        self._hashes.move_to_end(key)
        while len(self._hashes) > self._max_size:
            self._hashes.popitem(last=False)

    @property
    def max_size(self) -> int:
        return self._max_size
