from __future__ import annotations


class IndexerError(Exception):
    """Base class for failures raised by the event indexing pipeline."""


class LogSourceError(IndexerError):
    """
    The log source could not deliver a page (network, provider or protocol error).

    Aborts the current run / poll; progress persisted so far is kept.
    """


class DecodeError(IndexerError):
    """
    A required field of an event payload is missing or cannot be coerced.

    Decode failures are permanent: the event is logged, skipped and treated as seen.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StoreError(IndexerError):
    """
    The record store rejected a write or a read.

    Store failures are assumed transient: the event is retried on the next cycle.
    """
