from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from perps_indexer.app.domain.models.raw_event import RawEvent, normalize_felt
from perps_indexer.app.domain.models.records import EventRecord
from perps_indexer.app.domain.ports.out import RecordStore


logger = logging.getLogger(__name__)

DecodeFn = Callable[[RawEvent], EventRecord]
PersistFn = Callable[[EventRecord, RecordStore], Awaitable[None]]


async def insert_record(record: EventRecord, store: RecordStore) -> None:
    """Default persistence sink: one idempotent insert per record."""
    await store.insert(record)


@dataclass(frozen=True)
class EventDescriptor:
    signature: str
    decode: DecodeFn
    persist: PersistFn = insert_record
    name: str = ""


class DispatchStatus(enum.Enum):
    DECODED = "decoded"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DispatchResult:
    status: DispatchStatus
    record: EventRecord | None = None

    @property
    def decoded(self) -> bool:
        return self.status is DispatchStatus.DECODED


SKIPPED = DispatchResult(status=DispatchStatus.SKIPPED)


class DecoderRegistry:
    """
    Signature -> EventDescriptor dispatch table.

    The registry is stream agnostic: it knows nothing about pending vs confirmed
    events. Unknown signatures are skipped, never an error, because new contract
    event kinds can appear before the indexer learns about them.

    dispatch() raises DecodeError (permanent, from decode) and StoreError
    (transient, from persist); callers own the policy for both.
    """

    def __init__(self, descriptors: Iterable[EventDescriptor] = ()) -> None:
        self._descriptors: dict[str, EventDescriptor] = {}
        for d in descriptors:
            self.add(d)

    def register(
        self,
        signature: str,
        decode: DecodeFn,
        persist: PersistFn = insert_record,
        *,
        name: str = "",
    ) -> EventDescriptor:
        descriptor = EventDescriptor(
            signature=normalize_felt(signature),
            decode=decode,
            persist=persist,
            name=name,
        )
        return self.add(descriptor)

    def add(self, descriptor: EventDescriptor) -> EventDescriptor:
        key = normalize_felt(descriptor.signature)
        if key in self._descriptors:
            logger.warning(
                "Overwriting descriptor for signature %s (%s -> %s)",
                key,
                self._descriptors[key].name,
                descriptor.name,
            )
        self._descriptors[key] = descriptor
        return descriptor

    def lookup(self, signature: str) -> EventDescriptor | None:
        try:
            key = normalize_felt(signature)
        except ValueError:
            return None
        return self._descriptors.get(key)

    @property
    def signatures(self) -> tuple[str, ...]:
        return tuple(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, signature: object) -> bool:
        return isinstance(signature, str) and self.lookup(signature) is not None

    async def dispatch(self, event: RawEvent, store: RecordStore) -> DispatchResult:
        descriptor = self.lookup(event.signature)
        if descriptor is None:
            logger.debug(
                "No descriptor for signature %s (tx=%s); skipping",
                event.signature,
                event.transaction_hash,
            )
            return SKIPPED

        record = descriptor.decode(event)
        await descriptor.persist(record, store)

        logger.debug(
            "Persisted %s: block=%s tx=%s index=%s",
            descriptor.name or descriptor.signature,
            event.block_number,
            event.transaction_hash,
            event.event_index,
        )
        return DispatchResult(status=DispatchStatus.DECODED, record=record)
