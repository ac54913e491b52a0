from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Literal

from eth_utils import is_hex, remove_0x_prefix

from perps_indexer.app.domain.errors import DecodeError


BlockTag = Literal["latest", "pending"]
BlockSelector = int | BlockTag

PENDING: Final[BlockTag] = "pending"
LATEST: Final[BlockTag] = "latest"

# A StarkNet field element is < 2**252, rendered as 32 big-endian bytes.
_FELT_HEX_WIDTH: Final[int] = 64


def normalize_felt(value: str) -> str:
    """
    Render a hex field element as '0x' + 64 lowercase hex digits.

    Accepts values with or without the 0x prefix and with leading zeros stripped,
    so '0x2cf7', '2cf7' and '0x0000...2cf7' all normalize to the same key.
    """
    if not isinstance(value, str) or not is_hex(value):
        raise ValueError(f"Not a hex field element: {value!r}")
    digits = remove_0x_prefix(value.strip()).lower()
    if not digits:
        raise ValueError(f"Empty field element: {value!r}")
    if len(digits) > _FELT_HEX_WIDTH:
        stripped = digits.lstrip("0")
        if len(stripped) > _FELT_HEX_WIDTH:
            raise ValueError(f"Field element wider than 32 bytes: {value!r}")
        digits = stripped
    return "0x" + digits.rjust(_FELT_HEX_WIDTH, "0")


@dataclass(frozen=True)
class EventFilter:
    """Address/key filter sent to the log source for one stream invocation."""

    address: str
    signatures: tuple[str, ...]
    from_block: BlockSelector
    to_block: BlockSelector


@dataclass(frozen=True)
class RawLogEntry:
    """
    One log entry exactly as the log source returns it.

    keys[0] is the event selector (signature), keys[1:] are indexed arguments.
    block_number is None for events in the pending block.
    """

    transaction_hash: str
    keys: tuple[str, ...]
    data: tuple[str, ...]
    block_number: int | None = None
    from_address: str | None = None


@dataclass(frozen=True)
class LogPage:
    events: tuple[RawLogEntry, ...]
    continuation_token: str | None = None


@dataclass(frozen=True)
class RawEvent:
    """
    Wire-level event, normalized but not yet decoded.

    payload is consumed positionally by decoders; its order is authoritative.
    signature routes the event to a decoder and is not part of the payload.
    """

    transaction_hash: str
    signature: str
    payload: tuple[str, ...] = ()
    block_number: int | None = None
    primary_key: str | None = None
    timestamp: str | None = None
    event_index: int = 0
    provisional: bool = False

    @classmethod
    def from_log_entry(
        cls,
        entry: RawLogEntry,
        *,
        event_index: int = 0,
        block_number: int | None = None,
        timestamp: str | None = None,
        provisional: bool = False,
    ) -> "RawEvent":
        """
        Normalize a log entry.

        block_number overrides the entry's own block (used for pending events,
        which have none); provisional marks such events. Raises DecodeError on
        malformed hex identifiers.
        """
        if not entry.keys:
            raise DecodeError("Log entry has no keys; cannot derive a signature")
        try:
            transaction_hash = normalize_felt(entry.transaction_hash)
            signature = normalize_felt(entry.keys[0])
            primary_key = normalize_felt(entry.keys[1]) if len(entry.keys) > 1 else None
        except ValueError as exc:
            raise DecodeError(str(exc)) from exc

        return cls(
            transaction_hash=transaction_hash,
            signature=signature,
            payload=tuple(entry.data),
            block_number=block_number if block_number is not None else entry.block_number,
            primary_key=primary_key,
            timestamp=timestamp,
            event_index=event_index,
            provisional=provisional,
        )


@dataclass
class EventIndexCounter:
    """
    Assigns each event its ordinal within its transaction for one stream invocation.

    Pages arrive in (block, transaction, event) order, so the counter stays
    consistent across continuation pages of the same run.
    """

    _seen: dict[str, int] = field(default_factory=dict)

    def next_index(self, transaction_hash: str) -> int:
        key = transaction_hash.lower()
        index = self._seen.get(key, 0)
        self._seen[key] = index + 1
        return index
