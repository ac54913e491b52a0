from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from eth_utils import remove_0x_prefix

from perps_indexer.app.domain.errors import DecodeError


Coercion = Callable[[str], Any]


# -----------------------------------------------------------------------------
# Coercions: one payload word -> one typed value.
# They raise ValueError / KeyError on bad input; the reader decides whether
# that is fatal (required field) or just an absent value (optional field).
# -----------------------------------------------------------------------------


def address(word: str) -> str:
    return word


def text(word: str) -> str:
    return word


def hex_int(word: str) -> int:
    return int(remove_0x_prefix(word.strip()), 16)


def dec_int(word: str) -> int:
    return int(word.strip(), 10)


def code_int(word: str) -> int:
    """Small integer code, accepted either as 0x-prefixed hex or as decimal."""
    w = word.strip()
    value = int(w[2:], 16) if w[:2].lower() == "0x" else int(w, 10)
    if value < 0:
        raise ValueError(f"Negative code {word!r}")
    return value


def flag(sentinel: str) -> Coercion:
    """Boolean by exact string match: the sentinel is True, anything else False."""

    def _coerce(word: str) -> bool:
        return word == sentinel

    return _coerce


def enum_code(table: Mapping[int, Any]) -> Coercion:
    """Enum by integer-code lookup; unmapped codes fail explicitly."""

    def _coerce(word: str) -> Any:
        code = code_int(word)
        try:
            return table[code]
        except KeyError:
            raise KeyError(f"Unmapped enum code {code}") from None

    return _coerce


# -----------------------------------------------------------------------------
# Layout entries
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Field:
    """
    A scalar read from the slot at the current offset.

    width is the number of slots the value occupies on the wire (e.g. a u256 is
    two felts, low word first); only the first slot is read.
    """

    name: str
    coerce: Coercion = text
    required: bool = False
    width: int = 1


@dataclass(frozen=True)
class Skip:
    """Slots present on the wire that no record field uses."""

    width: int = 1


@dataclass(frozen=True)
class LengthPrefixed:
    """
    A length word followed by that many item words.

    Every entry after it is shifted by the number of slots consumed.
    """

    name: str
    item: Coercion = address
    required: bool = False

    def read(self, payload: Sequence[str], offset: int) -> tuple[tuple[Any, ...], int]:
        """Return (values, slots consumed including the length word)."""
        if offset >= len(payload):
            if self.required:
                raise DecodeError(
                    f"Missing length word for {self.name!r} at slot {offset}",
                    field=self.name,
                )
            return (), 0

        try:
            length = code_int(payload[offset])
        except ValueError as exc:
            if self.required:
                raise DecodeError(
                    f"Bad length word for {self.name!r}: {payload[offset]!r}",
                    field=self.name,
                ) from exc
            return (), 1
        items = payload[offset + 1 : offset + 1 + length]
        values: list[Any] = []
        for word in items:
            try:
                values.append(self.item(word))
            except (ValueError, KeyError) as exc:
                if self.required:
                    raise DecodeError(
                        f"Bad item in {self.name!r}: {word!r}", field=self.name
                    ) from exc
                return (), 1 + length
        # Later offsets shift by the declared length even when the payload is short.
        return tuple(values), 1 + length


LayoutEntry = Field | Skip | LengthPrefixed


def read_fields(payload: Sequence[str], layout: Sequence[LayoutEntry]) -> dict[str, Any]:
    """
    Interpret a payload against a layout, left to right.

    - out-of-range optional field -> None
    - optional field failing coercion -> None
    - required field missing or failing coercion -> DecodeError
    """
    out: dict[str, Any] = {}
    offset = 0

    for entry in layout:
        if isinstance(entry, Skip):
            offset += entry.width
            continue

        if isinstance(entry, LengthPrefixed):
            values, consumed = entry.read(payload, offset)
            out[entry.name] = values
            offset += consumed
            continue

        if offset >= len(payload):
            if entry.required:
                raise DecodeError(
                    f"Missing required field {entry.name!r} at slot {offset} "
                    f"(payload has {len(payload)} words)",
                    field=entry.name,
                )
            out[entry.name] = None
        else:
            word = payload[offset]
            try:
                out[entry.name] = entry.coerce(word)
            except (ValueError, KeyError) as exc:
                if entry.required:
                    raise DecodeError(
                        f"Cannot decode field {entry.name!r} from {word!r}: {exc}",
                        field=entry.name,
                    ) from exc
                out[entry.name] = None
        offset += entry.width

    return out
