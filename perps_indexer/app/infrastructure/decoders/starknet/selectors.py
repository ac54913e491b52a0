from __future__ import annotations

from typing import Final

from eth_utils import keccak


_MASK_250: Final[int] = (1 << 250) - 1


def starknet_selector(event_name: str) -> str:
    """
    StarkNet event selector: keccak256(name) truncated to 250 bits.

    Returned in the normalized '0x' + 64 hex digits form used for registry keys.
    """
    value = int.from_bytes(keccak(text=event_name), "big") & _MASK_250
    return "0x" + format(value, "064x")
