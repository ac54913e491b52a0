from __future__ import annotations

import logging
from typing import Any, Mapping

from web3 import AsyncHTTPProvider
from web3.providers.async_base import AsyncBaseProvider

from perps_indexer.app.domain.errors import LogSourceError
from perps_indexer.app.domain.models.raw_event import (
    BlockSelector,
    EventFilter,
    LogPage,
    RawLogEntry,
)


logger = logging.getLogger(__name__)


def block_id(selector: BlockSelector) -> dict[str, int] | str:
    """StarkNet block id: {'block_number': n} or a tag ('latest', 'pending')."""
    if isinstance(selector, bool):
        raise ValueError(f"Invalid block selector: {selector!r}")
    if isinstance(selector, int):
        if selector < 0:
            raise ValueError(f"Invalid block number: {selector}")
        return {"block_number": selector}
    return selector


def _parse_entry(raw: Mapping[str, Any]) -> RawLogEntry:
    try:
        block_number = raw.get("block_number")
        return RawLogEntry(
            transaction_hash=str(raw["transaction_hash"]),
            keys=tuple(str(k) for k in raw.get("keys") or ()),
            data=tuple(str(d) for d in raw.get("data") or ()),
            block_number=int(block_number) if block_number is not None else None,
            from_address=raw.get("from_address"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise LogSourceError(f"Malformed event in starknet_getEvents response: {raw!r}") from exc


class StarknetJsonRpcLogSource:
    """
    LogSource + BlockTimestampResolver over a StarkNet JSON-RPC node.

    Requests go through web3's async HTTP provider (`make_request`); responses
    are StarkNet JSON-RPC, so they are parsed here rather than by web3
    formatters.

    Any transport failure, JSON-RPC error object or malformed result is raised
    as LogSourceError.
    """

    def __init__(self, provider: AsyncBaseProvider) -> None:
        self._provider = provider

    @classmethod
    def from_url(cls, rpc_url: str, *, timeout: float = 30) -> "StarknetJsonRpcLogSource":
        return cls(
            AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": timeout},
            )
        )

    async def get_events(
        self,
        event_filter: EventFilter,
        *,
        continuation_token: str | None = None,
        page_size: int = 100,
    ) -> LogPage:
        request: dict[str, Any] = {
            "from_block": block_id(event_filter.from_block),
            "to_block": block_id(event_filter.to_block),
            "address": event_filter.address,
            "keys": [list(event_filter.signatures)],
            "chunk_size": page_size,
        }
        if continuation_token:
            request["continuation_token"] = continuation_token

        result = await self._call("starknet_getEvents", [request])
        if not isinstance(result, Mapping) or not isinstance(result.get("events"), list):
            raise LogSourceError(f"Unexpected starknet_getEvents result: {result!r}")

        events = tuple(_parse_entry(raw) for raw in result["events"])
        token = result.get("continuation_token") or None
        logger.debug(
            "starknet_getEvents: from=%s to=%s events=%s next_token=%s",
            event_filter.from_block,
            event_filter.to_block,
            len(events),
            token,
        )
        return LogPage(events=events, continuation_token=token)

    async def get_latest_block_number(self) -> int:
        result = await self._call("starknet_blockNumber", [])
        try:
            return int(result)
        except (TypeError, ValueError) as exc:
            raise LogSourceError(f"Unexpected starknet_blockNumber result: {result!r}") from exc

    async def get_block_timestamp(self, block_number: int) -> str | None:
        result = await self._call(
            "starknet_getBlockWithTxHashes",
            [block_id(block_number)],
        )
        if not isinstance(result, Mapping):
            return None
        timestamp = result.get("timestamp")
        if timestamp is None:
            return None
        try:
            return str(int(timestamp))
        except (TypeError, ValueError) as exc:
            raise LogSourceError(f"Unexpected block timestamp: {timestamp!r}") from exc

    async def _call(self, method: str, params: list[Any]) -> Any:
        try:
            response = await self._provider.make_request(method, params)  # type: ignore[arg-type]
        except Exception as exc:
            raise LogSourceError(f"{method} request failed: {exc}") from exc

        if not isinstance(response, Mapping):
            raise LogSourceError(f"{method}: malformed JSON-RPC response: {response!r}")

        error = response.get("error")
        if error:
            raise LogSourceError(f"{method} returned an error: {error}")
        if "result" not in response:
            raise LogSourceError(f"{method}: response has no result")
        return response["result"]
