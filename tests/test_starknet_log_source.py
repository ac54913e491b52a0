import pytest

from conftest import felt

from perps_indexer.app.domain.errors import LogSourceError
from perps_indexer.app.domain.models.raw_event import LATEST, PENDING, EventFilter
from perps_indexer.app.infrastructure.providers.starknet_log_source import (
    StarknetJsonRpcLogSource,
    block_id,
)


class FakeProvider:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    async def make_request(self, method, params):
        self.requests.append((method, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


FILTER = EventFilter(address="0xc0ffee", signatures=(felt(1), felt(2)), from_block=10, to_block=LATEST)


class TestBlockId:
    def test_number(self):
        assert block_id(12) == {"block_number": 12}

    def test_tags(self):
        assert block_id(PENDING) == "pending"
        assert block_id(LATEST) == "latest"

    def test_negative(self):
        with pytest.raises(ValueError):
            block_id(-1)


class TestGetEvents:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        provider = FakeProvider({"jsonrpc": "2.0", "id": 1, "result": {"events": []}})
        source = StarknetJsonRpcLogSource(provider)

        await source.get_events(FILTER, continuation_token="abc", page_size=50)

        method, params = provider.requests[0]
        assert method == "starknet_getEvents"
        assert params == [
            {
                "from_block": {"block_number": 10},
                "to_block": "latest",
                "address": "0xc0ffee",
                "keys": [[felt(1), felt(2)]],
                "chunk_size": 50,
                "continuation_token": "abc",
            }
        ]

    @pytest.mark.asyncio
    async def test_first_page_has_no_token(self):
        provider = FakeProvider({"result": {"events": []}})
        await StarknetJsonRpcLogSource(provider).get_events(FILTER)

        _, [request] = provider.requests[0]
        assert "continuation_token" not in request

    @pytest.mark.asyncio
    async def test_parses_events_and_token(self):
        provider = FakeProvider(
            {
                "result": {
                    "events": [
                        {
                            "from_address": "0xc0ffee",
                            "keys": ["0x1", "0x2"],
                            "data": ["0xa", "0xb"],
                            "block_number": 77,
                            "block_hash": "0xbeef",
                            "transaction_hash": "0x99",
                        },
                        {"keys": ["0x1"], "data": [], "transaction_hash": "0x98"},
                    ],
                    "continuation_token": "77-1",
                }
            }
        )

        page = await StarknetJsonRpcLogSource(provider).get_events(FILTER)

        assert page.continuation_token == "77-1"
        first, second = page.events
        assert first.keys == ("0x1", "0x2")
        assert first.data == ("0xa", "0xb")
        assert first.block_number == 77
        assert first.transaction_hash == "0x99"
        assert second.block_number is None

    @pytest.mark.asyncio
    async def test_rpc_error_object(self):
        provider = FakeProvider({"error": {"code": 33, "message": "invalid continuation token"}})
        with pytest.raises(LogSourceError):
            await StarknetJsonRpcLogSource(provider).get_events(FILTER)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        provider = FakeProvider(ConnectionError("refused"))
        with pytest.raises(LogSourceError) as exc_info:
            await StarknetJsonRpcLogSource(provider).get_events(FILTER)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_malformed_event(self):
        provider = FakeProvider({"result": {"events": [{"keys": ["0x1"]}]}})
        with pytest.raises(LogSourceError):
            await StarknetJsonRpcLogSource(provider).get_events(FILTER)


class TestBlocks:
    @pytest.mark.asyncio
    async def test_latest_block_number(self):
        provider = FakeProvider({"result": 654321})
        assert await StarknetJsonRpcLogSource(provider).get_latest_block_number() == 654321
        assert provider.requests == [("starknet_blockNumber", [])]

    @pytest.mark.asyncio
    async def test_block_timestamp(self):
        provider = FakeProvider({"result": {"block_number": 5, "timestamp": 1700000000}})
        source = StarknetJsonRpcLogSource(provider)

        assert await source.get_block_timestamp(5) == "1700000000"
        assert provider.requests == [("starknet_getBlockWithTxHashes", [{"block_number": 5}])]

    @pytest.mark.asyncio
    async def test_missing_result(self):
        provider = FakeProvider({"jsonrpc": "2.0", "id": 1})
        with pytest.raises(LogSourceError):
            await StarknetJsonRpcLogSource(provider).get_latest_block_number()
