import pytest

from conftest import CONTRACT, FakeLogSource, felt, log_entry

from perps_indexer.app.application.services.index_confirmed_events import (
    ConfirmedRangeIndexer,
)
from perps_indexer.app.domain.errors import LogSourceError, StoreError
from perps_indexer.app.domain.models.raw_event import LATEST
from perps_indexer.app.domain.models.records import Deposit, PositionIncrease
from perps_indexer.app.infrastructure.decoders.starknet.layouts import (
    DEPOSIT_CREATED_SIGNATURE,
    POSITION_INCREASE_SIGNATURE,
)


DEPOSIT_PAYLOAD = ["0xAAA", "0xBBB", "0xCCC"] + [str(n) for n in range(16)]
UNKNOWN_SIGNATURE = felt(0xDEAD)


def deposit(tx, block):
    return log_entry(tx, DEPOSIT_CREATED_SIGNATURE, DEPOSIT_PAYLOAD, block=block, primary_key=felt(tx))


def make_indexer(log_source, registry, store, head_pointer, **kwargs):
    return ConfirmedRangeIndexer(
        log_source=log_source,
        registry=registry,
        store=store,
        head_pointer=head_pointer,
        contract_address=CONTRACT,
        **kwargs,
    )


class TestConfirmedRangeIndexer:
    @pytest.mark.asyncio
    async def test_deposit_end_to_end(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 812)]])
        indexer = make_indexer(source, registry, store, head_pointer)

        processed = await indexer.run(800)

        assert processed == 1
        [record] = store.records
        assert isinstance(record, Deposit)
        assert record.account == "0xAAA"
        assert record.receiver == "0xBBB"
        assert record.callback_contract == "0xCCC"
        assert record.block_number == 812
        assert await head_pointer.get() == 812

    @pytest.mark.asyncio
    async def test_filter_covers_registry(self, registry, store, head_pointer):
        source = FakeLogSource()
        indexer = make_indexer(source, registry, store, head_pointer, page_size=25)

        await indexer.run(7)

        event_filter, token, page_size = source.calls[0]
        assert event_filter.address == CONTRACT
        assert event_filter.from_block == 7
        assert event_filter.to_block == LATEST
        assert set(event_filter.signatures) == set(registry.signatures)
        assert token is None
        assert page_size == 25

    @pytest.mark.asyncio
    async def test_follows_continuation_tokens(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 10)], [deposit(2, 11)], [deposit(3, 12)]])
        indexer = make_indexer(source, registry, store, head_pointer)

        processed = await indexer.run(10)

        assert processed == 3
        assert [token for _, token, _ in source.calls] == [None, "1", "2"]
        assert len(store.records) == 3
        assert await head_pointer.get() == 12
        assert store.head_writes == [10, 11, 12]

    @pytest.mark.asyncio
    async def test_unknown_signature_does_not_move_head(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[log_entry(1, UNKNOWN_SIGNATURE, ["0x1"], block=50)]])
        indexer = make_indexer(source, registry, store, head_pointer)

        assert await indexer.run(1) == 0
        assert store.records == []
        assert store.head_writes == []

    @pytest.mark.asyncio
    async def test_undecodable_event_is_skipped_but_counted_as_seen(self, registry, store, head_pointer):
        broken = log_entry(1, POSITION_INCREASE_SIGNATURE, ["0xkey"], block=20)
        source = FakeLogSource(confirmed=[[broken, deposit(2, 21)]])
        indexer = make_indexer(source, registry, store, head_pointer)

        processed = await indexer.run(20)

        assert processed == 1
        assert store.records_of(PositionIncrease) == []
        assert store.head_writes == [20, 21]

    @pytest.mark.asyncio
    async def test_insert_failure_aborts_without_advancing(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 10), deposit(2, 11), deposit(3, 12)]])
        store.fail_insert_for.add(felt(2))
        indexer = make_indexer(source, registry, store, head_pointer)

        with pytest.raises(StoreError):
            await indexer.run(10)

        assert await head_pointer.get() == 10
        assert len(store.records) == 1

    @pytest.mark.asyncio
    async def test_head_write_failure_is_tolerated(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 10), deposit(2, 11)]])
        store.fail_set_head = True
        indexer = make_indexer(source, registry, store, head_pointer)

        assert await indexer.run(10) == 2
        assert len(store.records) == 2
        assert await head_pointer.get() == 0

    @pytest.mark.asyncio
    async def test_log_source_failure_keeps_progress(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 10)], [deposit(2, 11)]])
        source.fail_on_page = 1
        indexer = make_indexer(source, registry, store, head_pointer)

        with pytest.raises(LogSourceError):
            await indexer.run(10)

        assert await head_pointer.get() == 10
        assert len(store.records) == 1

    @pytest.mark.asyncio
    async def test_events_of_one_transaction_get_distinct_indexes(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 10)], [deposit(1, 10)]])
        indexer = make_indexer(source, registry, store, head_pointer)

        await indexer.run(10)

        assert sorted(r.event_index for r in store.records) == [0, 1]

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, registry, store, head_pointer):
        source = FakeLogSource(confirmed=[[deposit(1, 10), deposit(2, 11)]])
        indexer = make_indexer(source, registry, store, head_pointer)

        await indexer.run(10)
        await indexer.run(10)

        assert len(store.records) == 2

    @pytest.mark.asyncio
    async def test_block_timestamps_are_resolved_once_per_block(self, registry, store, head_pointer):
        source = FakeLogSource(
            confirmed=[[deposit(1, 10), deposit(2, 10), deposit(3, 11)]],
            timestamps={10: "1700000000", 11: "1700000030"},
        )
        indexer = make_indexer(source, registry, store, head_pointer, timestamps=source)

        await indexer.run(10)

        assert source.timestamp_calls == [10, 11]
        stamps = {r.transaction_hash: r.block_timestamp for r in store.records}
        assert stamps[felt(1)] == "1700000000"
        assert stamps[felt(3)] == "1700000030"

    @pytest.mark.asyncio
    async def test_rejects_negative_from_block(self, registry, store, head_pointer):
        indexer = make_indexer(FakeLogSource(), registry, store, head_pointer)
        with pytest.raises(ValueError):
            await indexer.run(-1)
