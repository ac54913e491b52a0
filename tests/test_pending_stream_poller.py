import asyncio

import pytest

from conftest import CONTRACT, FakeLogSource, felt, log_entry

from perps_indexer.app.application.services.index_confirmed_events import (
    ConfirmedRangeIndexer,
)
from perps_indexer.app.application.services.poll_pending_events import PendingStreamPoller
from perps_indexer.app.domain.errors import StoreError
from perps_indexer.app.domain.models.raw_event import PENDING
from perps_indexer.app.infrastructure.decoders.starknet.layouts import (
    DEPOSIT_CREATED_SIGNATURE,
    MARKET_CREATED_SIGNATURE,
    POSITION_INCREASE_SIGNATURE,
)


MARKET_PAYLOAD = ["0xcreator", "0xmt", "0xidx", "0xlong", "0xshort", "0xtype"]


def market(tx):
    return log_entry(tx, MARKET_CREATED_SIGNATURE, MARKET_PAYLOAD)


def make_poller(log_source, registry, store, head_pointer, processed):
    return PendingStreamPoller(
        log_source=log_source,
        registry=registry,
        store=store,
        head_pointer=head_pointer,
        processed=processed,
        contract_address=CONTRACT,
        clock=lambda: "1700000123",
    )


class TestPendingStreamPoller:
    @pytest.mark.asyncio
    async def test_filter_targets_pending_block(self, registry, store, head_pointer, processed):
        source = FakeLogSource()
        await make_poller(source, registry, store, head_pointer, processed).poll_once()

        event_filter, _, _ = source.calls[0]
        assert event_filter.from_block == PENDING
        assert event_filter.to_block == PENDING
        assert event_filter.address == CONTRACT

    @pytest.mark.asyncio
    async def test_same_transaction_is_persisted_once(self, registry, store, head_pointer, processed):
        source = FakeLogSource(pending=[[market(1)]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        assert await poller.poll_once() == 1
        assert await poller.poll_once() == 0

        assert len(store.records) == 1
        assert felt(1) in processed

    @pytest.mark.asyncio
    async def test_provisional_block_and_wall_clock(self, registry, store, head_pointer, processed):
        await head_pointer.advance(500)
        source = FakeLogSource(pending=[[market(1)]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        await poller.poll_once()

        [record] = store.records
        assert record.block_number == 501
        assert record.block_timestamp == "1700000123"
        assert record.provisional is True

    @pytest.mark.asyncio
    async def test_head_pointer_is_never_advanced(self, registry, store, head_pointer, processed):
        source = FakeLogSource(pending=[[market(1), market(2)]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        await poller.poll_once()

        assert store.head_writes == []
        assert await head_pointer.get() == 0

    @pytest.mark.asyncio
    async def test_unknown_signature_is_not_marked_processed(self, registry, store, head_pointer, processed):
        source = FakeLogSource(pending=[[log_entry(1, felt(0xDEAD), ["0x1"])]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        assert await poller.poll_once() == 0
        assert felt(1) not in processed
        assert store.records == []

    @pytest.mark.asyncio
    async def test_undecodable_event_is_marked_processed(self, registry, store, head_pointer, processed):
        source = FakeLogSource(pending=[[log_entry(1, POSITION_INCREASE_SIGNATURE, ["0xkey"])]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        assert await poller.poll_once() == 0
        assert felt(1) in processed
        assert store.records == []

    @pytest.mark.asyncio
    async def test_store_failure_leaves_transaction_retryable(self, registry, store, head_pointer, processed):
        source = FakeLogSource(pending=[[market(1)]])
        poller = make_poller(source, registry, store, head_pointer, processed)
        store.fail_insert_for.add(felt(1))

        with pytest.raises(StoreError):
            await poller.poll_once()
        assert felt(1) not in processed

        store.fail_insert_for.clear()
        assert await poller.poll_once() == 1

    @pytest.mark.asyncio
    async def test_second_event_of_a_processed_transaction_is_dropped(
        self, registry, store, head_pointer, processed
    ):
        source = FakeLogSource(pending=[[market(1), market(1)]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        assert await poller.poll_once() == 1
        assert len(store.records) == 1

    @pytest.mark.asyncio
    async def test_reads_every_page(self, registry, store, head_pointer, processed):
        source = FakeLogSource(pending=[[market(1)], [market(2)]])
        poller = make_poller(source, registry, store, head_pointer, processed)

        assert await poller.poll_once() == 2
        assert [token for _, token, _ in source.calls] == [None, "1"]

    @pytest.mark.asyncio
    async def test_overlapping_polls_persist_a_transaction_once(
        self, registry, store, head_pointer, processed
    ):
        source = FakeLogSource(pending=[[market(1)]])
        poller = make_poller(source, registry, store, head_pointer, processed)
        store.yield_on_insert = True

        results = await asyncio.gather(poller.poll_once(), poller.poll_once())

        assert sorted(results) == [0, 1]
        assert len(store.records) == 1


class TestPendingThenConfirmed:
    @pytest.mark.asyncio
    async def test_confirmed_stream_corrects_provisional_block(
        self, registry, store, head_pointer, processed
    ):
        await head_pointer.advance(30)
        entry = log_entry(7, DEPOSIT_CREATED_SIGNATURE, ["0xAAA"])
        source = FakeLogSource(
            pending=[[entry]],
            confirmed=[[log_entry(7, DEPOSIT_CREATED_SIGNATURE, ["0xAAA"], block=42)]],
            timestamps={42: "1700000999"},
        )
        poller = make_poller(source, registry, store, head_pointer, processed)
        indexer = ConfirmedRangeIndexer(
            log_source=source,
            registry=registry,
            store=store,
            head_pointer=head_pointer,
            contract_address=CONTRACT,
            timestamps=source,
        )

        await poller.poll_once()
        [pending] = store.records
        assert pending.block_number == 31
        assert pending.provisional is True

        await indexer.run(40)

        [confirmed] = store.records
        assert confirmed.block_number == 42
        assert confirmed.block_timestamp == "1700000999"
        assert confirmed.provisional is False
        assert confirmed.account == "0xAAA"
