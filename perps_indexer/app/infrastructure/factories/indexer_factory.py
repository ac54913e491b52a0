from __future__ import annotations

from dataclasses import dataclass

from perps_indexer.app.application.services.decoder_registry import DecoderRegistry
from perps_indexer.app.application.services.head_pointer import HeadPointerTracker
from perps_indexer.app.application.services.index_confirmed_events import (
    ConfirmedRangeIndexer,
)
from perps_indexer.app.application.services.indexer_loop import IndexerLoop
from perps_indexer.app.application.services.poll_pending_events import PendingStreamPoller
from perps_indexer.app.application.services.processed_transactions import (
    ProcessedTransactionSet,
)
from perps_indexer.app.config import Settings
from perps_indexer.app.domain.ports.out import BlockTimestampResolver, LogSource, RecordStore
from perps_indexer.app.infrastructure.decoders.starknet.layouts import build_default_registry
from perps_indexer.app.infrastructure.providers.starknet_log_source import (
    StarknetJsonRpcLogSource,
)


@dataclass(frozen=True)
class IndexerComponents:
    registry: DecoderRegistry
    head_pointer: HeadPointerTracker
    processed: ProcessedTransactionSet
    indexer: ConfirmedRangeIndexer
    poller: PendingStreamPoller
    loop: IndexerLoop


def build_indexer_components(
    *,
    log_source: LogSource,
    store: RecordStore,
    contract_address: str,
    registry: DecoderRegistry | None = None,
    timestamps: BlockTimestampResolver | None = None,
    start_block: int = 0,
    page_size: int = 100,
    pending_interval: float = 10.0,
    backfill_interval: float = 30.0,
    processed_cache_size: int = 10_000,
) -> IndexerComponents:
    """
    Wire the pipeline around one log source and one record store.

    Both streams share the registry, the store and the head pointer; the dedup
    cache belongs to the pending stream only.
    """
    registry = registry if registry is not None else build_default_registry()
    head_pointer = HeadPointerTracker(store)
    processed = ProcessedTransactionSet(max_size=processed_cache_size)

    indexer = ConfirmedRangeIndexer(
        log_source=log_source,
        registry=registry,
        store=store,
        head_pointer=head_pointer,
        contract_address=contract_address,
        page_size=page_size,
        timestamps=timestamps,
    )
    poller = PendingStreamPoller(
        log_source=log_source,
        registry=registry,
        store=store,
        head_pointer=head_pointer,
        processed=processed,
        contract_address=contract_address,
        page_size=page_size,
    )
    loop = IndexerLoop(
        log_source=log_source,
        head_pointer=head_pointer,
        indexer=indexer,
        poller=poller,
        start_block=start_block,
        pending_interval=pending_interval,
        backfill_interval=backfill_interval,
    )
    return IndexerComponents(
        registry=registry,
        head_pointer=head_pointer,
        processed=processed,
        indexer=indexer,
        poller=poller,
        loop=loop,
    )


def indexer_components_from_settings(
    settings: Settings,
    *,
    store: RecordStore,
) -> IndexerComponents:
    """
    Wire dependencies from settings:
    - StarkNet JSON-RPC log source (also resolves block timestamps)
    - default decoder registry
    - the given record store
    """
    log_source = StarknetJsonRpcLogSource.from_url(
        settings.starknet_rpc_url,
        timeout=settings.rpc_timeout_seconds,
    )
    return build_indexer_components(
        log_source=log_source,
        store=store,
        contract_address=settings.contract_address,
        timestamps=log_source,
        start_block=settings.start_block,
        page_size=settings.events_page_size,
        pending_interval=settings.pending_poll_interval_seconds,
        backfill_interval=settings.backfill_interval_seconds,
        processed_cache_size=settings.processed_tx_cache_size,
    )
