from __future__ import annotations

import logging

from perps_indexer.app.config import get_settings
from perps_indexer.app.infrastructure.db.engine import create_app_async_engine
from perps_indexer.app.infrastructure.factories.indexer_factory import (
    indexer_components_from_settings,
)
from perps_indexer.app.infrastructure.factories.record_store_factory import (
    record_store_factory,
)


logger = logging.getLogger(__name__)


async def backfill_confirmed_events_task(
    *,
    from_block: int | None = None,
) -> int:
    """
    Task: one confirmed backfill pass.

    - from_block=None resumes from the head block (or START_BLOCK on a fresh
      database) and does nothing when the head is past the chain tip,
    - an explicit from_block re-indexes [from_block, latest]; inserts are
      idempotent, so overlapping ranges are safe.
    """
    engine = create_app_async_engine()
    try:
        store = record_store_factory(backend="sqlalchemy", engine=engine)
        components = indexer_components_from_settings(get_settings(), store=store)

        if from_block is None:
            processed = await components.loop.backfill_once()
        else:
            processed = await components.indexer.run(from_block)

        logger.info("Backfill finished: processed=%s", processed)
        return processed
    finally:
        await engine.dispose()
