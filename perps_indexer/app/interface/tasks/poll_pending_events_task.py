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


async def poll_pending_events_task() -> int:
    """Task: a single poll of the pending block."""
    engine = create_app_async_engine()
    try:
        store = record_store_factory(backend="sqlalchemy", engine=engine)
        components = indexer_components_from_settings(get_settings(), store=store)
        return await components.poller.poll_once()
    finally:
        await engine.dispose()
