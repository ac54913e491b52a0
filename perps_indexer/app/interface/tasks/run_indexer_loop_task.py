from __future__ import annotations

import asyncio
import logging
import signal

from perps_indexer.app.config import get_settings
from perps_indexer.app.infrastructure.db.engine import create_app_async_engine
from perps_indexer.app.infrastructure.factories.indexer_factory import (
    indexer_components_from_settings,
)
from perps_indexer.app.infrastructure.factories.record_store_factory import (
    record_store_factory,
)


logger = logging.getLogger(__name__)


async def run_indexer_loop_task(*, backend: str = "sqlalchemy") -> None:
    """
    Task: long-running indexer.

    Runs the confirmed backfill and the pending poll side by side until
    SIGINT / SIGTERM.
    """
    settings = get_settings()
    engine = create_app_async_engine()
    try:
        store = record_store_factory(backend=backend, engine=engine)
        components = indexer_components_from_settings(settings, store=store)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, components.loop.stop)

        logger.info(
            "Indexing contract %s (start_block=%s, kinds=%s)",
            settings.contract_address,
            settings.start_block,
            len(components.registry),
        )
        try:
            await components.loop.run_forever()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
    finally:
        await engine.dispose()
