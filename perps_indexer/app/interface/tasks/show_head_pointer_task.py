from __future__ import annotations

from perps_indexer.app.application.services.head_pointer import HeadPointerTracker
from perps_indexer.app.infrastructure.db.engine import create_app_async_engine
from perps_indexer.app.infrastructure.factories.record_store_factory import (
    record_store_factory,
)


async def show_head_pointer_task() -> int:
    """Task: read the last confirmed block indexed (0 if none)."""
    engine = create_app_async_engine()
    try:
        store = record_store_factory(backend="sqlalchemy", engine=engine)
        return await HeadPointerTracker(store).get()
    finally:
        await engine.dispose()
