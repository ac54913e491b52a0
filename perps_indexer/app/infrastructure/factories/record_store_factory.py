from __future__ import annotations

from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from perps_indexer.app.domain.ports.out import RecordStore
from perps_indexer.app.infrastructure.adapters.stores.memory_record_store import (
    InMemoryRecordStore,
)
from perps_indexer.app.infrastructure.adapters.stores.sqlalchemy_record_store import (
    SqlAlchemyRecordStore,
)


RecordStoreFactory = Callable[[AsyncEngine | None], RecordStore]


def _make_sqlalchemy_store(engine: AsyncEngine | None) -> RecordStore:
    if engine is None:
        raise ValueError("The sqlalchemy record store backend needs an engine")
    return SqlAlchemyRecordStore(engine)


_RECORD_STORE_REGISTRY: Dict[str, RecordStoreFactory] = {
    "sqlalchemy": _make_sqlalchemy_store,
    "memory": lambda engine: InMemoryRecordStore(),
}


def record_store_factory(
    *,
    backend: str,
    engine: AsyncEngine | None = None,
) -> RecordStore:
    try:
        factory = _RECORD_STORE_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported record store backend: {backend!r}")
    return factory(engine)
