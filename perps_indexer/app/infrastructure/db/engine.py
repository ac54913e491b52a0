from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from perps_indexer.app.config import get_settings


def create_app_async_engine(*, echo: bool = False) -> AsyncEngine:
    """
    Factory for AsyncEngine used by background tasks / indexers.

    Keeps connection handling the same across tasks.
    """
    return create_async_engine(
        get_settings().database_url,  # postgresql+asyncpg://...
        echo=echo,
        pool_pre_ping=True,
    )
