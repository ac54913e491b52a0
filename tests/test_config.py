import pytest
from pydantic import ValidationError

from perps_indexer.app.config import Settings


REQUIRED_ENV = {
    "POSTGRES_USER": "indexer",
    "POSTGRES_PASSWORD": "p@ss word",
    "POSTGRES_SERVER": "db",
    "POSTGRES_DB": "perps",
    "STARKNET_RPC_URL": "http://node:9545/rpc/v0_7",
    "CONTRACT_ADDRESS": "0x0c",
}


@pytest.fixture
def env(monkeypatch):
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


class TestSettings:
    def test_defaults_and_urls(self, env):
        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+asyncpg://indexer:p%40ss+word@db:5432/perps"
        assert settings.sync_database_url == "postgresql://indexer:p%40ss+word@db:5432/perps"
        assert settings.start_block == 0
        assert settings.events_page_size == 100
        assert settings.pending_poll_interval_seconds == 10
        assert settings.backfill_interval_seconds == 30
        assert settings.processed_tx_cache_size == 10_000

    def test_overrides(self, env):
        env.setenv("START_BLOCK", "812000")
        env.setenv("EVENTS_PAGE_SIZE", "500")
        settings = Settings(_env_file=None)

        assert settings.start_block == 812000
        assert settings.events_page_size == 500

    def test_rejects_non_positive_page_size(self, env):
        env.setenv("EVENTS_PAGE_SIZE", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_missing_rpc_url(self, env):
        env.delenv("STARKNET_RPC_URL")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
