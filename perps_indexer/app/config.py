"""Config file."""
from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("perps-indexer", alias="PROJECT_NAME")

    # DATABASE
    postgres_user: str = Field(..., alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(..., alias="POSTGRES_PASSWORD")
    postgres_server: str = Field(..., alias="POSTGRES_SERVER")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(..., alias="POSTGRES_DB")
    database_url: str | None = None
    sync_database_url: str | None = None

    # STARKNET
    starknet_rpc_url: str = Field(..., alias="STARKNET_RPC_URL")
    rpc_timeout_seconds: float = Field(30.0, alias="RPC_TIMEOUT_SECONDS", gt=0)
    contract_address: str = Field(..., alias="CONTRACT_ADDRESS")

    # INDEXER
    start_block: int = Field(0, alias="START_BLOCK", ge=0)
    events_page_size: int = Field(100, alias="EVENTS_PAGE_SIZE", gt=0)
    pending_poll_interval_seconds: float = Field(10.0, alias="PENDING_POLL_INTERVAL_SECONDS", gt=0)
    backfill_interval_seconds: float = Field(30.0, alias="BACKFILL_INTERVAL_SECONDS", gt=0)
    processed_tx_cache_size: int = Field(10_000, alias="PROCESSED_TX_CACHE_SIZE", gt=0)

    @model_validator(mode="after")
    def assemble_db_urls(self) -> "Settings":
        user = quote_plus(self.postgres_user)
        password = quote_plus(self.postgres_password.get_secret_value())
        host = self.postgres_server
        port = self.postgres_port
        db = self.postgres_db

        if not self.database_url:
            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        if not self.sync_database_url:
            self.sync_database_url = f"postgresql://{user}:{password}@{host}:{port}/{db}"

        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Built on first use so that importing the pipeline needs no environment."""
    return Settings()
