"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---------------- DATABASE ----------------
    database_url: str = "sqlite+aiosqlite:///./offplan.db"

    # ---------------- ESTATY (upstream) ----------------
    estaty_base_url: str = ""
    estaty_api_key: str = ""
    estaty_timeout_seconds: float = 30.0

    # ---------------- SYNC ----------------
    sync_cooldown_seconds: int = 300
    sync_batch_size: int = 10
    sync_batch_delay_seconds: float = 0.1
    sync_currency: str = "AED"
    sync_area_unit: str = "sqft"
    sync_max_retries: int = 2
    sync_retry_backoff_seconds: float = 0.5

    # ---------------- APP ----------------
    app_name: str = "Off-Plan Property Portal"
    app_version: str = "0.1.0"
    debug: bool = False

    cors_origins: List[str] = []

    @computed_field
    @property
    def estaty_configured(self) -> bool:
        return bool(self.estaty_base_url and self.estaty_api_key)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
