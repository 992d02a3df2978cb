from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    database_url: str = Field(..., alias="DATABASE_URL")
    settlement_tolerance: float = Field(0.01, alias="SETTLEMENT_TOLERANCE", gt=0)
    strict_settlement: bool = Field(False, alias="STRICT_SETTLEMENT")
    currency_symbol: str = Field("$", alias="CURRENCY_SYMBOL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
