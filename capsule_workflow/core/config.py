from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CAPSULE_",
        extra="ignore",
    )

    # App
    app_name: str = "Capsule Workflow"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./capsule.db"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True  # False switches to ConsoleRenderer

    # Item defaults applied on create when the caller leaves them out
    default_currency: str = "USD"
    default_priority: str = "normal"


@lru_cache
def get_settings() -> Settings:
    return Settings()
