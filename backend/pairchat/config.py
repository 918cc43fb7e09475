"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "PairChat API"
    database_url: str = "sqlite+pysqlite:///./pairchat.db"
    create_schema_on_startup: bool = True
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    list_max_limit: int = 100

    # polling client
    participants: list[str] = ["User A", "User B"]
    poll_interval_seconds: float = 5.0
    api_base_url: str = "http://localhost:8000"
    client_state_path: Path = Path.home() / ".pairchat" / "client.json"
    client_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
