"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - DATABASE_URL, when set, wins over the MYSQL_* parts

Design Decisions:
    - Same variable names as the MySQL deployment (MYSQL_HOST, MYSQL_USER, ...)
      so existing .env files keep working
    - Defaults provided for all non-secret settings
"""

from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

TLS_MODES = ("disabled", "unverified", "verified")


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    mysql_host: str = "localhost"
    mysql_user: str = "root"
    mysql_password: str = ""
    mysql_database: str = "profiles"
    mysql_port: int = 12464
    database_url: str | None = None
    database_tls_mode: str = "unverified"

    # Pool
    pool_capacity: int = 10
    pool_acquire_timeout_seconds: float = 10.0
    pool_max_waiters: int = 0
    pool_recycle_seconds: int = 3600
    connect_timeout_seconds: int = 10

    # HTTP
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:5500",
        "http://127.0.0.1:5501",
        "https://prasa-main.vercel.app",
    ]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_tls_mode", mode="before")
    @classmethod
    def normalize_tls_mode(cls, v: str) -> str:
        mode = str(v).strip().lower()
        if mode not in TLS_MODES:
            raise ValueError(
                f"database_tls_mode must be one of {', '.join(TLS_MODES)}",
            )
        return mode

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v):
        """Accept CORS_ORIGINS as a comma-separated string."""
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("pool_capacity")
    @classmethod
    def positive_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("pool_capacity must be at least 1")
        return v

    @property
    def sqlalchemy_url(self) -> str:
        """Async SQLAlchemy URL for the profile store."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "mysql+aiomysql",
            username=self.mysql_user,
            password=self.mysql_password or None,
            host=self.mysql_host,
            port=self.mysql_port,
            database=self.mysql_database,
        ).render_as_string(hide_password=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
