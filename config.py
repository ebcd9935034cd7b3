"""
Centralised settings loader.

Values come from the process environment and an optional `.env` file.
The app factory builds one `Settings` instance and hands it to whatever
needs it; `get_settings()` is the cached default used by `main` and the
scripts.
"""

from __future__ import annotations
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class Settings(BaseSettings):
    # ─── runtime ─────────────────────────────────────────────────────
    env_name: str = Field("local", validation_alias="ENV_NAME")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    cors_origins: list[str] = Field(["*"], validation_alias="CORS_ORIGINS")

    # ─── storage selection ──────────────────────────────────────────
    # "auto" → sql when a database is configured, memory otherwise
    storage_backend: Literal["auto", "memory", "sql"] = Field(
        "auto", validation_alias="STORAGE_BACKEND"
    )
    create_tables: bool = Field(True, validation_alias="CREATE_TABLES")

    # ─── database ───────────────────────────────────────────────────
    database_url: str | None = Field(None, validation_alias="DATABASE_URL")
    cloud_sql_instance: str | None = Field(None, validation_alias="CLOUD_SQL_CONNECTION_NAME")
    db_user: str | None = Field(None, validation_alias="DB_USER")
    db_pass: str | None = Field(None, validation_alias="DB_PASS")
    db_name: str | None = Field(None, validation_alias="DB_NAME")
    pg_ssl_mode: str | None = Field(None, validation_alias="PGSSLMODE")

    # allow unrelated env-vars without crashing
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    @property
    def resolved_backend(self) -> Literal["memory", "sql"]:
        if self.storage_backend != "auto":
            return self.storage_backend
        if self.database_url or self.cloud_sql_instance:
            return "sql"
        return "memory"


# ------------------------------------------------------------------ #
#  Cached accessor
# ------------------------------------------------------------------ #
@lru_cache
def get_settings() -> Settings:  # pragma: no cover
    return Settings()  # type: ignore[call-arg]
