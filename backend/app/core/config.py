from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/zenjournal.db",
        alias="DATABASE_URL",
    )
    log_file: Path = Field(default=Path("logs/zenjournal.log"))
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    # Authentication
    jwt_secret: str = Field(default="zenjournal-dev-secret", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=30 * 24 * 60,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")

    # OpenAI integration for mood insights
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model_primary: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL_PRIMARY")
    insights_ai_enabled: bool = Field(default=True, alias="INSIGHTS_AI_ENABLED")
    insights_timeout_seconds: float = Field(default=15.0, alias="INSIGHTS_TIMEOUT_SEC")
    insights_retry_attempts: int = Field(default=1, alias="INSIGHTS_RETRY_ATTEMPTS")
    insights_max_tokens: int = Field(default=500, alias="INSIGHTS_MAX_TOKENS")

    # Analytics windows
    analytics_default_days: int = Field(default=30, alias="ANALYTICS_DEFAULT_DAYS")
    analytics_max_days: int = Field(default=365, alias="ANALYTICS_MAX_DAYS")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str:
        level = str(value or "INFO").upper()
        return level if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _validate_cors_origins(cls, value: list[str] | str | None) -> list[str]:
        if value is None:
            return ["http://localhost:5173"]
        if isinstance(value, str):
            raw = value.strip()
            try:
                value = json.loads(raw) if raw.startswith("[") else raw.split(",")
            except ValueError:
                value = raw.strip("[]").replace("\"", "").split(",")
        origins = [str(origin).strip() for origin in value if str(origin).strip()]
        return origins or ["http://localhost:5173"]

    @field_validator("bcrypt_rounds", mode="before")
    @classmethod
    def _validate_bcrypt_rounds(cls, value: int | str | None) -> int:
        if value is None:
            return 12
        rounds = int(value)
        return min(max(rounds, 4), 31)

    @field_validator("insights_timeout_seconds", mode="before")
    @classmethod
    def _validate_insights_timeout(cls, value: float | str | None) -> float:
        if value is None:
            return 15.0
        timeout = float(value)
        return timeout if timeout > 0 else 15.0

    @field_validator("insights_retry_attempts", mode="before")
    @classmethod
    def _validate_insights_retries(cls, value: int | str | None) -> int:
        if value is None:
            return 1
        return max(int(value), 1)

    @field_validator("analytics_default_days", "analytics_max_days", mode="before")
    @classmethod
    def _validate_window(cls, value: int | str | None) -> int:
        if value is None:
            return 30
        days = int(value)
        return days if days > 0 else 30

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        if not value:
            value = "sqlite:///./data/zenjournal.db"

        normalized = str(value)
        if normalized.startswith("postgres://"):
            normalized = normalized.replace("postgres://", "postgresql://", 1)
        if normalized.startswith("postgresql://") and "+asyncpg" not in normalized:
            normalized = normalized.replace("postgresql://", "postgresql+asyncpg://", 1)
        if normalized.startswith("sqlite://") and "+aiosqlite" not in normalized:
            normalized = normalized.replace("sqlite://", "sqlite+aiosqlite://", 1)

        if normalized.startswith("sqlite+aiosqlite:///"):
            db_path = normalized.split("///", maxsplit=1)[-1]
            if db_path and db_path != ":memory:":
                db_file = Path(db_path)
                db_file.parent.mkdir(parents=True, exist_ok=True)

        return normalized


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
