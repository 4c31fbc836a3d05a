# app/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Support Portal API"
    APP_DESC: str = "Multi-tenant support ticket portal"
    APP_VERSION: str = "1.0.0"

    # Storage
    STORAGE_BACKEND: Literal["sql", "redis"] = "sql"
    DATABASE_URL: str = Field(default="sqlite:///./portal.db")
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "portal"

    # Auth
    JWT_SECRET: str = "change-me-in-production"
    JWT_EXPIRES_HOURS: int = 24
    BCRYPT_ROUNDS: int = 12

    ACTIVITY_PAGE_SIZE: int = 50
    LOG_LEVEL: str = "INFO"

    # CORS origins, comma separated
    CORS_ORIGINS: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
