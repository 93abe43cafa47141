"""Application settings and environment loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized application settings."""

    app_name: str = "Revive Fitness API"
    app_env: Literal["development", "test", "production"] = "development"
    app_debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite:///./gym.db"
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: float = 10.0
    db_statement_timeout_ms: int = 15000

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24

    admin_username: str = "admin"
    admin_password: str = "change-me-now"

    cors_origin: str = "http://localhost:5173"

    upload_dir: str = "uploads"
    max_photo_bytes: int = 5 * 1024 * 1024
    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    cloudinary_folder: str = "gym-members"

    auto_expire_enabled: bool = True
    auto_expire_interval_minutes: int = 60

    default_page_size: int = 20
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @property
    def cloudinary_enabled(self) -> bool:
        return all(
            (self.cloudinary_cloud_name, self.cloudinary_api_key, self.cloudinary_api_secret)
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
