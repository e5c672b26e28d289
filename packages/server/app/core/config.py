"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Sign directory server configuration."""

    model_config = SettingsConfigDict(env_prefix="SD_", env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./signdir.db"

    # Security
    secret_key: str = "CHANGE_ME_IN_PRODUCTION"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "json"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Invite codes
    invite_code_max_uses: int = 100


@lru_cache
def get_settings() -> Settings:
    return Settings()
