from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from authsession.schemas.enums import StorageType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Auth service
    AUTH_BASE_URL: str = "http://localhost:3000"
    USE_COOKIES: bool = False

    # Session
    REFRESH_INTERVAL_SECONDS: float = 30.0
    AUTO_LOGIN: bool = True

    # Client storage
    CLIENT_STORAGE: StorageType = StorageType.MEMORY
    STORAGE_PATH: str = "~/.authsession/storage.json"
    REFRESH_TOKEN_KEY: str = "refresh_token"

    # HTTP
    REQUEST_TIMEOUT: int = 10
    MAX_RETRIES: int = 3
    BACKOFF_FACTOR: float = 0.5
    VERIFY_SSL: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
