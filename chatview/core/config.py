from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GIB = 1024 * 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Chat Export Viewer"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    media_url_prefix: str = "/media"

    max_file_size_bytes: int = 5 * GIB
    max_decompressed_bytes: int = 10 * GIB
    max_zip_entries: int = 50_000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
