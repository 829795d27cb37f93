"""
Configuration Settings

This module defines application configuration using Pydantic Settings.

Loading priority (highest to lowest):
1. Values passed to Settings(...) directly (used by tests)
2. Environment variables
3. .env file
4. JSON config file (config.json, or the path in SHORTENER_CONFIG_FILE)
5. Defaults below
"""

from __future__ import annotations

import os
from typing import Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

__all__ = ["Settings", "settings", "CONFIG_FILE_ENV", "DEFAULT_CONFIG_FILE"]

CONFIG_FILE_ENV = "SHORTENER_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.json"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or a JSON file.

    Field names double as config.json keys; environment variables match
    them case-insensitively (BASE_URL, DB_PATH, ...).
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Storage
    db_path: str = Field(
        default="urls.db",
        description="Path of the file backing the key-value store"
    )
    db_open_timeout: float = Field(
        default=1.0,
        gt=0,
        description="Seconds to wait for a locked store file before failing"
    )

    # Short links
    base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL for generating short URLs"
    )
    short_code_length: int = Field(
        default=6,
        ge=1,
        description="Length of generated short codes"
    )
    max_code_attempts: int = Field(
        default=5,
        ge=1,
        description="How many random codes to try before giving up on a collision"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        json_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls, json_file=json_file),
        )

    @property
    def normalized_base_url(self) -> str:
        return self.base_url.rstrip("/")


settings = Settings()
