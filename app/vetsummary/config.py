"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str | None = None
    # Tried in order until one answers
    openai_models: Annotated[list[str], NoDecode] = ["gpt-4o-mini", "gpt-4o", "gpt-4.1-mini"]
    openai_strict_schema: bool = False

    # Document handling
    max_document_chars: int = 60_000
    image_fallback_enabled: bool = True
    image_fallback_max_pages: int = 4

    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Debug flags
    mock_ai: bool = False
    debug: bool = False

    @field_validator("openai_models", "cors_origins", mode="before")
    @classmethod
    def split_list(cls, value):
        """Accept a JSON list or a comma-separated string from the environment."""
        if not isinstance(value, str):
            return value
        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
