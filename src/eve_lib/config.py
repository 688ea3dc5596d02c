"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EVELIB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Remote APIs
    xml_api_base_url: str = Field(
        default="https://api.eveonline.com",
        description="Base URL of the key-scoped XML API",
    )
    crest_base_url: str = Field(
        default="http://public-crest.eveonline.com/",
        description="Base URL of the public CREST JSON API",
    )
    user_agent: str = Field(
        default="eve-lib",
        description="User-Agent header sent with every request",
    )

    # Dispatch
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline applied to a single dispatch (transport + decode)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Debugging
    store_invalid_responses: bool = Field(
        default=False,
        description="Write undecodable response bodies to invalid_responses_dir",
    )
    invalid_responses_dir: Path = Field(
        default=Path("data/invalid_responses"),
        description="Directory to store invalid API responses",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
