"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Streamly", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    metadata_api_url: HttpUrl = Field(
        default="https://api.imdbapi.dev", alias="METADATA_API_URL"
    )
    metadata_timeout_seconds: float = Field(
        default=15.0, alias="METADATA_TIMEOUT", gt=0
    )
    episode_page_size: int = Field(
        default=40, alias="EPISODE_PAGE_SIZE", ge=1, le=250
    )

    embed_domain: str = Field(
        default="https://vidsrc.xyz",
        alias="VIDSRC_DOMAIN",
        validation_alias=AliasChoices("VIDSRC_DOMAIN", "NEXT_PUBLIC_VIDSRC_DOMAIN"),
    )
    fallback_image: str = Field(default="/img.png", alias="FALLBACK_IMAGE")

    manual_season_limit: int = Field(
        default=10, alias="MANUAL_SEASON_LIMIT", ge=1, le=100
    )
    manual_episode_limit: int = Field(
        default=25, alias="MANUAL_EPISODE_LIMIT", ge=1, le=500
    )
    session_limit: int = Field(default=500, alias="SESSION_LIMIT", ge=1)

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("embed_domain", mode="before")
    @classmethod
    def _normalize_embed_domain(cls, value: object) -> str:
        """Strip whitespace and trailing slashes from the embed provider URL."""

        if not isinstance(value, str):
            raise ValueError("VIDSRC_DOMAIN must be a string")
        cleaned = value.strip().rstrip("/")
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("VIDSRC_DOMAIN must be an http(s) URL")
        return cleaned

    @property
    def metadata_base_url(self) -> str:
        """Return the metadata API base URL without a trailing slash."""

        return str(self.metadata_api_url).rstrip("/")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
