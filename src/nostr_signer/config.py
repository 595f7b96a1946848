"""Application configuration using pydantic-settings.

Controls where login state is persisted and the storage keys used for the
login marker and the NIP-46 client identity secret.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Storage
    # ======================
    storage_path: str = Field(
        default="./data/signer.json",
        description="JSON file holding persisted login state",
    )
    login_storage_key: str = Field(
        default="login", description="Storage key of the login marker"
    )
    client_secret_storage_key: str = Field(
        default="nip46clientSecret",
        description="Storage key of the hex-encoded NIP-46 client secret",
    )

    # ======================
    # NIP-46 / NIP-05
    # ======================
    nip05_timeout: float = Field(
        default=10.0, description="Timeout in seconds for NIP-05 bunker lookups"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
