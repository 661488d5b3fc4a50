"""Library configuration."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Error model settings, read from ``API_ERRORS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="API_ERRORS_",
        env_file=".env",
        extra="ignore",
        case_sensitive=True,
    )

    # Serialization
    # Stack frames are local-process detail; only enable for trusted consumers.
    INCLUDE_STACK: bool = False

    # Reconstruction
    # Unknown wire names degrade to the base type unless this is set.
    STRICT_PARSE: bool = False

    # Capture
    STACK_LIMIT: int | None = None  # max frames kept per captured stack


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
