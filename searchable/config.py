"""pydantic-settings based configuration for relevance search."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relevance search settings.

    All values are loaded from environment variables prefixed with
    ``SEARCHABLE_``. A .env file in the working directory is also supported.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCHABLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Parser ---
    WEIGHT: float = 1.0  # weight given to columns listed without one
    WILDCARD: str = "*"  # wildcard marker accepted in keywords

    # --- Grammar ---
    DIALECT: str = "mysql"
    TABLE_PREFIX: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return cached search settings singleton."""
    return Settings()
