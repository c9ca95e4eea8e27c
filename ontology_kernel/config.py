"""Service configuration using Pydantic Settings.

All settings can be overridden via environment variables with the OAAS_
prefix, or from a local .env file.

Example environment variables:
    OAAS_DB_PATH=data/ontology.db
    OAAS_LOG_LEVEL=DEBUG
    OAAS_ENFORCE_SINGLE_ACTUALIZATION=true
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ontology_kernel.models.config import EngineConfig


class Settings(BaseSettings):
    """Ontology Kernel service settings."""

    model_config = SettingsConfigDict(
        env_prefix="OAAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_path: str = Field(
        default=":memory:",
        description="SQLite database path (':memory:' for a throwaway store)",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    enforce_single_actualization: bool = Field(
        default=False,
        description="Reject actualizing a potentiality that already has an actuality",
    )

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            enforce_single_actualization=self.enforce_single_actualization,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
