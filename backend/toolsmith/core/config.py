"""Application configuration using Pydantic Settings.

Environment variables are loaded from .env files and system environment.
All sensitive values should be provided via environment variables.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Toolsmith"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: list[str] = ["http://localhost:5173"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, list):
            return v
        return ["http://localhost:5173"]

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./toolsmith.db"
    DATABASE_ECHO: bool = False

    # Secrets
    ENCRYPTION_KEY: str | None = None
    ENCRYPTION_KEY_FILE: str = ".toolsmith.key"
    SECRETS_ENCRYPTION_ENABLED: bool = True

    # Executors
    HTTP_DEFAULT_TIMEOUT_MS: int = 5000
    CLI_DEFAULT_TIMEOUT_MS: int = 30000
    CLI_MAX_OUTPUT_BYTES: int = 10 * 1024 * 1024  # 10 MiB per stream

    # Execution logs
    EXECUTION_LOG_RETENTION: int = 1000

    # MCP server
    MCP_SERVER_NAME: str = "mcp-tool-builder"
    MCP_SERVER_VERSION: str = "1.0.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None  # Defaults to logs/toolsmith.log
    LOG_JSON_FORMAT: bool = True  # Use JSON format for file logs

    @field_validator("EXECUTION_LOG_RETENTION")
    @classmethod
    def validate_retention(cls, v: int) -> int:
        """Retention must keep at least one record."""
        if v < 1:
            raise ValueError("EXECUTION_LOG_RETENTION must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are cached after first load for performance.
    """
    return Settings()


# Global settings instance
settings = get_settings()
