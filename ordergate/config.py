"""
Configuration — pydantic settings loaded from the environment and `.env`.

Every field reads ORDERGATE_<FIELD>. The environment names of the
serverless deployment (TABLE_NAME, CREATE_ERROR, POWERTOOLS_*, ...) are
accepted as aliases so the same environment file works for both.
"""

from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env(name: str, *legacy: str) -> AliasChoices:
    return AliasChoices(f"ORDERGATE_{name.upper()}", *legacy)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Deployment
    stage: str | None = Field(default=None, validation_alias=_env("stage", "STAGE"))

    # Stores
    record_store_name: str = Field(
        validation_alias=_env("record_store_name", "TABLE_NAME"),
    )
    idempotency_store_name: str = Field(
        validation_alias=_env("idempotency_store_name", "IDEMPOTENCY_TABLE_NAME"),
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ordergate.db",
        validation_alias=_env("database_url"),
    )

    # Idempotency
    idempotency_ttl_seconds: int = Field(
        default=30, gt=0, validation_alias=_env("idempotency_ttl_seconds")
    )
    idempotency_canonical: bool = Field(
        default=False, validation_alias=_env("idempotency_canonical")
    )

    # Fault hooks
    fault_latency_enabled: bool = Field(
        default=False, validation_alias=_env("fault_latency_enabled", "CREATE_LATENCY")
    )
    fault_latency_seconds: float = Field(
        default=2.0, ge=0, validation_alias=_env("fault_latency_seconds")
    )
    fault_error_enabled: bool = Field(
        default=False, validation_alias=_env("fault_error_enabled", "CREATE_ERROR")
    )
    fault_error_probability: float = Field(
        default=0.8, ge=0, le=1, validation_alias=_env("fault_error_probability")
    )
    fault_seed: int | None = Field(default=None, validation_alias=_env("fault_seed"))

    # Request handling
    request_timeout_seconds: float | None = Field(
        default=None, gt=0, validation_alias=_env("request_timeout_seconds")
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", validation_alias=_env("log_level", "POWERTOOLS_LOG_LEVEL")
    )
    log_sample_rate: float = Field(
        default=0.0,
        ge=0,
        le=1,
        validation_alias=_env("log_sample_rate", "POWERTOOLS_LOGGER_SAMPLE_RATE"),
    )
    log_event: bool = Field(
        default=False,
        validation_alias=_env("log_event", "POWERTOOLS_LOGGER_LOG_EVENT"),
    )
    log_format: Literal["json", "console"] = Field(
        default="json", validation_alias=_env("log_format")
    )

    # Observability
    service_name: str = Field(
        default="ordergate",
        validation_alias=_env("service_name", "POWERTOOLS_SERVICE_NAME"),
    )
    metrics_namespace: str = Field(
        default="Orders",
        validation_alias=_env("metrics_namespace", "POWERTOOLS_METRICS_NAMESPACE"),
    )
    tracing_enabled: bool = Field(
        default=False, validation_alias=_env("tracing_enabled")
    )

    # API
    api_host: str = Field(default="0.0.0.0", validation_alias=_env("api_host"))
    api_port: int = Field(default=8000, validation_alias=_env("api_port"))

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def dialect(self) -> str:
        """SQL dialect name taken from database_url ("sqlite", "postgresql")."""
        return self.database_url.split(":", 1)[0].split("+", 1)[0]


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None


__all__ = ("Settings", "get_settings", "reset_settings")
