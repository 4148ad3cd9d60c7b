"""
Shared configuration management for the eCR rule engine.
"""

from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
LOG_FORMATS = ("json", "console")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ECR_RULES_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_format: str = Field(default="json")

    # Observability
    enable_metrics: bool = Field(default=True)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
        return value


class EngineConfig(BaseConfig):
    """Rule engine and tooling configuration."""

    # Rule execution
    default_logic_operator: str = Field(default="AND")

    # Local record store
    data_dir: Optional[str] = Field(default=None)
    use_test_data: bool = Field(default=False)
    enable_record_cache: bool = Field(default=True)

    @field_validator("default_logic_operator")
    @classmethod
    def _check_logic_operator(cls, value: str) -> str:
        value = value.upper()
        if value not in ("AND", "OR"):
            raise ValueError("default_logic_operator must be AND or OR")
        return value

    @property
    def record_store_enabled(self) -> bool:
        """Whether the local record store should serve records."""
        return self.use_test_data or self.env in ("local", "development")


def get_config(**overrides) -> EngineConfig:
    """Get engine configuration, with explicit overrides taking precedence over env.

    Raises:
        ConfigurationError: if a setting has an invalid value
    """
    try:
        return EngineConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid engine configuration",
            {"errors": [f"{'.'.join(str(p) for p in item['loc'])}: {item['msg']}" for item in e.errors()]}
        ) from e
