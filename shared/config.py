"""
Shared configuration management for the RES promoter.
"""

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RES_PROMOTER_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_format: str = Field(default="console")


class PromoterConfig(BaseConfig):
    """Source/destination servers and staging settings."""

    # Source RES
    source_host: str = Field(default="localhost")
    source_port: Optional[str] = Field(default="9081")
    source_user: str = Field(default="resAdmin")
    source_password: str = Field(default="resAdmin")

    # Destination RES
    destination_host: str = Field(default="localhost")
    destination_port: Optional[str] = Field(default="9080")
    destination_user: str = Field(default="rtsAdmin")
    destination_password: str = Field(default="rtsAdmin")

    # Staging
    stage_dir: str = Field(default="./data")

    # Promotion behaviour
    skip_existing_xom: bool = Field(default=False)
    request_timeout: float = Field(default=30.0)

    @field_validator("source_port", "destination_port")
    @classmethod
    def _port_is_numeric(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return value
        if not value.isdigit() or not 0 < int(value) < 65536:
            raise ValueError(f"port must be a number between 1 and 65535, got {value!r}")
        return value


def get_config(**overrides: Any) -> PromoterConfig:
    """Get promoter configuration, ignoring overrides left unset."""
    return PromoterConfig(**{key: value for key, value in overrides.items() if value is not None})
