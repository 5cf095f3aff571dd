"""
Configuration management for the Bitrix24 webhook client.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Bitrix24Config(BaseSettings):
    """
    Configuration settings for the Bitrix24 client.
    
    All settings can be configured via environment variables with the BITRIX24_ prefix.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="BITRIX24_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Webhook settings
    webhook_url: Optional[str] = Field(
        default=None,
        description="URL of the incoming webhook (https://<portal>/rest/<user>/<token>)"
    )
    
    # Batching parameters
    batch_size: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Maximum number of commands in a single batch request"
    )
    
    # Transport settings
    requests_per_second: float = Field(
        default=2.0,
        gt=0,
        description="Outbound request cap shared by every client in the process"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single HTTP exchange"
    )
    
    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    
    @field_validator("webhook_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        """Normalize the webhook URL so action paths can be appended with '/'."""
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value


# Global config instance
_config: Optional[Bitrix24Config] = None


def get_config() -> Bitrix24Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Bitrix24Config()
    return _config


def set_config(config: Bitrix24Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
