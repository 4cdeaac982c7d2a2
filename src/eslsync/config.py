"""
Configuration management for the ESL sync service.

Supports configuration via environment variables and .env files.
"""

from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from eslsync.core.errors import ConfigurationError


DEFAULT_SINK_BASE_URL = "https://api-us.vusion.io/vlink-pro/v1"


def clean_store_mappings(mappings: Dict[str, str]) -> Dict[str, str]:
    """Trim store mappings and drop entries with a blank sink store id."""
    return {
        source.strip(): dest.strip()
        for source, dest in mappings.items()
        if dest and dest.strip()
    }


class SyncConfig(BaseSettings):
    """
    Configuration settings for the ESL sync service.

    All settings can be configured via environment variables with the ESL_ prefix.
    Store mappings are given as a JSON object, e.g.
    ESL_STORE_MAPPINGS='{"RS1": "acme_corp_us.main_street"}'.
    """

    model_config = SettingsConfigDict(
        env_prefix="ESL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Webhook receiver settings
    server_host: str = Field(
        default="127.0.0.1",
        description="Address the webhook receiver binds to (0.0.0.0 for all interfaces)"
    )
    server_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the webhook receiver listens on"
    )
    webhook_path: str = Field(
        default="/catapult",
        description="Path of the inbound item-update endpoint"
    )

    # Sink API settings
    sink_base_url: str = Field(
        default=DEFAULT_SINK_BASE_URL,
        description="Base URL of the ESL sink API"
    )
    sink_api_key: Optional[str] = Field(
        default=None,
        description="Subscription key sent with every sink request"
    )
    connect_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for establishing sink connections"
    )
    response_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for reading sink responses"
    )

    # Batching parameters
    batch_max_items: int = Field(
        default=999,
        ge=1,
        description="Maximum number of items in a single sink request"
    )
    batch_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=2,
        description="Maximum serialized size of a single sink request"
    )

    # Retry settings
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per batch before the delivery is reported failed"
    )
    retry_base_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Backoff before the first retry, doubled for each further retry"
    )

    # Worker pool and lifecycle
    max_concurrent_requests: int = Field(
        default=10,
        ge=1,
        description="Inbound requests processed concurrently"
    )
    shutdown_grace_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Time allowed for in-flight requests to finish on shutdown"
    )

    # Store mappings (source store number -> sink store id)
    store_mappings: Dict[str, str] = Field(
        default_factory=dict,
        description="Source store numbers mapped to sink store ids"
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

    @field_validator("store_mappings")
    @classmethod
    def _drop_blank_mappings(cls, value: Dict[str, str]) -> Dict[str, str]:
        return clean_store_mappings(value)

    @field_validator("sink_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def require_api_key(self) -> str:
        """
        Get the sink API key, failing if it is not configured.

        Raises:
            ConfigurationError: If no key is set
        """
        if not self.sink_api_key or not self.sink_api_key.strip():
            raise ConfigurationError(
                "Missing required configuration: ESL_SINK_API_KEY"
            )
        return self.sink_api_key.strip()


# Global config instance
_config: Optional[SyncConfig] = None


def get_config() -> SyncConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = SyncConfig()
    return _config


def set_config(config: SyncConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
