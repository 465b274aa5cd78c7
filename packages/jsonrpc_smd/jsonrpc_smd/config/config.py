"""Configuration management for the JSON-RPC SMD client.

Defaults can be overridden with environment variables prefixed with
``JSONRPC_SMD_``; nested sections use ``__`` as delimiter
(e.g. ``JSONRPC_SMD_TIMEOUTS__REQUEST_TIMEOUT=10``).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimeoutConfig(BaseModel):
    """Timeout-related configuration, handed to the HTTP transport."""

    request_timeout: float = Field(
        default=30.0, gt=0, le=600, description="HTTP request timeout in seconds"
    )

    connect_timeout: float = Field(
        default=10.0, gt=0, le=120, description="HTTP connect timeout in seconds"
    )


class TransportConfig(BaseModel):
    """HTTP transport defaults for outbound requests."""

    http_method: str = Field(default="POST", description="HTTP method for requests")

    content_type: str = Field(
        default="application/json", description="Content-Type used when a service declares none"
    )

    user_agent: str = Field(default="jsonrpc-smd/0.1.0", description="User-Agent header value")


class ClientConfig(BaseSettings):
    """Main client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JSONRPC_SMD_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)

    validate_response_id: bool = Field(
        default=False, description="Reject responses whose id differs from the request id"
    )

    default_smd_path: str = Field(
        default="", description="Path of the SMD document relative to the base URL"
    )


@lru_cache(maxsize=1)
def get_config() -> ClientConfig:
    """Get the cached configuration instance.

    Returns:
        ClientConfig: The configuration instance
    """
    return ClientConfig()


def reload_config() -> ClientConfig:
    """Reload configuration from environment.

    Returns:
        ClientConfig: The new configuration instance
    """
    get_config.cache_clear()
    return get_config()
