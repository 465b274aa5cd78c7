"""Configuration package for the JSON-RPC SMD client."""

from .config import ClientConfig, TimeoutConfig, TransportConfig, get_config, reload_config

__all__ = ["ClientConfig", "TimeoutConfig", "TransportConfig", "get_config", "reload_config"]
