"""Infrastructure helpers for the JSON-RPC SMD client."""

from .logging import LoggingConfig, LogLevel, StructuredFormatter, get_logger, setup_logging

__all__ = ["LogLevel", "LoggingConfig", "StructuredFormatter", "get_logger", "setup_logging"]
