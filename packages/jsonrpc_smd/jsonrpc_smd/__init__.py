"""JSON-RPC 2.0 client driven by Service Mapping Description discovery."""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    CorrelationError,
    JsonRpcSmdError,
    ProtocolError,
    ResolutionError,
    SerializationError,
    ServiceNotFoundError,
    TransportError,
)
from .models import (
    CallResult,
    ErrorInfo,
    MethodParameter,
    Request,
    Response,
    Service,
    ServiceMap,
    ServiceMapDocument,
)
from .transport import HttpTransport, RequestHook, TransportOptions

__version__ = "0.1.0"

__all__ = [
    "CallResult",
    "ConfigurationError",
    "CorrelationError",
    "ErrorInfo",
    "HttpTransport",
    "JsonRpcSmdError",
    "MethodParameter",
    "ProtocolError",
    "Request",
    "RequestHook",
    "ResolutionError",
    "Response",
    "SerializationError",
    "Service",
    "ServiceMap",
    "ServiceMapDocument",
    "ServiceNotFoundError",
    "TransportError",
    "TransportOptions",
]
