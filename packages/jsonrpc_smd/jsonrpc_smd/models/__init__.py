"""Data models for the JSON-RPC SMD client."""

from __future__ import annotations

from .message import (
    JSONRPC_VERSION,
    ErrorInfo,
    Message,
    Request,
    Response,
    Transport,
    next_request_id,
)
from .result import CallResult
from .service import MethodParameter, Service, ServiceMap, ServiceMapDocument, join_url

__all__ = [
    "JSONRPC_VERSION",
    "CallResult",
    "ErrorInfo",
    "Message",
    "MethodParameter",
    "Request",
    "Response",
    "Service",
    "ServiceMap",
    "ServiceMapDocument",
    "Transport",
    "join_url",
    "next_request_id",
]
