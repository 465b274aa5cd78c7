"""Exception hierarchy for the JSON-RPC SMD client.

Every failure surfaced by the client derives from ``JsonRpcSmdError`` so that
callers can handle the whole family with a single ``except`` clause. Nothing in
the library retries or recovers from these errors; they propagate to the
immediate caller of ``execute`` or ``discover``.
"""

from typing import Any


class JsonRpcSmdError(Exception):
    """Base exception for all JSON-RPC SMD client errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code for programmatic handling
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class TransportError(JsonRpcSmdError):
    """Raised when sending a request or receiving its response fails."""

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize transport error.

        Args:
            url: Destination URL of the failed round trip
            reason: Failure reason
            status_code: HTTP status code, if a response was received
            **kwargs: Additional error details
        """
        message = f"HTTP request to {url} failed: {reason}"
        details = {
            "url": url,
            "reason": reason,
            "status_code": status_code,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="TRANSPORT_ERROR", details=details)
        self.url = url
        self.status_code = status_code


class SerializationError(JsonRpcSmdError):
    """Raised when a body does not conform to the expected shape."""

    def __init__(self, what: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize serialization error.

        Args:
            what: What was being (de)serialized (e.g., "response", "SMD document")
            reason: Why it could not be processed
            **kwargs: Additional error details
        """
        message = f"Invalid {what}: {reason}"
        details = {"what": what, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(message, error_code="SERIALIZATION_ERROR", details=details)


class ResolutionError(JsonRpcSmdError):
    """Raised when a service name cannot be uniquely determined."""

    def __init__(self, reason: str, candidates: list[str] | None = None, **kwargs: Any) -> None:
        """
        Initialize resolution error.

        Args:
            reason: Why resolution failed
            candidates: Method-table keys that matched the service, if any
            **kwargs: Additional error details
        """
        message = f"Cannot resolve service name: {reason}"
        details = {
            "reason": reason,
            "candidates": candidates or [],
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="RESOLUTION_ERROR", details=details)
        self.candidates = candidates or []


class ProtocolError(JsonRpcSmdError):
    """Raised when the remote endpoint returns a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None, **kwargs: Any) -> None:
        """
        Initialize protocol error.

        Args:
            code: JSON-RPC error code
            message: Error message sent by the server
            data: Opaque additional data sent by the server
            **kwargs: Additional error details
        """
        details = {"code": code, "data": data, **kwargs.pop("details", {})}
        super().__init__(
            f"JSON-RPC Error #{code}: {message}",
            error_code=kwargs.pop("error_code", "PROTOCOL_ERROR"),
            details=details,
        )
        self.code = code
        self.remote_message = message
        self.data = data


class CorrelationError(ProtocolError):
    """Raised when a response id does not match the id of its request."""

    def __init__(self, request_id: int, response_id: Any, **kwargs: Any) -> None:
        """
        Initialize correlation error.

        Args:
            request_id: Id stamped on the outbound request
            response_id: Id echoed back by the server
            **kwargs: Additional error details
        """
        super().__init__(
            code=-32603,
            message=f"response id {response_id!r} does not match request id {request_id}",
            error_code="CORRELATION_ERROR",
            details={
                "request_id": request_id,
                "response_id": response_id,
                **kwargs.pop("details", {}),
            },
        )
        self.request_id = request_id
        self.response_id = response_id


class ServiceNotFoundError(JsonRpcSmdError, KeyError):
    """Raised when a method is not present in the service map."""

    def __init__(self, method: str, **kwargs: Any) -> None:
        """
        Initialize service not found error.

        Args:
            method: Method name that was looked up
            **kwargs: Additional error details
        """
        message = f"Service '{method}' not found in service map"
        details = {"method": method, **kwargs.pop("details", {})}
        super().__init__(message, error_code="NOT_FOUND", details=details)
        self.method = method

    def __str__(self) -> str:
        return self.message


class ConfigurationError(JsonRpcSmdError):
    """Raised when client configuration is invalid."""

    def __init__(self, config_key: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize configuration error.

        Args:
            config_key: Configuration key that has issues
            reason: Reason for configuration error
            **kwargs: Additional error details
        """
        message = f"Configuration error for '{config_key}': {reason}"
        details = {
            "config_key": config_key,
            "reason": reason,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details)
