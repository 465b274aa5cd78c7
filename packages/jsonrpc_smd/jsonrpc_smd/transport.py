"""HTTP transport for JSON-RPC round trips.

Builds ``httpx`` requests from immutable ``TransportOptions`` and reads each
reply to completion before returning it as text.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from jsonrpc_smd.config import ClientConfig, get_config
from jsonrpc_smd.exceptions import SerializationError, TransportError
from jsonrpc_smd.infrastructure.logging import get_logger

logger = get_logger(__name__)

RequestHook = Callable[[httpx.Request], httpx.Request | None]
"""Adjusts an outbound request in place, or returns a replacement."""


class TransportOptions(BaseModel):
    """Per-map transport settings, fixed at construction time.

    Attributes:
        http_method: HTTP method of every outbound request
        content_type: Content-Type used when a service declares none
        headers: Extra headers added to every request
        timeout: Request timeout in seconds
        connect_timeout: Connect timeout in seconds
        hooks: Functions applied, in order, to every request before sending
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    http_method: str = Field(default="POST")
    content_type: str = Field(default="application/json")
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = Field(default=30.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    hooks: tuple[RequestHook, ...] = Field(default=())

    @classmethod
    def from_config(cls, config: ClientConfig | None = None, **overrides: Any) -> TransportOptions:
        """Build options from the client configuration.

        Args:
            config: Configuration to read, the cached one if None
            **overrides: Values taking precedence over the configuration
        """
        config = config or get_config()
        values: dict[str, Any] = {
            "http_method": config.transport.http_method,
            "content_type": config.transport.content_type,
            "headers": {"User-Agent": config.transport.user_agent},
            "timeout": config.timeouts.request_timeout,
            "connect_timeout": config.timeouts.connect_timeout,
        }
        values.update(overrides)
        return cls(**values)


class HttpTransport:
    """Sends request bodies over HTTP and returns complete response bodies."""

    def __init__(
        self, options: TransportOptions, client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize the transport.

        Args:
            options: Transport settings
            client: Client to send with; one is created lazily and owned if None
        """
        self.options = options
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.options.timeout, connect=self.options.connect_timeout)
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def create_request(
        self, uri: httpx.URL | str, content: bytes = b"", content_type: str | None = None
    ) -> httpx.Request:
        """Build a request for ``uri`` and run the preparation hooks over it.

        Raises:
            TransportError: If ``uri`` is not a valid URL
        """
        headers = {
            **self.options.headers,
            "Content-Type": content_type or self.options.content_type,
        }
        try:
            request = self.client.build_request(
                self.options.http_method, uri, content=content, headers=headers
            )
        except httpx.InvalidURL as e:
            raise TransportError(str(uri), str(e)) from e
        for hook in self.options.hooks:
            replacement = hook(request)
            if replacement is not None:
                request = replacement
        return request

    async def send(self, request: httpx.Request) -> str:
        """Perform the round trip and return the UTF-8 decoded body.

        Raises:
            TransportError: On connection failures and non-2xx statuses
            SerializationError: If the body is not valid UTF-8
        """
        url = str(request.url)
        try:
            response = await self.client.send(request, stream=True)
            try:
                content = await response.aread()
            finally:
                await response.aclose()
        except httpx.HTTPError as e:
            logger.debug("HTTP round trip failed", extra={"url": url, "error": str(e)})
            raise TransportError(url, str(e) or type(e).__name__) from e

        if response.is_error:
            raise TransportError(
                url,
                f"HTTP {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                details={"body": content.decode("utf-8", errors="replace")},
            )

        logger.debug(
            "HTTP round trip completed",
            extra={"url": url, "status_code": response.status_code, "size": len(content)},
        )
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError("response body", str(e), details={"url": url}) from e
