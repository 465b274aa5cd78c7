"""JSON-RPC 2.0 wire envelope models.

Requests and responses share the ``jsonrpc``/``id`` envelope. Field names on
the wire differ from attribute names; aliases carry the mapping.
"""

from __future__ import annotations

import itertools
from collections.abc import Awaitable, Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from jsonrpc_smd.exceptions import CorrelationError, ProtocolError, SerializationError
from jsonrpc_smd.infrastructure.logging import get_logger

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"

Transport = Callable[[str], Awaitable[str]]
"""Sends a serialized request body and returns the raw response body."""

_request_ids = itertools.count(1)


def next_request_id() -> int:
    """Return the next correlation id for this process."""
    return next(_request_ids)


class Message(BaseModel):
    """Envelope fields shared by requests and responses.

    Attributes:
        version: Protocol version tag, ``jsonrpc`` on the wire
        id: Correlation token
    """

    model_config = ConfigDict(populate_by_name=True)

    version: str = Field(default=JSONRPC_VERSION, alias="jsonrpc")
    id: int | str | None = Field(default=None, description="Correlation token")


class Request(Message):
    """An outbound JSON-RPC call with positional parameters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: Literal["2.0"] = Field(default=JSONRPC_VERSION, alias="jsonrpc")
    id: int = Field(default_factory=next_request_id, description="Correlation token")
    method: str = Field(..., min_length=1, description="Name of the remote method")
    params: list[Any] = Field(default_factory=list, description="Positional parameters")

    def to_wire(self) -> str:
        """Serialize to the JSON text sent over the wire.

        Raises:
            SerializationError: If a parameter cannot be encoded as JSON
        """
        try:
            return self.model_dump_json(by_alias=True)
        except PydanticSerializationError as e:
            raise SerializationError(
                "request", str(e), details={"method": self.method, "request_id": self.id}
            ) from e

    async def get_response(self, transport: Transport, validate_id: bool = False) -> Response:
        """Send this request and parse the reply.

        Args:
            transport: Coroutine function performing the round trip
            validate_id: Reject replies whose id differs from this request's id

        Returns:
            The parsed response, which may carry an error

        Raises:
            SerializationError: If the reply is not a JSON-RPC response object
            CorrelationError: If ``validate_id`` is set and the ids differ
        """
        body = self.to_wire()
        logger.debug(
            "Sending JSON-RPC request",
            extra={"rpc_method": self.method, "request_id": self.id},
        )
        raw = await transport(body)
        response = Response.from_wire(raw)
        if validate_id:
            self.check_correlation(response)
        return response

    def check_correlation(self, response: Response) -> None:
        """Verify that ``response`` answers this request.

        A null id is tolerated only on error responses, where servers use it
        for requests they could not parse.
        """
        if response.id is None and response.error is not None:
            return
        if response.id != self.id:
            raise CorrelationError(self.id, response.id)


class ErrorInfo(BaseModel):
    """Error object carried by a failed response."""

    code: int
    message: str
    data: Any = None


class Response(Message):
    """An inbound JSON-RPC reply.

    A well-behaved server sets exactly one of ``result`` and ``error``; nothing
    enforces it here, and ``error`` wins whenever it is present.
    """

    result: Any = None
    error: ErrorInfo | None = None

    @classmethod
    def from_wire(cls, raw: str | bytes) -> Response:
        """Parse a raw response body.

        Raises:
            SerializationError: If the body is not a JSON-RPC response object
        """
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise SerializationError("response", str(e)) from e

    @property
    def fault(self) -> ProtocolError | None:
        """The remote error as an exception, or None on success."""
        if self.error is None:
            return None
        return ProtocolError(self.error.code, self.error.message, self.error.data)

    def unwrap(self, result_type: Any = None) -> Any:
        """Return the result, raising the fault if one is present.

        Args:
            result_type: Optional type the result is validated into

        Raises:
            ProtocolError: If the server returned an error object
            SerializationError: If the result does not match ``result_type``
        """
        fault = self.fault
        if fault is not None:
            raise fault
        if result_type is None:
            return self.result
        try:
            return TypeAdapter(result_type).validate_python(self.result)
        except ValidationError as e:
            raise SerializationError(
                "result", str(e), details={"expected": repr(result_type)}
            ) from e
