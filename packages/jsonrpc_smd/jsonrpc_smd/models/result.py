"""Explicit success/fault value for callers that prefer not to catch."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from jsonrpc_smd.exceptions import JsonRpcSmdError


class CallResult(BaseModel):
    """Outcome of a remote call.

    Attributes:
        ok: Whether the call produced a result
        method: Name of the invoked method
        value: The result on success
        fault: The error on failure
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    method: str | None = None
    value: Any = None
    fault: JsonRpcSmdError | None = None

    @classmethod
    def success(cls, value: Any, method: str | None = None) -> CallResult:
        return cls(ok=True, method=method, value=value)

    @classmethod
    def failure(cls, fault: JsonRpcSmdError, method: str | None = None) -> CallResult:
        return cls(ok=False, method=method, fault=fault)

    def unwrap(self) -> Any:
        """Return the value or raise the carried fault."""
        if self.fault is not None:
            raise self.fault
        return self.value
