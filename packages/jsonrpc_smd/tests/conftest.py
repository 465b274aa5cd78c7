"""Shared fixtures for JSON-RPC SMD client tests."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from jsonrpc_smd import ServiceMap

BASE_URL = "https://api.example.com"


class FakeEndpoint:
    """In-memory JSON-RPC endpoint serving an SMD document and method handlers."""

    def __init__(self, smd: dict[str, Any], smd_path: str = "/smd") -> None:
        self.smd = smd
        self.smd_path = smd_path
        self.methods: dict[str, Callable[..., Any]] = {}
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == self.smd_path:
            return httpx.Response(200, json=self.smd)

        payload = json.loads(request.content)
        handler = self.methods.get(payload["method"])
        if handler is None:
            error = {"code": -32601, "message": "Method not found"}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": error})
        result = handler(*payload["params"])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    @property
    def rpc_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != self.smd_path]


@pytest.fixture
def smd_document() -> dict[str, Any]:
    """SMD document declaring a few calculator methods."""
    return {
        "SMDVersion": "2.0",
        "id": "calculator",
        "description": "Calculator service",
        "transport": "POST",
        "envelope": "JSON-RPC-2.0",
        "services": {
            "add": {
                "parameters": [
                    {"name": "a", "type": "integer"},
                    {"name": "b", "type": "integer", "optional": True, "default": 0},
                ],
                "returns": "integer",
            },
            "ping": {},
            "echo": {"contentType": "application/json-rpc", "name": "echo"},
            "remote": {"target": "https://override.example.com/rpc"},
        },
    }


@pytest.fixture
def endpoint(smd_document: dict[str, Any]) -> FakeEndpoint:
    """Fake endpoint with handlers for the calculator methods."""
    fake = FakeEndpoint(smd_document)
    fake.methods["add"] = lambda a, b=0: a + b
    fake.methods["ping"] = lambda: "pong"
    fake.methods["echo"] = lambda *args: list(args)
    fake.methods["remote"] = lambda: "remote"
    return fake


@pytest_asyncio.fixture
async def http_client(endpoint: FakeEndpoint) -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client routed to the fake endpoint."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(endpoint.handle)) as client:
        yield client


@pytest.fixture
def service_map(http_client: httpx.AsyncClient) -> ServiceMap:
    """Undiscovered service map bound to the fake endpoint."""
    return ServiceMap(BASE_URL, client=http_client)


@pytest.fixture
def make_map() -> Callable[..., ServiceMap]:
    """Factory building a service map whose HTTP traffic goes to ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> ServiceMap:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ServiceMap(kwargs.pop("base_url", BASE_URL), client=client, **kwargs)

    return factory
