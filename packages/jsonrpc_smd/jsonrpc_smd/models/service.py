"""Service descriptor graph discovered from a Service Mapping Description.

A ``ServiceMap`` owns a table of ``Service`` descriptors. Each descriptor keeps
a weak back-reference to its map and falls back to the map's transport fields
when its own are unset. The fallback is one level deep: a service reads the
map's own value, never anything beyond it.
"""

from __future__ import annotations

import asyncio
import weakref
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from jsonrpc_smd.config import ClientConfig, get_config
from jsonrpc_smd.exceptions import (
    ConfigurationError,
    JsonRpcSmdError,
    ResolutionError,
    SerializationError,
    ServiceNotFoundError,
)
from jsonrpc_smd.infrastructure.logging import get_logger
from jsonrpc_smd.models.message import Request, Transport
from jsonrpc_smd.models.result import CallResult
from jsonrpc_smd.transport import HttpTransport, RequestHook, TransportOptions

logger = get_logger(__name__)


def join_url(base: str, reference: str) -> str:
    """Resolve ``reference`` against the absolute URL ``base``.

    Raises:
        ConfigurationError: If either URL is malformed
    """
    if not reference:
        return base
    try:
        return str(httpx.URL(base).join(reference))
    except httpx.InvalidURL as e:
        raise ConfigurationError("target", f"cannot resolve '{reference}': {e}") from e


class MethodParameter(BaseModel):
    """Declared parameter of a remote method. Descriptive only."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str | None = None
    declared_type: Any = Field(default=None, alias="type")
    is_optional: bool = Field(default=False, alias="optional")
    default_value: Any = Field(default=None, alias="default")

    def describe(self) -> str:
        text = self.name or "?"
        if self.is_optional:
            text += "?"
        if self.declared_type is not None:
            text += f": {self.declared_type}"
        return text


class Service(BaseModel):
    """Descriptor of one remote method.

    Attributes:
        own_name: Explicit method name (``name`` in the SMD)
        transport: Transport name, inherited from the map when unset
        envelope: Envelope type, inherited from the map when unset
        content_type: Content type, inherited from the map when unset
        target: Target URL, inherited from the map when unset
        parameters: Declared parameters, never checked against call arguments
        returns: Declared return schema
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    own_name: str | None = Field(default=None, alias="name")
    transport: str | None = None
    envelope: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    target: str | None = None
    parameters: list[MethodParameter] = Field(default_factory=list)
    returns: Any = None

    _owner: weakref.ref[Any] | None = PrivateAttr(default=None)

    # Descriptors are entities: the reverse name lookup relies on identity.
    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def attach(self, service_map: ServiceMap) -> None:
        """Set the owner back-reference."""
        self._owner = weakref.ref(service_map)

    @property
    def service_map(self) -> ServiceMap | None:
        """The owning map, or None if detached or already released."""
        return self._owner() if self._owner is not None else None

    def _require_owner(self) -> ServiceMap:
        owner = self.service_map
        if owner is None:
            raise ResolutionError("service is not attached to a service map")
        return owner

    def _inherit(self, field_name: str) -> Any:
        value = getattr(self, field_name)
        if value is not None:
            return value
        owner = self.service_map
        if owner is None or owner is self:
            return None
        return getattr(owner, field_name)

    @property
    def effective_transport(self) -> str | None:
        return self._inherit("transport")

    @property
    def effective_envelope(self) -> str | None:
        return self._inherit("envelope")

    @property
    def effective_content_type(self) -> str | None:
        return self._inherit("content_type")

    @property
    def effective_target_url(self) -> str | None:
        """Own target resolved against the map's target, else the map's target."""
        owner = self.service_map
        if owner is None:
            return self.target
        return join_url(owner.effective_target_url, self.target or "")

    @property
    def resolved_name(self) -> str:
        """Method name: the explicit one, else this service's key in the map.

        Raises:
            ResolutionError: If detached, not exactly one key maps to this service,
                or the name is empty
        """
        if self.own_name is not None:
            name = self.own_name
        else:
            owner = self._require_owner()
            keys = [key for key, service in owner.services.items() if service is self]
            if not keys:
                raise ResolutionError("service is not present in its map's method table")
            if len(keys) > 1:
                raise ResolutionError(
                    f"service is registered under {len(keys)} keys", candidates=sorted(keys)
                )
            name = keys[0]
        if not name:
            raise ResolutionError("method name is empty")
        return name

    def signature(self) -> str:
        """Human readable call signature built from the declared parameters."""
        try:
            name = self.resolved_name
        except ResolutionError:
            name = "<unresolved>"
        params = ", ".join(param.describe() for param in self.parameters)
        text = f"{name}({params})"
        if self.returns is not None:
            text += f" -> {self.returns}"
        return text

    async def execute(self, *args: Any, result_type: Any = None) -> Any:
        """Invoke the remote method with positional arguments.

        Args:
            *args: Positional parameters sent as ``params``
            result_type: Optional type the result is validated into

        Returns:
            The remote result

        Raises:
            ResolutionError: If the method name cannot be determined
            TransportError: If the HTTP round trip fails
            SerializationError: If the reply cannot be parsed
            ProtocolError: If the server returned an error object
        """
        owner = self._require_owner()
        request = Request(method=self.resolved_name, params=list(args))
        response = await request.get_response(
            owner.transport_for(self), validate_id=owner.config.validate_response_id
        )
        return response.unwrap(result_type)

    async def execute_result(self, *args: Any, result_type: Any = None) -> CallResult:
        """Invoke the remote method, returning failures instead of raising them."""
        method = self.own_name
        try:
            method = self.resolved_name
            value = await self.execute(*args, result_type=result_type)
        except JsonRpcSmdError as e:
            return CallResult.failure(e, method=method)
        return CallResult.success(value, method=method)


class ServiceMapDocument(Service):
    """Root of an SMD document as served by the endpoint."""

    smd_version: str | None = Field(default=None, alias="SMDVersion")
    discovery_id: str | None = Field(default=None, alias="id")
    description: str | None = None
    services: dict[str, Service] = Field(default_factory=dict)

    @classmethod
    def from_wire(cls, raw: str | bytes) -> ServiceMapDocument:
        """Parse an SMD document.

        Raises:
            SerializationError: If the body is not a valid SMD object
        """
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise SerializationError("SMD document", str(e)) from e


class ServiceMap(ServiceMapDocument):
    """The root service: method table, root transport fields and HTTP access.

    Services refer back to their map weakly, so the map must stay referenced
    for as long as its services are used. Bind it to a name rather than
    chaining off a temporary.

    Example:
        async with ServiceMap("https://api.example.com") as smd:
            await smd.discover("/smd")
            total = await smd["add"].execute(1, 2)
    """

    _base_url: str = PrivateAttr()
    _config: ClientConfig = PrivateAttr()
    _http: HttpTransport = PrivateAttr()
    _discover_lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)

    def __init__(
        self,
        base_url: str,
        /,
        *,
        options: TransportOptions | None = None,
        hooks: tuple[RequestHook, ...] | None = None,
        client: httpx.AsyncClient | None = None,
        config: ClientConfig | None = None,
        **data: Any,
    ) -> None:
        """Initialize an empty service map.

        Args:
            base_url: Absolute URL of the endpoint
            options: Transport settings, derived from ``config`` if None
            hooks: Request preparation hooks, replacing those in ``options``
            client: HTTP client to use; one is created and owned if None
            config: Client configuration, the cached one if None
            **data: Initial SMD fields

        Raises:
            ConfigurationError: If ``base_url`` is not an absolute URL
        """
        super().__init__(**data)
        try:
            absolute = httpx.URL(base_url).is_absolute_url
        except httpx.InvalidURL as e:
            raise ConfigurationError("base_url", str(e)) from e
        if not absolute:
            raise ConfigurationError("base_url", f"'{base_url}' is not an absolute URL")

        self._base_url = base_url
        self._config = config or get_config()
        options = options or TransportOptions.from_config(self._config)
        if hooks is not None:
            options = options.model_copy(update={"hooks": tuple(hooks)})
        self._http = HttpTransport(options, client)
        self.link_services()

    async def __aenter__(self) -> ServiceMap:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the HTTP client if this map created it."""
        await self._http.aclose()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def options(self) -> TransportOptions:
        return self._http.options

    @property
    def service_map(self) -> ServiceMap:
        return self

    @property
    def effective_target_url(self) -> str:
        return join_url(self._base_url, self.target or "")

    def __getitem__(self, method: str) -> Service:
        return self.get_service(method)

    def __contains__(self, method: object) -> bool:
        return method in self.services

    def get_service(self, method: str) -> Service:
        """Look up a service by its method-table key.

        Raises:
            ServiceNotFoundError: If no such key exists
        """
        try:
            return self.services[method]
        except KeyError:
            raise ServiceNotFoundError(method) from None

    def link_services(self) -> None:
        """Point every service in the method table back at this map."""
        for service in self.services.values():
            service.attach(self)

    def create_request(self, uri: httpx.URL | str, content: bytes = b"") -> httpx.Request:
        """Build a transport request for ``uri`` with the preparation hooks applied."""
        return self._http.create_request(uri, content)

    async def make_request(
        self, body: str = "", relative_path: str = "", content_type: str | None = None
    ) -> str:
        """Send ``body`` to ``relative_path`` under the map's target URL.

        Args:
            body: Request body, sent UTF-8 encoded
            relative_path: Path resolved against the target URL, the target itself if empty
            content_type: Content-Type header, the transport default if None

        Returns:
            The complete response body

        Raises:
            TransportError: If the HTTP round trip fails
            SerializationError: If the body is not valid UTF-8
        """
        url = join_url(self.effective_target_url, relative_path)
        request = self._http.create_request(url, body.encode("utf-8"), content_type)
        return await self._http.send(request)

    def transport_for(self, service: Service) -> Transport:
        """Transport sending a service's calls to its effective target."""

        async def transport(body: str) -> str:
            return await self.make_request(
                body,
                service.effective_target_url or "",
                content_type=service.effective_content_type,
            )

        return transport

    async def discover(self, relative_path: str | None = None) -> ServiceMap:
        """Fetch the SMD document and merge it into this map.

        Args:
            relative_path: Location of the SMD document relative to the base URL

        Returns:
            This map

        Raises:
            TransportError: If the HTTP round trip fails
            SerializationError: If the document cannot be parsed
        """
        if relative_path is None:
            relative_path = self._config.default_smd_path
        url = join_url(self._base_url, relative_path)
        async with self._discover_lock:
            request = self._http.create_request(url, b"")
            document = ServiceMapDocument.from_wire(await self._http.send(request))
            self.merge(document)
        logger.debug(
            "Service map discovered",
            extra={"url": url, "service_count": len(self.services)},
        )
        return self

    def merge(self, document: ServiceMapDocument) -> None:
        """Copy the fields present in ``document`` onto this map, then relink.

        Fields absent from the document keep their current values. Method-table
        entries are merged by key and the table is replaced in one assignment.
        """
        for field_name in document.model_fields_set:
            if field_name != "services":
                setattr(self, field_name, getattr(document, field_name))
        if "services" in document.model_fields_set:
            self.services = {**self.services, **document.services}
        self.link_services()

    async def call(self, method: str, *args: Any, result_type: Any = None) -> Any:
        """Execute the service registered under ``method``."""
        return await self.get_service(method).execute(*args, result_type=result_type)
