"""Unit tests for the service descriptor graph."""

from __future__ import annotations

import gc
from typing import Any

import pytest
from jsonrpc_smd.exceptions import (
    ConfigurationError,
    ResolutionError,
    SerializationError,
    ServiceNotFoundError,
)
from jsonrpc_smd.models import MethodParameter, Service, ServiceMap, ServiceMapDocument
from jsonrpc_smd.models.service import join_url

BASE_URL = "https://api.example.com"


class TestTransportFieldFallback:
    """Test one-level fallback of transport fields to the owning map."""

    def test_target_url_falls_back_to_map(self) -> None:
        """A service without its own target uses the map's target."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"ping": service})

        assert service.effective_target_url == BASE_URL
        assert service_map.effective_target_url == BASE_URL

    def test_own_target_url_wins(self) -> None:
        """An explicit service target ignores the map's value."""
        service = Service(target="https://override.example.com")
        service_map = ServiceMap(BASE_URL, services={"ping": service})

        assert service.effective_target_url == "https://override.example.com"

    def test_relative_target_resolved_against_map(self) -> None:
        """A relative service target is resolved against the map's target."""
        service = Service(target="/v2/rpc")
        service_map = ServiceMap(BASE_URL, services={"ping": service})

        assert service.effective_target_url == "https://api.example.com/v2/rpc"

    def test_map_target_override(self) -> None:
        """The map's own target overrides its base URL for every service."""
        service = Service()
        service_map = ServiceMap(BASE_URL, target="/rpc", services={"ping": service})

        assert service_map.base_url == BASE_URL
        assert service_map.effective_target_url == "https://api.example.com/rpc"
        assert service.effective_target_url == "https://api.example.com/rpc"

    @pytest.mark.parametrize(
        "field_name,wire_name,value",
        [
            ("transport", "transport", "POST"),
            ("envelope", "envelope", "JSON-RPC-2.0"),
            ("content_type", "contentType", "application/json-rpc"),
        ],
    )
    def test_fields_inherit_from_map(self, field_name: str, wire_name: str, value: str) -> None:
        """Unset fields resolve to the map's value, set fields to their own."""
        inheriting = Service()
        overriding = Service.model_validate({wire_name: "custom"})
        service_map = ServiceMap(
            BASE_URL,
            services={"a": inheriting, "b": overriding},
            **{field_name: value},
        )

        assert getattr(inheriting, f"effective_{field_name}") == value
        assert getattr(overriding, f"effective_{field_name}") == "custom"

    def test_malformed_target_raises_configuration_error(self) -> None:
        """An unparseable target surfaces as a client error."""
        service = Service(target="http://[::1")
        service_map = ServiceMap(BASE_URL, services={"bad": service})

        with pytest.raises(ConfigurationError, match="target"):
            _ = service.effective_target_url
        assert service_map["bad"] is service

    def test_join_url(self) -> None:
        """Empty references keep the base, others are resolved against it."""
        assert join_url(BASE_URL, "") == BASE_URL
        assert join_url(BASE_URL + "/a/b", "c") == "https://api.example.com/a/c"
        with pytest.raises(ConfigurationError):
            join_url(BASE_URL, "http://[::1")

    def test_map_fields_do_not_fall_back_to_themselves(self) -> None:
        """Unset fields on the map resolve to None."""
        service_map = ServiceMap(BASE_URL)

        assert service_map.effective_transport is None
        assert service_map.effective_envelope is None
        assert service_map.effective_content_type is None

    def test_detached_service_has_no_fallback(self) -> None:
        """A service outside any map only sees its own values."""
        service = Service(envelope="JSON-RPC-2.0")

        assert service.service_map is None
        assert service.effective_envelope == "JSON-RPC-2.0"
        assert service.effective_transport is None
        assert service.effective_target_url is None


class TestNameResolution:
    """Test reverse lookup of service names."""

    def test_explicit_name_wins(self) -> None:
        """An explicit name is used without consulting the map."""
        service = Service(name="math.add")
        service_map = ServiceMap(BASE_URL, services={"add": service})

        assert service.resolved_name == "math.add"

    def test_name_from_method_table_key(self) -> None:
        """Without a name the single matching key is used."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"add": service, "sub": Service()})

        assert service.resolved_name == "add"

    def test_lookup_uses_identity(self) -> None:
        """Equal but distinct descriptors do not confuse the lookup."""
        first, second = Service(), Service()
        service_map = ServiceMap(BASE_URL, services={"first": first, "second": second})

        assert first.resolved_name == "first"
        assert second.resolved_name == "second"

    def test_ambiguous_name_raises(self) -> None:
        """Two keys mapping to the same descriptor cannot be resolved."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"add": service, "plus": service})

        with pytest.raises(ResolutionError) as exc_info:
            _ = service.resolved_name

        assert exc_info.value.candidates == ["add", "plus"]

    def test_empty_explicit_name_is_not_replaced_by_key(self) -> None:
        """An explicit empty name is kept, not treated as unset."""
        service = Service(name="")
        service_map = ServiceMap(BASE_URL, services={"add": service})

        with pytest.raises(ResolutionError, match="empty"):
            _ = service.resolved_name
        assert service_map["add"] is service

    def test_empty_key_raises(self) -> None:
        """A service registered under an empty key has no usable name."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"": service})

        with pytest.raises(ResolutionError, match="empty"):
            _ = service.resolved_name
        assert "" in service_map

    def test_detached_service_raises(self) -> None:
        """A nameless service with no map cannot be resolved."""
        with pytest.raises(ResolutionError, match="not attached"):
            _ = Service().resolved_name

    def test_removed_service_raises(self) -> None:
        """A service no longer present in its map's table cannot be resolved."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"add": service})
        service_map.services = {}

        with pytest.raises(ResolutionError, match="not present"):
            _ = service.resolved_name

    def test_owner_reference_is_weak(self) -> None:
        """A service does not keep its map alive."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"add": service})
        assert service.service_map is service_map

        del service_map
        gc.collect()

        assert service.service_map is None


class TestServiceMap:
    """Test service map construction, lookup and merging."""

    def test_constructed_state(self) -> None:
        """A new map has an empty method table and owns itself."""
        service_map = ServiceMap(BASE_URL)

        assert service_map.services == {}
        assert service_map.service_map is service_map
        assert service_map.smd_version is None

    @pytest.mark.parametrize("bad_url", ["/relative/path", "api.example.com", ""])
    def test_relative_base_url_rejected(self, bad_url: str) -> None:
        """The base URL must be absolute."""
        with pytest.raises(ConfigurationError):
            ServiceMap(bad_url)

    def test_lookup(self) -> None:
        """Services are reachable by key."""
        service = Service()
        service_map = ServiceMap(BASE_URL, services={"add": service})

        assert service_map["add"] is service
        assert service_map.get_service("add") is service
        assert "add" in service_map
        assert "sub" not in service_map

    def test_missing_lookup_raises(self) -> None:
        """Unknown keys raise ServiceNotFoundError, which is also a KeyError."""
        service_map = ServiceMap(BASE_URL)

        with pytest.raises(ServiceNotFoundError, match="'sub' not found"):
            service_map["sub"]
        with pytest.raises(KeyError):
            service_map.get_service("sub")

    def test_merge_links_and_keeps_absent_fields(self, smd_document: dict[str, Any]) -> None:
        """Merging overwrites present fields, keeps absent ones and relinks services."""
        service_map = ServiceMap(BASE_URL, description="before", contentType="text/plain")

        service_map.merge(ServiceMapDocument.model_validate(smd_document))

        assert service_map.smd_version == "2.0"
        assert service_map.discovery_id == "calculator"
        assert service_map.description == "Calculator service"
        assert service_map.content_type == "text/plain"
        assert set(service_map.services) == {"add", "ping", "echo", "remote"}
        assert all(s.service_map is service_map for s in service_map.services.values())

    def test_merge_adds_to_method_table(self) -> None:
        """A second merge adds and replaces entries without dropping others."""
        kept = Service()
        service_map = ServiceMap(BASE_URL, services={"kept": kept, "replaced": Service()})

        service_map.merge(
            ServiceMapDocument.model_validate(
                {"services": {"replaced": {"envelope": "new"}, "added": {}}}
            )
        )

        assert service_map["kept"] is kept
        assert service_map["replaced"].envelope == "new"
        assert service_map["added"].resolved_name == "added"

    def test_document_from_wire_rejects_garbage(self) -> None:
        """An unparseable SMD document raises SerializationError."""
        with pytest.raises(SerializationError, match="Invalid SMD document"):
            ServiceMapDocument.from_wire('{"services": []}')


class TestMethodParameters:
    """Test descriptive parameter metadata."""

    def test_parameter_aliases(self) -> None:
        """SMD parameter fields map onto attribute names."""
        param = MethodParameter.model_validate(
            {"name": "b", "type": "integer", "optional": True, "default": 0}
        )

        assert param.name == "b"
        assert param.declared_type == "integer"
        assert param.is_optional is True
        assert param.default_value == 0

    def test_signature(self, smd_document: dict[str, Any]) -> None:
        """Signatures list declared parameters and return schema."""
        service_map = ServiceMap(BASE_URL)
        service_map.merge(ServiceMapDocument.model_validate(smd_document))

        assert service_map["add"].signature() == "add(a: integer, b?: integer) -> integer"
        assert service_map["ping"].signature() == "ping()"
