"""Tests for the client registry."""

import pytest

from conftest import FakeClient
from resource_reaper.clients import EC2Client, GCEClient, default_registry
from resource_reaper.clients.registry import ClientRegistry
from resource_reaper.errors import UnsupportedResourceTypeError
from resource_reaper.models import ResourceType


class TestClientRegistry:
    """Tests for ClientRegistry."""

    def test_default_registry_bindings(self):
        assert default_registry.is_registered(ResourceType.GCE_VM)
        assert default_registry.is_registered(ResourceType.EC2_INSTANCE)

    def test_create_returns_new_unauthenticated_client(self):
        registry = ClientRegistry()
        registry.register(ResourceType.GCE_VM, FakeClient)

        first = registry.create(ResourceType.GCE_VM)
        second = registry.create(ResourceType.GCE_VM)

        assert first is not second
        assert first.authenticated is False

    def test_unknown_type(self):
        with pytest.raises(UnsupportedResourceTypeError):
            ClientRegistry().create(ResourceType.GCE_VM)

    def test_unregister(self):
        registry = ClientRegistry()
        registry.register(ResourceType.GCE_VM, FakeClient)

        registry.unregister(ResourceType.GCE_VM)

        assert registry.is_registered(ResourceType.GCE_VM) is False

    def test_copy_is_independent(self):
        registry = default_registry.copy()

        registry.unregister(ResourceType.EC2_INSTANCE)

        assert default_registry.is_registered(ResourceType.EC2_INSTANCE)

    def test_client_resource_types(self):
        assert GCEClient.resource_type == ResourceType.GCE_VM
        assert EC2Client.resource_type == ResourceType.EC2_INSTANCE
